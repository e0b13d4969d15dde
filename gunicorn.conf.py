import multiprocessing
import os

wsgi_app = "codegate:create_app()"
# Sensible defaults for a small dyno/container; tune as needed.
# Memory sessions live in one process, so that backend defaults to a single worker.
if os.environ.get("SESSION_BACKEND", "redis") == "memory":
    _default_workers = 1
else:
    _default_workers = (multiprocessing.cpu_count() * 2) + 1
workers = int(os.environ.get("GUNICORN_WORKERS") or os.environ.get("WEB_CONCURRENCY") or _default_workers)
# The app reads this to refuse process-local sessions across several workers
os.environ["WEB_CONCURRENCY"] = str(workers)
threads = 2
worker_class = "gthread"
bind = os.environ.get("GUNICORN_BIND", ":8000")
# Heroku/Render style proxy headers
forwarded_allow_ips = "*"
# Keep-alive tuning
timeout = 60
keepalive = 75
# Access logging; the app logger picks up these handlers
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
