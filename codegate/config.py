import os

from dotenv import load_dotenv

load_dotenv()

def _flag(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///codes.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ADMIN_API_KEY = os.environ.get('ADMIN_API_KEY')
    SITE_NAME = os.environ.get('SITE_NAME', 'Album Download')
    BASE_URL = os.environ.get('BASE_URL', 'http://localhost:5000')
    FILES_DIR = os.environ.get('FILES_DIR', os.path.join(os.getcwd(), 'songs'))
    PUBLIC_DIR = os.environ.get('PUBLIC_DIR', os.path.join(os.getcwd(), 'public'))
    ARTWORK_FILENAME = os.environ.get('ARTWORK_FILENAME', 'artwork.jpg')
    ALLOWED_EXTENSIONS = tuple(
        e.strip().lower()
        for e in os.environ.get('ALLOWED_EXTENSIONS', '.mp3,.wav,.flac,.m4a,.aac,.ogg').split(',')
        if e.strip()
    )
    CODE_LENGTH = int(os.environ.get('CODE_LENGTH', '10'))
    MAX_BATCH_SIZE = int(os.environ.get('MAX_BATCH_SIZE', '10000'))
    DEFAULT_BATCH_SIZE = int(os.environ.get('DEFAULT_BATCH_SIZE', '100'))
    SESSION_BACKEND = os.environ.get('SESSION_BACKEND', 'redis')
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
    SESSION_TTL_SECONDS = int(os.environ.get('SESSION_TTL_SECONDS', str(7 * 24 * 3600)))
    # worker processes serving the app; exported by gunicorn.conf.py
    WORKERS = int(os.environ.get('WEB_CONCURRENCY', '1'))
    SESSION_COOKIE_NAME = 'redeem.sid'
    SESSION_COOKIE_SECURE = _flag('SESSION_COOKIE_SECURE')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    def __init__(self):
        # Optional fallbacks to support Secret Files on Render (/etc/secrets)
        if (not self.SECRET_KEY) or self.SECRET_KEY == 'dev':
            try:
                with open('/etc/secrets/secret_key', 'r') as f:
                    self.SECRET_KEY = f.read().strip()
            except OSError:
                pass
        if not self.ADMIN_API_KEY:
            try:
                with open('/etc/secrets/admin_api_key', 'r') as f:
                    self.ADMIN_API_KEY = f.read().strip()
            except OSError:
                pass
