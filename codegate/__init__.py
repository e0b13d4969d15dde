import atexit
import logging
import os
from dataclasses import dataclass

from flask import Flask, current_app
from flask_migrate import Migrate
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .models import db
from .services.codes import CodeGenerator
from .services.redeem import RedemptionEngine
from .services.sessions import open_session_store
from .services.store import CodeStore


@dataclass
class Services:
    store: CodeStore
    sessions: object
    engine: RedemptionEngine
    generator: CodeGenerator


def _configure_logging(app: Flask):
    gunicorn_logger = logging.getLogger('gunicorn.error')
    if gunicorn_logger.handlers:
        # Running under gunicorn: share its handlers and level (app.logger is the 'codegate' logger)
        app.logger.handlers = gunicorn_logger.handlers
        app.logger.setLevel(gunicorn_logger.level)
    else:
        logging.basicConfig(level=app.config['LOG_LEVEL'], format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def create_app(overrides: dict | None = None):
    cfg = Config()
    app = Flask(__name__, static_folder=None)
    app.config.from_object(cfg)
    if overrides:
        app.config.update(overrides)
    _configure_logging(app)

    for d in (app.config['FILES_DIR'], app.config['PUBLIC_DIR']):
        os.makedirs(d, exist_ok=True)

    db.init_app(app)
    Migrate(app, db)
    # Trust reverse proxy headers (Render/Heroku)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    with app.app_context():
        db.create_all()

    sessions = open_session_store(
        app.config['SESSION_BACKEND'], app.config.get('REDIS_URL'), app.config['SESSION_TTL_SECONDS'],
        workers=app.config['WORKERS'],
    )
    atexit.register(sessions.close)
    store = CodeStore(db)
    app.extensions['codegate'] = Services(
        store=store,
        sessions=sessions,
        engine=RedemptionEngine(store),
        generator=CodeGenerator(app.config['CODE_LENGTH'], app.config['MAX_BATCH_SIZE']),
    )

    from .routes_public import bp as public_bp
    from .routes_api import bp as api_bp
    from .routes_admin import bp as admin_bp
    app.register_blueprint(public_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    @app.get('/health')
    @app.get('/healthz')
    def health():
        return {'ok': True}

    app.logger.info('files served from %s', app.config['FILES_DIR'])
    return app


def current_services() -> Services:
    return current_app.extensions['codegate']
