import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from codegate import create_app, current_services
from codegate.models import Code, db

ADMIN_KEY = 'test-admin-key'


@pytest.fixture()
def app(tmp_path):
    files_dir = tmp_path / 'songs'
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'codes.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
        'ADMIN_API_KEY': ADMIN_KEY,
        'FILES_DIR': str(files_dir),
        'PUBLIC_DIR': str(tmp_path / 'public'),
        'SESSION_BACKEND': 'memory',
        'WORKERS': 1,
        'MAX_BATCH_SIZE': 50,
        'BASE_URL': 'https://music.example',
    })
    (files_dir / 'track01.mp3').write_bytes(b'ID3 one')
    (files_dir / 'track02.FLAC').write_bytes(b'fLaC two')
    (files_dir / 'notes.txt').write_text('not for download')
    (tmp_path / 'secret.mp3').write_bytes(b'outside')
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def store(app):
    with app.app_context():
        yield current_services().store


@pytest.fixture()
def seed(store):
    def _seed(*values, batch='2024-01-01'):
        store.insert_many([Code(code=v, batch=batch) for v in values])
    return _seed


@pytest.fixture()
def admin_headers():
    return {'X-Admin-Key': ADMIN_KEY}
