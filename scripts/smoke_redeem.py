import os
import pathlib
import sys
import tempfile

# Ensure project root is on PYTHONPATH
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Minimal env for test (set before importing app so Config reads them)
tmp = tempfile.mkdtemp(prefix='codegate-smoke-')
os.environ.setdefault('ADMIN_API_KEY', 'test-key')
os.environ.setdefault('DATABASE_URL', f'sqlite:///{tmp}/smoke.db')
os.environ.setdefault('FILES_DIR', f'{tmp}/songs')
os.environ.setdefault('PUBLIC_DIR', f'{tmp}/public')
os.environ.setdefault('SESSION_BACKEND', 'memory')

from codegate import create_app

app = create_app()
pathlib.Path(app.config['FILES_DIR'], 'track01.mp3').write_bytes(b'ID3 smoke')

client = app.test_client()

# 1) Unauthorized
r = client.get('/admin/stats')
print('unauthorized_status', r.status_code)

# 2) Generate a small batch
r = client.get('/admin/generate?count=3&prefix=TD-&batch=smoke', headers={'X-Admin-Key': 'test-key'})
print('generate_status', r.status_code, r.mimetype)
code = r.get_data(as_text=True).splitlines()[1].split(',')[0]
print('first_code', code)

# 3) Download before redeeming
print('download_before', client.get('/download/track01.mp3').status_code)

# 4) Redeem twice
r = client.post('/api/redeem', json={'code': code.lower()})
print('redeem_1', r.status_code, r.get_json())
r = app.test_client().post('/api/redeem', json={'code': code})
print('redeem_2', r.status_code, r.get_json())

# 5) Download after redeeming
print('download_after', client.get('/download/track01.mp3').status_code)

r = client.get('/admin/stats', headers={'X-Admin-Key': 'test-key'})
print('stats', r.get_json())
