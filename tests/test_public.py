import logging

import pytest
import redis

from codegate.errors import StoreUnavailable
from codegate.services.files import safe_name
from codegate.services.sessions import RedisSessionStore
from codegate.services.tokens import sign_session_id


def _redeem(client, code):
    return client.post('/redeem', data={'code': code})


def test_home_renders_form_with_prefill(client):
    r = client.get('/?code=TD-ABC')
    assert r.status_code == 200
    body = r.get_data(as_text=True)
    assert 'name="code"' in body
    assert 'value="TD-ABC"' in body


def test_download_denied_without_redemption(client):
    r = client.get('/download/track01.mp3')
    assert r.status_code == 403
    assert client.get('/downloads').status_code == 403
    assert client.get('/api/files').status_code == 403


def test_redeem_unlocks_session_for_all_files(client, seed):
    seed('TD-AB12C3DE4')
    r = _redeem(client, ' td-ab12c3de4 ')
    assert r.status_code == 200
    body = r.get_data(as_text=True)
    assert 'Downloads unlocked' in body
    assert 'track01.mp3' in body
    assert 'notes.txt' not in body
    assert 'redeem.sid' in r.headers.get('Set-Cookie', '')

    for name in ('track01.mp3', 'track02.FLAC'):
        r = client.get(f'/download/{name}')
        assert r.status_code == 200
        assert 'attachment' in r.headers['Content-Disposition']
    assert client.get('/download/track01.mp3').data == b'ID3 one'
    assert client.get('/downloads').status_code == 200
    assert client.get('/api/files').get_json() == {'files': ['track01.mp3', 'track02.FLAC']}


def test_other_session_denied_even_with_redeemed_code(app, client, seed):
    seed('A1')
    _redeem(client, 'A1')
    other = app.test_client()
    assert other.get('/download/track01.mp3').status_code == 403
    r = _redeem(other, 'A1')
    assert 'Already redeemed' in r.get_data(as_text=True)
    assert other.get('/download/track01.mp3').status_code == 403


def test_forged_cookie_is_denied(app, client, seed):
    client.set_cookie('redeem.sid', 'made-up-session.bad-signature')
    assert client.get('/download/track01.mp3').status_code == 403


def test_outcome_pages(client, seed):
    seed('A1')
    assert 'Invalid code' in _redeem(client, '!!!').get_data(as_text=True)
    assert 'Code not found' in _redeem(client, 'ZZZ').get_data(as_text=True)
    _redeem(client, 'A1')
    assert 'Already redeemed' in _redeem(client, 'A1').get_data(as_text=True)
    # a later failed attempt does not lock out the session
    assert client.get('/download/track01.mp3').status_code == 200


def test_download_sanitizes_name_and_returns_404(client, seed):
    seed('A1')
    _redeem(client, 'A1')
    assert client.get('/download/missing.mp3').status_code == 404
    assert client.get('/download/notes.txt').status_code == 404
    # directory parts are dropped before lookup
    r = client.get('/download/nested/dirs/track01.mp3')
    assert r.status_code == 200
    assert r.data == b'ID3 one'


def test_safe_name():
    assert safe_name('../../etc/passwd') == 'passwd'
    assert safe_name('..\\..\\secret.mp3') == 'secret.mp3'
    assert safe_name('song.mp3') == 'song.mp3'
    assert safe_name('../') == ''


def test_api_redeem(app, client, seed):
    seed('A1')
    r = client.post('/api/redeem', json={'code': 'a1'})
    assert r.status_code == 200
    assert r.get_json() == {'ok': True, 'code': 'A1', 'files': ['track01.mp3', 'track02.FLAC']}
    assert client.get('/api/files').status_code == 200

    other = app.test_client()
    assert other.post('/api/redeem', json={'code': 'A1'}).status_code == 409
    assert other.post('/api/redeem', json={'code': 'B1'}).get_json() == {'error': 'not_found'}
    assert other.post('/api/redeem', json={}).status_code == 400


def test_health(client):
    assert client.get('/health').get_json() == {'ok': True}
    assert client.get('/healthz').get_json() == {'ok': True}


def test_non_ascii_cookie_is_a_fresh_session(client):
    client.set_cookie('redeem.sid', 'café.abc')
    assert client.get('/').status_code == 200
    assert client.get('/download/track01.mp3').status_code == 403
    assert client.get('/api/files').status_code == 403


class _DownRedis:
    def get(self, key):
        raise redis.ConnectionError('connection refused')

    def setex(self, key, ttl, value):
        raise redis.ConnectionError('connection refused')


@pytest.fixture()
def down_sessions(app, monkeypatch):
    monkeypatch.setattr(app.extensions['codegate'], 'sessions', RedisSessionStore(_DownRedis(), 60))


def test_session_store_down_during_redeem_returns_503_and_logs_code(client, store, seed, down_sessions, caplog):
    seed('A1')
    with caplog.at_level(logging.ERROR, logger='codegate.services.gate'):
        r = _redeem(client, 'A1')
    assert r.status_code == 503
    assert 'Something went wrong' in r.get_data(as_text=True)
    assert 'redeem.sid' not in r.headers.get('Set-Cookie', '')
    assert any('A1' in rec.getMessage() for rec in caplog.records)
    assert store.get('A1').redeemed is True


def test_session_store_down_during_api_redeem(client, seed, down_sessions):
    seed('A1')
    r = client.post('/api/redeem', json={'code': 'A1'})
    assert r.status_code == 503
    assert r.get_json() == {'error': 'store_unavailable'}


def test_session_store_down_during_load(app, client, down_sessions):
    signed = sign_session_id('some-session', app.config['SECRET_KEY'])
    client.set_cookie('redeem.sid', signed)
    assert client.get('/downloads').status_code == 503
    assert client.get('/api/files').status_code == 503


@pytest.fixture()
def down_store(app, monkeypatch):
    def boom(*args, **kwargs):
        raise StoreUnavailable('redeem')
    monkeypatch.setattr(app.extensions['codegate'].store, 'try_redeem', boom)


def test_code_store_down_returns_503(client, down_store):
    r = _redeem(client, 'A1')
    assert r.status_code == 503
    r = client.post('/api/redeem', json={'code': 'A1'})
    assert r.status_code == 503
    assert r.get_json() == {'error': 'store_unavailable'}
    assert client.get('/download/track01.mp3').status_code == 403


def test_api_rejects_non_string_code(client, store, seed):
    seed('A1')
    r = client.post('/api/redeem', json={'code': ['a1']})
    assert r.status_code == 400
    assert r.get_json() == {'error': 'invalid_format'}
    assert client.post('/api/redeem', json={'code': {'A1': 1}}).status_code == 400
    assert store.get('A1').redeemed is False
