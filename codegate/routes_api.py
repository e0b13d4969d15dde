from flask import Blueprint, current_app, jsonify, make_response, request

from . import current_services
from .errors import CodegateError
from .services.files import list_files
from .services.gate import Access, authorize, current_session, persist_session
from .services.redeem import Outcome

bp = Blueprint('api', __name__)

_STATUS = {
    Outcome.INVALID_FORMAT: 400,
    Outcome.NOT_FOUND: 404,
    Outcome.ALREADY_REDEEMED: 409,
    Outcome.STORE_UNAVAILABLE: 503,
}


@bp.errorhandler(CodegateError)
def unavailable(_e):
    return jsonify({'error': 'store_unavailable'}), 503


def _files():
    cfg = current_app.config
    return list_files(cfg['FILES_DIR'], cfg['ALLOWED_EXTENSIONS'])


@bp.post('/redeem')
def redeem():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    session = current_session()
    result = current_services().engine.redeem(data.get('code', ''), session)
    if not result.unlocked:
        return jsonify({'error': result.outcome.value}), _STATUS[result.outcome]
    resp = make_response(jsonify({'ok': True, 'code': result.code, 'files': _files()}))
    return persist_session(session, resp)


@bp.get('/files')
def files():
    if authorize(current_session()) is Access.DENIED:
        return jsonify({'error': 'access_denied'}), 403
    return jsonify({'files': _files()})
