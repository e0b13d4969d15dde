from flask import Blueprint, current_app, make_response, render_template, request, send_from_directory

from . import current_services
from .errors import CodegateError
from .services.files import list_files, serve_file
from .services.gate import Access, authorize, current_session, persist_session
from .services.redeem import Outcome

bp = Blueprint('public', __name__)

_MESSAGES = {
    Outcome.INVALID_FORMAT: ('Invalid code', 'Please go back and try again.'),
    Outcome.NOT_FOUND: ('Code not found', 'Please check your card and try again.'),
    Outcome.ALREADY_REDEEMED: (
        'Already redeemed',
        'This code has already been used. If you believe this is a mistake, please contact support with the code:',
    ),
}


@bp.errorhandler(CodegateError)
def unavailable(_e):
    return render_template('message.html', title='Something went wrong', body='Please try again in a moment.'), 503


def _files():
    cfg = current_app.config
    return list_files(cfg['FILES_DIR'], cfg['ALLOWED_EXTENSIONS'])


@bp.get('/')
def home():
    session = current_session()
    return render_template(
        'index.html',
        code=request.args.get('code', ''),
        unlocked=authorize(session) is Access.ALLOWED,
    )


@bp.post('/redeem')
def redeem():
    session = current_session()
    result = current_services().engine.redeem(request.form.get('code', ''), session)
    if result.outcome is Outcome.STORE_UNAVAILABLE:
        return render_template('message.html', title='Something went wrong', body='Please try again in a moment.'), 503
    if not result.unlocked:
        title, body = _MESSAGES[result.outcome]
        code = result.code if result.outcome is Outcome.ALREADY_REDEEMED else ''
        return render_template('message.html', title=title, body=body, code=code)
    resp = make_response(render_template('downloads.html', code=result.code, files=_files()))
    return persist_session(session, resp)


@bp.get('/downloads')
def downloads():
    session = current_session()
    if authorize(session) is Access.DENIED:
        return 'Forbidden - please redeem a valid code first.', 403
    return render_template('downloads.html', code=session.bound_code, files=_files())


@bp.get('/download/<path:name>')
def download(name: str):
    if authorize(current_session()) is Access.DENIED:
        return 'Forbidden - please redeem a valid code first.', 403
    cfg = current_app.config
    return serve_file(cfg['FILES_DIR'], name, cfg['ALLOWED_EXTENSIONS'])


@bp.get('/assets/<path:filename>')
def assets(filename: str):
    return send_from_directory(current_app.config['PUBLIC_DIR'], filename)
