import csv
import hmac
import io
import logging
from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, Response, abort, current_app, jsonify, request, send_file
from werkzeug.utils import secure_filename

from . import current_services
from .errors import StoreUnavailable
from .models import MAX_CODE_LENGTH
from .services.codes import normalize
from .services.qr import make_qr_bytes, redeem_url

log = logging.getLogger(__name__)

bp = Blueprint('admin', __name__)


def require_admin(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        # Simple API-key auth
        api_key = request.headers.get('X-Admin-Key') or request.args.get('key') or ''
        expected = current_app.config.get('ADMIN_API_KEY') or ''
        if not expected or not hmac.compare_digest(api_key.encode(), expected.encode()):
            log.warning('admin request refused: %s %s', request.method, request.path)
            return jsonify({'error': 'unauthorized'}), 401
        return view(*args, **kwargs)
    return wrapper


@bp.errorhandler(StoreUnavailable)
def store_unavailable(_e):
    return jsonify({'error': 'store_unavailable'}), 503


def _csv_response(rows, fieldnames, filename):
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=fieldnames, extrasaction='ignore', lineterminator='\n')
    w.writeheader()
    for r in rows:
        w.writerow(r)
    return Response(
        buf.getvalue(),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{secure_filename(filename)}"'},
    )


@bp.get('/ping')
@require_admin
def ping():
    return jsonify({'admin': 'ok'})


@bp.get('/generate')
@require_admin
def generate():
    cfg = current_app.config
    try:
        count = int(request.args.get('count') or cfg['DEFAULT_BATCH_SIZE'])
    except ValueError:
        return jsonify({'error': 'invalid_count'}), 400
    prefix = normalize(request.args.get('prefix', ''))
    if len(prefix) > MAX_CODE_LENGTH - cfg['CODE_LENGTH']:
        return jsonify({'error': 'invalid_prefix'}), 400
    batch = (request.args.get('batch') or datetime.now(timezone.utc).strftime('%Y-%m-%d'))[:64]

    svc = current_services()
    codes = svc.generator.generate(count, prefix, batch)
    inserted = svc.store.insert_many(codes)
    log.info('batch %s: %d requested, %d inserted', batch, count, inserted)

    # Re-query what actually exists now (in case of IGNORE on duplicates)
    url = cfg['BASE_URL']
    rows = [dict(c.as_row(), redeem_url=url) for c in svc.store.list_by_batch(batch)]
    return _csv_response(rows, ['code', 'batch', 'redeemed', 'redeemed_at', 'redeem_url'], f'codes-{batch}.csv')


@bp.get('/export')
@require_admin
def export():
    rows = [c.as_row() for c in current_services().store.list_all()]
    return _csv_response(rows, ['code', 'batch', 'redeemed', 'redeemed_at'], 'all-codes.csv')


@bp.get('/stats')
@require_admin
def stats():
    store = current_services().store
    total = store.count_total()
    redeemed = store.count_redeemed()
    return jsonify({'total': total, 'redeemed': redeemed, 'unredeemed': total - redeemed})


@bp.get('/qr/<code>')
@require_admin
def qr(code: str):
    code = normalize(code)
    if not code or current_services().store.get(code) is None:
        abort(404)
    png = make_qr_bytes(redeem_url(current_app.config['BASE_URL'], code))
    return send_file(io.BytesIO(png), mimetype='image/png', download_name=f"qr_{code}.png", etag=False)
