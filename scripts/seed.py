import os, sys, pathlib
# Ensure project root is on PYTHONPATH when running directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from codegate import create_app, current_services
from codegate.services.qr import redeem_url

# Usage: python scripts/seed.py [COUNT] [PREFIX]
count = int(sys.argv[1]) if len(sys.argv) > 1 else 5
prefix = sys.argv[2] if len(sys.argv) > 2 else 'DEMO-'

app = create_app()
with app.app_context():
    svc = current_services()
    codes = svc.generator.generate(count, prefix, 'demo')
    svc.store.insert_many(codes)
    for c in codes:
        print(c.code, redeem_url(os.environ.get('BASE_URL', 'http://localhost:5000'), c.code))
