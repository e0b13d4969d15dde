#!/usr/bin/env python3
import sys, json, redis

# Usage: python scripts/check_session.py <REDIS_URL> <SESSION_ID>
# Shows the stored session record and its remaining TTL

if len(sys.argv) < 3:
    print("Usage: check_session.py <REDIS_URL> <SESSION_ID>")
    sys.exit(1)

url = sys.argv[1].strip()
session_id = sys.argv[2].strip()

r = redis.from_url(url, decode_responses=True)

key = f"sess:{session_id}"
sess = r.get(key)

print(json.dumps({
    'redis': url,
    'sess_key': key,
    'session': json.loads(sess) if sess else None,
    'ttl_s': r.ttl(key),
}, indent=2))
