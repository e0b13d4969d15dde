#!/usr/bin/env python3
import os, sys, csv, io
import argparse
import pathlib
import requests
import qrcode
from PIL import Image, ImageDraw, ImageFont

# Generate a batch of codes via /admin/generate and lay them out as printable cards
# Outputs: PNG per card, cards.csv, and optional A4 PDF sheet


def parse_args():
    p = argparse.ArgumentParser(description='Generate a code batch and render printable redeem cards')
    p.add_argument('--base-url', default=os.environ.get('BASE_URL', 'http://localhost:5000'), help='Service base URL')
    p.add_argument('--admin-key', default=os.environ.get('ADMIN_API_KEY'), help='X-Admin-Key (env ADMIN_API_KEY)')
    p.add_argument('--count', type=int, default=int(os.environ.get('COUNT', '10')), help='number of codes to generate')
    p.add_argument('--prefix', default=os.environ.get('CODE_PREFIX', ''), help='code prefix, e.g. TD-')
    p.add_argument('--batch', default=os.environ.get('BATCH_ID'), help='batch label (server default: today)')
    p.add_argument('--title', default=os.environ.get('SITE_NAME', 'Album Download'), help='card title')
    p.add_argument('--out', default='out', help='output directory root (default: out)')
    p.add_argument('--no-pdf', action='store_true', help='skip generating a combined A4 PDF sheet')
    return p.parse_args()


def ensure_dir(p: pathlib.Path):
    p.mkdir(parents=True, exist_ok=True)


def fetch_batch(base_url: str, key: str, count: int, prefix: str, batch: str | None) -> list[dict]:
    url = f"{base_url.rstrip('/')}/admin/generate"
    params = {'count': count, 'prefix': prefix}
    if batch:
        params['batch'] = batch
    r = requests.get(url, headers={'X-Admin-Key': key}, params=params, timeout=60)
    if r.status_code != 200:
        raise RuntimeError(f"generate failed {r.status_code}: {r.text[:200]}")
    return list(csv.DictReader(io.StringIO(r.text)))


def _text_width(draw: ImageDraw.ImageDraw, text: str, font) -> int:
    left, _, right, _ = draw.textbbox((0, 0), text, font=font)
    return right - left


def make_card(code: str, site_url: str, title: str, card_px=(800, 1000)) -> Image.Image:
    # Front: QR with the code prefilled, redeem URL and the code in print
    W, H = card_px
    bg = Image.new('RGB', (W, H), color=(255, 255, 255))
    draw = ImageDraw.Draw(bg)
    qr_url = f"{site_url.rstrip('/')}/?code={code}"
    qr = qrcode.make(qr_url).get_image().convert('RGB')
    qr_size = min(W - 120, int(H * 0.5))
    qr = qr.resize((qr_size, qr_size), Image.LANCZOS)
    qr_x = (W - qr_size) // 2
    qr_y = 180
    bg.paste(qr, (qr_x, qr_y))
    # Fonts (fallback to default)
    try:
        font_title = ImageFont.truetype('Arial.ttf', 42)
        font_sub = ImageFont.truetype('Arial.ttf', 28)
        font_foot = ImageFont.truetype('Arial.ttf', 36)
    except OSError:
        font_title = ImageFont.load_default()
        font_sub = ImageFont.load_default()
        font_foot = ImageFont.load_default()
    subtitle = f"Redeem at: {site_url}"
    footer = f"CODE: {code}"
    draw.text(((W - _text_width(draw, title, font_title)) // 2, 30), title, fill=(0, 0, 0), font=font_title)
    draw.text(((W - _text_width(draw, subtitle, font_sub)) // 2, 100), subtitle, fill=(30, 30, 30), font=font_sub)
    draw.text(((W - _text_width(draw, footer, font_foot)) // 2, qr_y + qr_size + 40), footer, fill=(0, 0, 0), font=font_foot)
    return bg


def save_pdf_sheet(images: list[Image.Image], out_pdf: pathlib.Path, cols=2, rows=3, margin=50):
    if not images:
        return
    # A4 at 300 DPI ≈ 2480x3508 px
    page_w, page_h = 2480, 3508
    card_w = (page_w - margin * (cols + 1)) // cols
    card_h = (page_h - margin * (rows + 1)) // rows
    per_page = cols * rows
    pages = []
    for start in range(0, len(images), per_page):
        page = Image.new('RGB', (page_w, page_h), color=(255, 255, 255))
        for i, img in enumerate(images[start:start + per_page]):
            r, c = divmod(i, cols)
            card = img.resize((card_w, card_h), Image.LANCZOS)
            page.paste(card, (margin + c * (card_w + margin), margin + r * (card_h + margin)))
        pages.append(page)
    pages[0].save(out_pdf, save_all=True, append_images=pages[1:], resolution=300)


def main():
    args = parse_args()
    if not args.admin_key:
        print('ERROR: missing --admin-key or env ADMIN_API_KEY', file=sys.stderr)
        sys.exit(1)

    print(f"→ Generating {args.count} codes on {args.base_url} (prefix={args.prefix!r})…")
    try:
        rows = fetch_batch(args.base_url, args.admin_key, args.count, args.prefix, args.batch)
    except (requests.RequestException, RuntimeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)
    batch = rows[0]['batch'] if rows else (args.batch or 'empty')

    out_root = pathlib.Path(args.out) / batch
    png_dir = out_root / 'png'
    ensure_dir(png_dir)
    csv_path = out_root / 'cards.csv'
    pdf_path = out_root / 'cards.pdf'

    cards = []
    written = []
    for i, row in enumerate(rows):
        code = row['code']
        card = make_card(code, row.get('redeem_url') or args.base_url, args.title)
        png_path = png_dir / f"card_{code}.png"
        card.save(png_path)
        cards.append(card)
        written.append({'code': code, 'batch': row['batch'], 'redeemed': row['redeemed'], 'png': str(png_path.relative_to(out_root))})
        print(f"[{i+1}/{len(rows)}] {code}")

    with open(csv_path, 'w', newline='') as f:
        w = csv.DictWriter(f, fieldnames=['code', 'batch', 'redeemed', 'png'])
        w.writeheader()
        for r in written:
            w.writerow(r)

    if not args.no_pdf:
        save_pdf_sheet(cards, pdf_path)
        print(f"✅ Wrote PDF: {pdf_path}")

    print(f"✅ Done. CSV: {csv_path}\nPNG dir: {png_dir}")


if __name__ == '__main__':
    main()
