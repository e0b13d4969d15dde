import os

from flask import abort, send_from_directory


def list_files(directory: str, allowed_extensions) -> list[str]:
    """Names of downloadable files in `directory`, sorted."""
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return []
    allowed = {e.lower() for e in allowed_extensions}
    return sorted(
        n for n in names
        if os.path.splitext(n)[1].lower() in allowed and os.path.isfile(os.path.join(directory, n))
    )


def safe_name(name: str) -> str:
    # bare file name, no directory parts
    return os.path.basename(name.replace('\\', '/'))


def serve_file(directory: str, name: str, allowed_extensions):
    name = safe_name(name)
    if not name or name not in list_files(directory, allowed_extensions):
        abort(404)
    return send_from_directory(directory, name, as_attachment=True)
