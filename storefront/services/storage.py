# storefront/services/storage.py
"""Product image files on local disk, served back under ``/uploads``."""
import os
import secrets
import time

import structlog
from flask import current_app
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

from ..errors import ValidationError

log = structlog.get_logger(__name__)

URL_PREFIX = "/uploads/"
MAX_IMAGE_SIZE = 5 * 1024 * 1024
ALLOWED_MIMETYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}


def upload_folder():
    folder = current_app.config.get("UPLOAD_FOLDER")
    if not folder:
        folder = os.path.join(current_app.root_path, current_app.config.get("UPLOAD_SUBDIR", "static/uploads"))
    return folder


def _size(file_storage):
    stream = file_storage.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def validate_image(file_storage):
    """Raise ValidationError unless this is a JPEG/PNG/WebP/GIF of at most 5MB."""
    if not file_storage or not file_storage.filename:
        raise ValidationError("No file selected")
    if file_storage.mimetype not in ALLOWED_MIMETYPES:
        raise ValidationError("Invalid file type. Please upload JPEG, PNG, WebP, or GIF.")
    if _size(file_storage) > MAX_IMAGE_SIZE:
        raise ValidationError("File too large. Maximum size is 5MB.")


def _extension(filename):
    name = secure_filename(filename or "")
    if "." in name:
        ext = name.rsplit(".", 1)[1].lower()
        if ext in ALLOWED_EXTENSIONS:
            return ext
    return "jpg"


def save_file(file_storage, path):
    """Store ``file_storage`` at ``path`` (relative to the upload folder)."""
    abs_path = safe_join(upload_folder(), path)
    if abs_path is None:
        raise ValidationError("Invalid storage path")
    os.makedirs(os.path.dirname(abs_path), exist_ok=True)
    file_storage.save(abs_path)
    return {"url": URL_PREFIX + path, "path": path}


def save_product_image(file_storage, product_slug):
    validate_image(file_storage)
    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.{_extension(file_storage.filename)}"
    slug = secure_filename(product_slug) or "product"
    result = save_file(file_storage, f"products/{slug}/{filename}")
    log.info("product_image_saved", path=result["path"])
    return result


def delete_file(path):
    abs_path = safe_join(upload_folder(), path)
    if abs_path is None:
        raise ValidationError("Invalid storage path")
    os.remove(abs_path)


def path_from_url(url):
    if not url or not url.startswith(URL_PREFIX):
        return None
    return url[len(URL_PREFIX):] or None


def delete_file_by_url(url):
    """Remove a file we stored; foreign URLs and missing files are skipped."""
    path = path_from_url(url)
    if not path:
        return False
    try:
        delete_file(path)
    except (OSError, ValidationError) as e:
        log.warning("image_delete_skipped", path=path, error=str(e))
        return False
    return True
