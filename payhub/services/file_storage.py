import logging
import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from payhub.errors import ValidationFailed

logger = logging.getLogger(__name__)

CSV_MIMETYPES = {'text/csv', 'application/csv', 'application/vnd.ms-excel', 'text/plain'}
PDF_MIMETYPES = {'application/pdf', 'application/x-pdf'}


def _extension(filename):
    _, ext = os.path.splitext(filename or '')
    return ext.lower()


def require_file(file_storage, kind, mimetypes, extension, message):
    """
    Check an uploaded file is present and looks like `kind`.

    Accepted when either the declared mimetype or the file extension
    matches.
    """
    if file_storage is None or not file_storage.filename:
        raise ValidationFailed("No file uploaded")

    mimetype = (file_storage.mimetype or '').lower()
    if mimetype not in mimetypes and _extension(file_storage.filename) != extension:
        logger.debug("Rejected %s upload %s (%s)", kind, file_storage.filename, mimetype)
        raise ValidationFailed(message)
    return file_storage


def require_csv(file_storage):
    return require_file(file_storage, 'csv', CSV_MIMETYPES, '.csv', "Only CSV files are allowed")


def require_pdf(file_storage):
    return require_file(file_storage, 'pdf', PDF_MIMETYPES, '.pdf', "Only PDF files are allowed")


def save_upload(file_storage, prefix, default_extension):
    """
    Write an upload under UPLOAD_FOLDER with a random name.

    Returns:
        tuple: (absolute stored path, sanitised original file name)
    """
    folder = os.path.abspath(current_app.config['UPLOAD_FOLDER'])
    os.makedirs(folder, exist_ok=True)

    original_name = secure_filename(file_storage.filename) or f"{prefix}{default_extension}"
    extension = _extension(original_name) or default_extension
    stored_path = os.path.join(folder, f"{prefix}-{uuid.uuid4().hex}{extension}")
    file_storage.save(stored_path)

    logger.info("Stored upload %s as %s", original_name, stored_path)
    return stored_path, original_name


def remove_file(path):
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError as exc:
            logger.warning("Could not remove %s: %s", path, exc)
