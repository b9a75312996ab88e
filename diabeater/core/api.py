"""
Shared plumbing for the JSON blueprints: role gates, error responses and
request helpers.
"""
import logging
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

from diabeater.errors import DiabeaterError
from diabeater.repositories import Repositories
from diabeater.store import get_backend

logger = logging.getLogger(__name__)


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({"error": "Admin access required."}), 403
        return f(*args, **kwargs)

    return decorated_function


def nutritionist_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_nutritionist:
            return jsonify({"error": "Approved nutritionist access required."}), 403
        return f(*args, **kwargs)

    return decorated_function


def get_repositories():
    return Repositories(get_backend())


def form_error_response(form):
    errors = {name: messages for name, messages in form.errors.items() if name != 'csrf_token'}
    if 'csrf_token' in form.errors:
        return jsonify({"error": "The form expired. Please refresh and try again."}), 400
    first = next(iter(errors.values()), ["Invalid input."])
    return jsonify({"error": first[0], "fields": errors}), 400


def read_upload(storage):
    """Return ``(filename, bytes, content_type)`` for an uploaded file, or None."""
    if storage is None or not getattr(storage, 'filename', None):
        return None
    return storage.filename, storage.read(), storage.mimetype


def json_body():
    return request.get_json(silent=True) or {}


def handle_diabeater_error(e):
    if e.status_code >= 500:
        logger.error(f"{request.method} {request.path} failed: {e.message}")
    else:
        logger.info(f"{request.method} {request.path} refused ({e.status_code}): {e.message}")
    return jsonify({"error": e.message}), e.status_code


def register_error_handlers(bp):
    bp.register_error_handler(DiabeaterError, handle_diabeater_error)
