import mimetypes
import posixpath

from flask import Blueprint, Response
from flask_login import login_required

from diabeater.core.api import register_error_handlers
from diabeater.store import get_backend

files_bp = Blueprint("files", __name__)
register_error_handlers(files_bp)


@files_bp.route("/<path:blob_path>", methods=["GET"])
@login_required
def serve_file(blob_path):
    """Serve a stored image or certificate to logged-in portal users."""
    data = get_backend().blobs.read(blob_path)
    content_type = mimetypes.guess_type(posixpath.basename(blob_path))[0] or "application/octet-stream"
    return Response(data, mimetype=content_type)
