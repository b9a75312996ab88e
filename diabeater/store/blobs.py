"""
Blob storage for meal plan images, nutritionist certificates and profile
pictures.
"""
import logging
import os
import posixpath

from diabeater.errors import NotFoundError, TransientIOError, ValidationError

logger = logging.getLogger(__name__)


class BlobStore:

    def upload(self, path, data, content_type=None):
        """Store bytes under ``path`` and return a URL that serves them."""
        raise NotImplementedError

    def read(self, path):
        raise NotImplementedError

    def delete(self, path):
        raise NotImplementedError


def normalize_blob_path(path):
    """
    Normalize a slash-separated blob path, rejecting anything that would
    escape the storage root.
    """
    if not path or not path.strip():
        raise ValidationError("Blob path cannot be empty.")
    cleaned = posixpath.normpath(path.strip().replace('\\', '/')).lstrip('/')
    if cleaned in ('', '.') or cleaned.startswith('..') or '/../' in f'/{cleaned}/':
        raise ValidationError(f"Invalid blob path: {path}")
    return cleaned


class FileBlobStore(BlobStore):
    """Blobs kept as files under a root directory."""

    def __init__(self, root, base_url='/files'):
        self.root = root
        self.base_url = base_url.rstrip('/')

    def _full_path(self, path):
        return os.path.join(self.root, *normalize_blob_path(path).split('/'))

    def url_for(self, path):
        return f"{self.base_url}/{normalize_blob_path(path)}"

    def upload(self, path, data, content_type=None):
        full_path = self._full_path(path)
        try:
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            with open(full_path, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Failed to upload blob {path}: {e}")
            raise TransientIOError(f"Could not upload file {posixpath.basename(path)}.") from e
        logger.info(f"Uploaded blob {path} ({len(data)} bytes)")
        return self.url_for(path)

    def read(self, path):
        full_path = self._full_path(path)
        try:
            with open(full_path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            raise NotFoundError(f"File {path} not found.")
        except OSError as e:
            logger.error(f"Failed to read blob {path}: {e}")
            raise TransientIOError(f"Could not read file {posixpath.basename(path)}.") from e

    def delete(self, path):
        """Delete a blob. A blob that is already gone is logged and skipped."""
        full_path = self._full_path(path)
        try:
            os.remove(full_path)
            logger.info(f"Deleted blob {path}")
        except FileNotFoundError:
            logger.warning(f"Blob {path} not found in storage. Skipping deletion.")
        except OSError as e:
            logger.error(f"Failed to delete blob {path}: {e}")
            raise TransientIOError(f"Could not delete file {posixpath.basename(path)}.") from e
