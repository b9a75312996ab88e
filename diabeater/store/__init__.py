"""
Managed-backend adapters. The app keeps one ``Backend`` bundle in
``app.extensions``; tests may swap any of its members.
"""
from flask import current_app

from diabeater.store.blobs import BlobStore, FileBlobStore
from diabeater.store.documents import DocumentStore, SqlDocumentStore
from diabeater.store.identity import IdentityProvider, SqlIdentityProvider

EXTENSION_KEY = 'diabeater_backend'


class Backend:

    def __init__(self, documents, blobs, identity):
        self.documents = documents
        self.blobs = blobs
        self.identity = identity


def init_backend(app):
    app.extensions[EXTENSION_KEY] = Backend(
        documents=SqlDocumentStore(),
        blobs=FileBlobStore(app.config['BLOB_STORAGE_DIR'], app.config.get('BLOB_BASE_URL', '/files')),
        identity=SqlIdentityProvider(),
    )


def get_backend():
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    'Backend',
    'BlobStore',
    'DocumentStore',
    'FileBlobStore',
    'IdentityProvider',
    'SqlDocumentStore',
    'SqlIdentityProvider',
    'get_backend',
    'init_backend',
]
