"""
Document store: collections of JSON records addressed by opaque string ids.

``DocumentStore`` is the interface the repositories program against.
``SqlDocumentStore`` keeps every collection in one Flask-SQLAlchemy table.
"""
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError

from diabeater import db
from diabeater.errors import NotFoundError, TransientIOError
from diabeater.models import StoredDocument
from diabeater.store.collections import resolve

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Records are plain dicts. Every record returned by the store carries its
    id under the ``id`` key; that key is never written back into the data.
    """

    def query(self, collection, **equals):
        raise NotImplementedError

    def get(self, collection, doc_id):
        raise NotImplementedError

    def add(self, collection, record, doc_id=None):
        raise NotImplementedError

    def set(self, collection, doc_id, record):
        raise NotImplementedError

    def update(self, collection, doc_id, partial):
        raise NotImplementedError

    def delete(self, collection, doc_id):
        raise NotImplementedError


def _strip_id(record):
    return {key: value for key, value in record.items() if key != 'id'}


def _to_record(row):
    record = dict(row.data or {})
    record['id'] = row.doc_id
    return record


class SqlDocumentStore(DocumentStore):

    def __init__(self, session=None):
        self.session = session or db.session

    def _commit(self, action):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Document store {action} failed: {e}")
            raise TransientIOError(f"Could not {action}. Please try again.") from e

    def _find(self, collection, doc_id):
        try:
            return self.session.query(StoredDocument).filter_by(
                collection=resolve(collection), doc_id=doc_id
            ).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Document store lookup {collection}/{doc_id} failed: {e}")
            raise TransientIOError(f"Could not load {collection} record. Please try again.") from e

    def query(self, collection, **equals):
        """
        Return every record of a collection whose fields equal the given values,
        in insertion order.
        """
        try:
            rows = (
                self.session.query(StoredDocument)
                .filter_by(collection=resolve(collection))
                .order_by(StoredDocument.pk)
                .all()
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Document store query on {collection} failed: {e}")
            raise TransientIOError(f"Could not load {collection}. Please try again.") from e

        records = []
        for row in rows:
            data = row.data or {}
            if all(data.get(field) == value for field, value in equals.items()):
                records.append(_to_record(row))
        return records

    def get(self, collection, doc_id):
        row = self._find(collection, doc_id)
        if row is None:
            raise NotFoundError(f"No {collection} record with id {doc_id}.")
        return _to_record(row)

    def add(self, collection, record, doc_id=None):
        doc_id = doc_id or uuid.uuid4().hex
        row = StoredDocument(collection=resolve(collection), doc_id=doc_id, data=_strip_id(record))
        self.session.add(row)
        self._commit(f"save {collection} record")
        return doc_id

    def set(self, collection, doc_id, record):
        """Create or fully overwrite a record under a caller-chosen id."""
        row = self._find(collection, doc_id)
        if row is None:
            row = StoredDocument(collection=resolve(collection), doc_id=doc_id)
            self.session.add(row)
        row.data = _strip_id(record)
        self._commit(f"save {collection} record")
        return doc_id

    def update(self, collection, doc_id, partial):
        row = self._find(collection, doc_id)
        if row is None:
            raise NotFoundError(f"No {collection} record with id {doc_id}.")
        # Assign a new dict so the JSON column is flagged as changed
        row.data = {**(row.data or {}), **_strip_id(partial)}
        self._commit(f"update {collection} record")
        return _to_record(row)

    def delete(self, collection, doc_id):
        row = self._find(collection, doc_id)
        if row is None:
            raise NotFoundError(f"No {collection} record with id {doc_id}.")
        self.session.delete(row)
        self._commit(f"delete {collection} record")
