from flask_login import UserMixin
from datetime import datetime
import json
import uuid

from diabeater import db
from werkzeug.security import generate_password_hash, check_password_hash


def _new_uid():
    return uuid.uuid4().hex


class User(db.Model, UserMixin):
    """
    Login credential held by the identity provider.

    The profile data (names, role, status) lives in the ``user_accounts``
    document keyed by the same id; this row only carries what is needed to
    authenticate and authorize.
    """
    id = db.Column(db.String(64), primary_key=True, default=_new_uid)
    email = db.Column(db.String(254), nullable=False, unique=True)
    password_hash = db.Column(db.String(256))
    display_name = db.Column(db.String(100), nullable=False)
    time_zone = db.Column(db.String(50), nullable=False, default='Asia/Singapore')
    claims_json = db.Column(db.Text, nullable=False, default='{}')
    disabled = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def claims(self):
        return json.loads(self.claims_json or '{}')

    @claims.setter
    def claims(self, value):
        self.claims_json = json.dumps(value or {}, sort_keys=True)

    @property
    def is_admin(self):
        return self.claims.get('admin') is True

    @property
    def is_nutritionist(self):
        claims = self.claims
        return claims.get('nutritionist') is True and claims.get('approved') is True

    @property
    def role(self):
        if self.is_admin:
            return 'admin'
        if self.is_nutritionist:
            return 'nutritionist'
        return 'user'

    @property
    def is_active(self):
        # Flask-Login refuses to log in inactive users
        return not self.disabled

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'


class LogEntry(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    actor_id = db.Column(db.String(64), db.ForeignKey('user.id'))
    project = db.Column(db.String(50), nullable=True)
    category = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=False)

    actor = db.relationship('User', backref=db.backref('log_entries', lazy=True))

    def __repr__(self):
        return f'<LogEntry {self.timestamp} - {self.project}/{self.category}>'


class StoredDocument(db.Model):
    """One record of the document store, addressed by (collection, doc_id)."""
    __tablename__ = 'stored_document'

    # Autoincrement key doubles as insertion order for query results
    pk = db.Column(db.Integer, primary_key=True)
    collection = db.Column(db.String(64), nullable=False, index=True)
    doc_id = db.Column(db.String(64), nullable=False)
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('collection', 'doc_id', name='uq_stored_document_collection_doc'),
    )

    def __repr__(self):
        return f'<StoredDocument {self.collection}/{self.doc_id}>'
