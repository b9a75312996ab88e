"""
Shared helpers for the DiaBeater tests: an app on in-memory SQLite with a
temporary blob directory, plus record builders for seeding the store.
"""
import shutil
import tempfile
import unittest

from diabeater import create_app, db
from diabeater.store import get_backend
from diabeater.store import collections


def _create_test_app(blob_dir):
    return create_app({
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "BLOB_STORAGE_DIR": blob_dir,
        "BLOB_BASE_URL": "/files",
    })


def meal_plan_record(name, status="PENDING_APPROVAL", author_id="nutri-1", **fields):
    record = {
        "name": name,
        "description": "",
        "author": "Nina Tan",
        "authorId": author_id,
        "status": status,
        "categories": [],
        "ingredients": ["1 cup rice"],
        "steps": "Cook.",
        "saveCount": 0,
        "likes": 0,
        "imageFileName": "",
        "imageUrl": "",
    }
    record.update(fields)
    return record


class AppTestCase(unittest.TestCase):
    """Creates a fresh app, database and blob directory for every test."""

    def setUp(self):
        self.blob_dir = tempfile.mkdtemp()
        self.app = _create_test_app(self.blob_dir)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.backend = get_backend()
        self.documents = self.backend.documents
        self.client = self.app.test_client()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()
        shutil.rmtree(self.blob_dir, ignore_errors=True)

    def add_plan(self, name, **kwargs):
        return self.documents.add(collections.MEAL_PLANS, meal_plan_record(name, **kwargs))

    def create_admin(self, email="admin@diabeater.io", password="admin-pass", name="Alice Admin"):
        return self.backend.identity.create_login(email, password, name, claims={"admin": True})

    def create_nutritionist(self, email="nina@diabeater.io", password="nutri-pass", first="Nina", last="Tan"):
        uid = self.backend.identity.create_login(
            email, password, f"{first} {last}",
            claims={"nutritionist": True, "approved": True, "rejected": False},
        )
        self.documents.set(collections.USER_ACCOUNTS, uid, {
            "email": email,
            "firstName": first,
            "lastName": last,
            "role": "nutritionist",
            "status": "Active",
        })
        return uid

    def login(self, email, password):
        return self.client.post("/auth/login", json={"email": email, "password": password})
