"""
Tests for the SQL-backed document store, the file blob store and the
identity provider.
"""
import os
import unittest

from diabeater.errors import AuthorizationError, NotFoundError, ValidationError
from diabeater.store import collections
from diabeater.store.blobs import normalize_blob_path

from support import AppTestCase


class TestSqlDocumentStore(AppTestCase):

    def test_add_and_get_carries_id(self):
        doc_id = self.documents.add("feedbacks", {"rating": 5, "id": "ignored"})
        record = self.documents.get("feedbacks", doc_id)
        self.assertEqual(record["id"], doc_id)
        self.assertEqual(record["rating"], 5)

    def test_query_filters_and_keeps_insertion_order(self):
        first = self.documents.add("meal_plans", {"status": "APPROVED", "name": "A"})
        self.documents.add("meal_plans", {"status": "PENDING_APPROVAL", "name": "B"})
        third = self.documents.add("meal_plans", {"status": "APPROVED", "name": "C"})
        records = self.documents.query("meal_plans", status="APPROVED")
        self.assertEqual([r["id"] for r in records], [first, third])

    def test_update_merges_fields(self):
        doc_id = self.documents.add("meal_plans", {"status": "PENDING_APPROVAL", "name": "A"})
        record = self.documents.update("meal_plans", doc_id, {"status": "APPROVED"})
        self.assertEqual(record["status"], "APPROVED")
        self.assertEqual(record["name"], "A")

    def test_update_missing_record(self):
        with self.assertRaises(NotFoundError):
            self.documents.update("meal_plans", "nope", {"status": "APPROVED"})

    def test_delete_missing_record(self):
        with self.assertRaises(NotFoundError):
            self.documents.delete("meal_plans", "nope")

    def test_legacy_collection_name_resolves(self):
        self.documents.set("user-accounts", "u1", {"email": "a@b.io"})
        self.assertEqual(self.documents.get(collections.USER_ACCOUNTS, "u1")["email"], "a@b.io")

    def test_set_overwrites(self):
        self.documents.set("admins", "u1", {"email": "a@b.io", "extra": 1})
        self.documents.set("admins", "u1", {"email": "c@d.io"})
        self.assertEqual(self.documents.get("admins", "u1"), {"id": "u1", "email": "c@d.io"})


class TestFileBlobStore(AppTestCase):

    def test_upload_read_delete(self):
        blobs = self.backend.blobs
        url = blobs.upload("meal_plan_images/1_salmon.jpg", b"jpeg-bytes")
        self.assertEqual(url, "/files/meal_plan_images/1_salmon.jpg")
        self.assertTrue(os.path.exists(os.path.join(self.blob_dir, "meal_plan_images", "1_salmon.jpg")))
        self.assertEqual(blobs.read("meal_plan_images/1_salmon.jpg"), b"jpeg-bytes")
        blobs.delete("meal_plan_images/1_salmon.jpg")
        with self.assertRaises(NotFoundError):
            blobs.read("meal_plan_images/1_salmon.jpg")

    def test_deleting_missing_blob_is_skipped(self):
        self.backend.blobs.delete("meal_plan_images/never_uploaded.jpg")


class TestNormalizeBlobPath(unittest.TestCase):

    def test_strips_leading_slash(self):
        self.assertEqual(normalize_blob_path("/certificates/u1/cert.pdf"), "certificates/u1/cert.pdf")

    def test_rejects_escape(self):
        with self.assertRaises(ValidationError):
            normalize_blob_path("../secrets.txt")

    def test_rejects_empty(self):
        with self.assertRaises(ValidationError):
            normalize_blob_path("  ")


class TestSqlIdentityProvider(AppTestCase):

    def test_verify_returns_claims(self):
        uid = self.create_admin()
        result = self.backend.identity.verify("Admin@Diabeater.io ", "admin-pass")
        self.assertEqual(result["uid"], uid)
        self.assertEqual(result["claims"], {"admin": True})

    def test_wrong_password(self):
        self.create_admin()
        with self.assertRaises(AuthorizationError):
            self.backend.identity.verify("admin@diabeater.io", "wrong")

    def test_disabled_login_cannot_verify(self):
        uid = self.create_admin()
        self.backend.identity.disable(uid)
        with self.assertRaises(AuthorizationError):
            self.backend.identity.verify("admin@diabeater.io", "admin-pass")
        self.backend.identity.enable(uid)
        self.assertEqual(self.backend.identity.verify("admin@diabeater.io", "admin-pass")["uid"], uid)

    def test_duplicate_email(self):
        self.create_admin()
        with self.assertRaises(ValidationError):
            self.create_admin()

    def test_claims_missing_login(self):
        with self.assertRaises(NotFoundError):
            self.backend.identity.get_claims("nobody")


if __name__ == "__main__":
    unittest.main()
