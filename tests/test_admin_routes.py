"""
Tests for the admin JSON API through the Flask test client.
"""
import io
import unittest
from unittest.mock import patch

from diabeater.errors import TransientIOError
from diabeater.repositories.notifications import NotificationRepository

from support import AppTestCase


class TestPortalLogin(AppTestCase):

    def test_admin_login(self):
        self.create_admin()
        r = self.login("admin@diabeater.io", "admin-pass")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["user"]["role"], "admin")

    def test_bad_password(self):
        self.create_admin()
        r = self.login("admin@diabeater.io", "nope")
        self.assertEqual(r.status_code, 403)
        self.assertIn("error", r.get_json())

    def test_plain_user_is_refused(self):
        self.backend.identity.create_login("pat@diabeater.io", "pat-pass", "Pat")
        r = self.login("pat@diabeater.io", "pat-pass")
        self.assertEqual(r.status_code, 403)
        self.assertIn("only available", r.get_json()["error"])

    def test_pending_nutritionist_is_refused(self):
        self.backend.identity.create_login(
            "rita@diabeater.io", "rita-pass", "Rita Lim",
            claims={"nutritionist": True, "approved": False},
        )
        r = self.login("rita@diabeater.io", "rita-pass")
        self.assertEqual(r.status_code, 403)
        self.assertIn("pending", r.get_json()["error"])

    def test_missing_fields(self):
        r = self.client.post("/auth/login", json={"email": "admin@diabeater.io"})
        self.assertEqual(r.status_code, 400)
        self.assertIn("password", r.get_json()["fields"])

    def test_me_requires_login(self):
        self.assertEqual(self.client.get("/auth/me").status_code, 401)


class TestAdminAccess(AppTestCase):

    def test_anonymous_gets_401(self):
        self.assertEqual(self.client.get("/admin/meal-plans").status_code, 401)

    def test_nutritionist_gets_403(self):
        self.create_nutritionist()
        self.login("nina@diabeater.io", "nutri-pass")
        r = self.client.get("/admin/meal-plans")
        self.assertEqual(r.status_code, 403)


class AdminTestCase(AppTestCase):

    def setUp(self):
        super().setUp()
        self.admin_id = self.create_admin()
        self.login("admin@diabeater.io", "admin-pass")


class TestMealPlanModeration(AdminTestCase):

    def test_herb_salmon_review(self):
        nina = self.create_nutritionist()
        plan_id = self.add_plan("Herb Salmon", author_id=nina, categories=["Dinner"])
        self.add_plan("Oat Porridge", author_id=nina)

        r = self.client.get("/admin/meal-plans?tab=PENDING_APPROVAL")
        data = r.get_json()
        self.assertEqual(data["counts"], {"pending": 2, "approved": 0, "rejected": 0})
        self.assertEqual([p["name"] for p in data["mealPlans"]], ["Herb Salmon", "Oat Porridge"])

        r = self.client.post(f"/admin/meal-plans/{plan_id}/decision", json={"verdict": "APPROVED"})
        self.assertEqual(r.status_code, 200)
        data = r.get_json()
        self.assertEqual(data["mealPlan"]["status"], "APPROVED")
        self.assertEqual(data["counts"], {"pending": 1, "approved": 1, "rejected": 0})
        self.assertEqual(data["notification"]["recipientId"], nina)
        self.assertEqual(data["notification"]["message"],
                         'Your meal plan "Herb Salmon" has been APPROVED by Alice Admin.')

        r = self.client.get("/admin/meal-plans?tab=APPROVED")
        self.assertEqual([p["id"] for p in r.get_json()["mealPlans"]], [plan_id])

        notifications = NotificationRepository(self.documents).get_notifications(nina)
        self.assertEqual(len(notifications), 1)
        self.assertFalse(notifications[0].read)

    def test_rejection_requires_reason(self):
        plan_id = self.add_plan("Herb Salmon")
        r = self.client.post(f"/admin/meal-plans/{plan_id}/decision", json={"verdict": "REJECTED"})
        self.assertEqual(r.status_code, 400)
        self.assertIn("reason", r.get_json()["error"])

    def test_rejection_with_reason(self):
        plan_id = self.add_plan("Herb Salmon")
        r = self.client.post(f"/admin/meal-plans/{plan_id}/decision",
                             json={"verdict": "REJECTED", "reason": "Too much sodium"})
        data = r.get_json()
        self.assertEqual(data["mealPlan"]["rejectionReason"], "Too much sodium")
        self.assertEqual(data["counts"]["rejected"], 1)

    def test_unknown_plan(self):
        r = self.client.post("/admin/meal-plans/missing/decision", json={"verdict": "APPROVED"})
        self.assertEqual(r.status_code, 404)

    @patch("diabeater.repositories.notifications.NotificationRepository.add_notification",
           side_effect=TransientIOError("Could not save notifications record."))
    def test_notification_failure_returns_warning(self, mock_add):
        plan_id = self.add_plan("Herb Salmon")
        r = self.client.post(f"/admin/meal-plans/{plan_id}/decision", json={"verdict": "APPROVED"})
        self.assertEqual(r.status_code, 200)
        data = r.get_json()
        self.assertEqual(data["mealPlan"]["status"], "APPROVED")
        self.assertIn("notification", data["warning"])
        self.assertNotIn("notification", data)

    def test_popular_tab(self):
        self.add_plan("Grilled Chicken", status="APPROVED", saveCount=4)
        self.add_plan("Chicken Pending", status="PENDING_APPROVAL", saveCount=40)
        data = self.client.get("/admin/meal-plans?tab=POPULAR").get_json()
        self.assertEqual([p["name"] for p in data["mealPlans"]], ["Grilled Chicken"])
        self.assertEqual(len(data["cohorts"]["most_saved"]), 1)

    def test_delete_meal_plan(self):
        plan_id = self.add_plan("Herb Salmon")
        self.assertEqual(self.client.delete(f"/admin/meal-plans/{plan_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/admin/meal-plans/{plan_id}").status_code, 404)


class TestAdminUsersAndCategories(AdminTestCase):

    def test_category_crud(self):
        r = self.client.post("/admin/categories", json={"name": "Vegan", "description": "Plants"})
        self.assertEqual(r.status_code, 201)
        category_id = r.get_json()["category"]["id"]

        r = self.client.put(f"/admin/categories/{category_id}", json={"name": "Vegan Meals"})
        self.assertEqual(r.get_json()["category"]["categoryName"], "Vegan Meals")

        r = self.client.delete(f"/admin/categories/{category_id}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.client.get("/admin/categories").get_json()["categories"], [])

    def test_blank_category_name(self):
        r = self.client.post("/admin/categories", json={"name": "   "})
        self.assertEqual(r.status_code, 400)

    def test_suspend_and_unsuspend(self):
        uid = self.create_nutritionist()
        r = self.client.post(f"/admin/users/{uid}/suspend")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["user"]["status"], "Inactive")
        r = self.client.post(f"/admin/users/{uid}/unsuspend")
        self.assertEqual(r.get_json()["user"]["status"], "Active")

    def test_cannot_suspend_self(self):
        r = self.client.post(f"/admin/users/{self.admin_id}/suspend")
        self.assertEqual(r.status_code, 400)

    def test_user_search(self):
        self.create_nutritionist()
        self.create_nutritionist(email="omar@diabeater.io", first="Omar", last="Haddad")
        data = self.client.get("/admin/users?role=nutritionist&search=omar").get_json()
        self.assertEqual([u["email"] for u in data["users"]], ["omar@diabeater.io"])

    def test_unknown_role_filter(self):
        self.assertEqual(self.client.get("/admin/users?role=wizard").status_code, 400)

    @patch("diabeater.services.accounts.send_nutritionist_approval_email", return_value={"id": "msg"})
    def test_application_approval(self, mock_email):
        r = self.client.post("/auth/apply", data={
            "first_name": "Rita",
            "last_name": "Lim",
            "email": "rita@diabeater.io",
            "password": "rita-pass",
            "certificate": (io.BytesIO(b"%PDF-1.4"), "licence.pdf"),
        }, content_type="multipart/form-data")
        self.assertEqual(r.status_code, 201)
        uid = r.get_json()["application"]["id"]

        pending = self.client.get("/admin/applications?status=pending").get_json()["applications"]
        self.assertEqual([a["id"] for a in pending], [uid])

        r = self.client.get(f"/admin/applications/{uid}/certificate")
        certificate_url = r.get_json()["certificateUrl"]
        self.assertEqual(self.client.get(certificate_url).data, b"%PDF-1.4")

        r = self.client.post(f"/admin/applications/{uid}/approve")
        self.assertEqual(r.get_json()["emailSent"], True)
        self.assertEqual(self.client.get("/admin/applications?status=pending").get_json()["applications"], [])


class TestConsoleAccounts(AdminTestCase):

    def _admin_form(self, **overrides):
        form = {
            "first_name": "Bob",
            "last_name": "Builder",
            "email": "Bob@Diabeater.io",
            "password": "bob-pass",
            "confirm_password": "bob-pass",
            "dob": "1985-06-15",
        }
        form.update(overrides)
        return form

    def test_create_admin_account(self):
        r = self.client.post("/admin/admins", json=self._admin_form())
        self.assertEqual(r.status_code, 201)
        user = r.get_json()["user"]
        self.assertEqual(user["email"], "bob@diabeater.io")
        self.assertEqual(user["role"], "admin")
        self.assertEqual(user["status"], "Active")
        self.assertEqual(self.documents.get("admins", user["id"])["email"], "bob@diabeater.io")
        self.assertTrue(self.backend.identity.get_claims(user["id"])["admin"])

        self.client.post("/auth/logout")
        self.assertEqual(self.login("bob@diabeater.io", "bob-pass").get_json()["user"]["role"], "admin")

    def test_create_admin_validation(self):
        r = self.client.post("/admin/admins", json=self._admin_form(confirm_password="other", dob="2020-01-01"))
        self.assertEqual(r.status_code, 400)
        self.assertEqual(set(r.get_json()["fields"]), {"confirm_password", "dob"})
        self.assertIsNone(self.backend.identity.find_by_email("bob@diabeater.io"))

    def test_create_admin_with_taken_email(self):
        r = self.client.post("/admin/admins", json=self._admin_form(email="admin@diabeater.io"))
        self.assertEqual(r.status_code, 400)

    @patch("diabeater.repositories.user_accounts.UserAccountRepository.register_admin",
           side_effect=TransientIOError("Could not save admins record."))
    def test_failed_admin_record_removes_login(self, mock_register):
        r = self.client.post("/admin/admins", json=self._admin_form())
        self.assertEqual(r.status_code, 503)
        self.assertIsNone(self.backend.identity.find_by_email("bob@diabeater.io"))
        self.assertEqual(self.documents.query("user_accounts", role="admin"), [])

    def test_premium_accounts_with_latest_subscription(self):
        nina = self.create_nutritionist()
        self.documents.set("user_accounts", "u-prem", {"email": "pat@diabeater.io", "isPremium": True})
        self.documents.add("subscriptions", {"userId": "u-prem", "plan": "Premium Plan", "price": 9.99,
                                             "createdAt": "2026-01-01T00:00:00"})
        latest = self.documents.add("subscriptions", {"userId": "u-prem", "plan": "Premium Plan", "price": 12.5,
                                                      "createdAt": "2026-03-01T00:00:00"})

        users = self.client.get("/admin/premium-accounts").get_json()["users"]
        self.assertEqual([u["id"] for u in users], ["u-prem"])
        self.assertNotIn(nina, [u["id"] for u in users])
        self.assertEqual(users[0]["currentSubscription"]["id"], latest)

        history = self.client.get("/admin/premium-accounts/u-prem/subscriptions").get_json()["subscriptions"]
        self.assertEqual([s["price"] for s in history], [12.5, 9.99])

    def test_premium_account_without_subscription(self):
        self.documents.set("user_accounts", "u-prem", {"email": "pat@diabeater.io", "isPremium": True})
        users = self.client.get("/admin/premium-accounts").get_json()["users"]
        self.assertIsNone(users[0]["currentSubscription"])


class TestRewardRoutes(AdminTestCase):

    def test_reward_crud(self):
        self.documents.add("reward_templates", {"title": "Subscription Discount", "type": "premium"})
        r = self.client.post("/admin/rewards", json={
            "type": "premium", "reward": "Subscription Discount", "discount": 20, "pointsNeeded": 800,
        })
        self.assertEqual(r.status_code, 201)
        reward_id = r.get_json()["reward"]["id"]

        data = self.client.get("/admin/rewards?type=premium").get_json()
        self.assertEqual([t["name"] for t in data["templates"]], ["Subscription Discount"])
        self.assertEqual([rw["id"] for rw in data["rewards"]], [reward_id])
        self.assertEqual(self.client.get("/admin/rewards?type=basic").get_json()["rewards"], [])

        r = self.client.put(f"/admin/rewards/{reward_id}", json={"discount": 25})
        self.assertEqual(r.get_json()["reward"]["discount"], 25.0)

        self.assertEqual(self.client.delete(f"/admin/rewards/{reward_id}").status_code, 200)
        self.assertEqual(self.client.get("/admin/rewards").get_json()["rewards"], [])

    def test_reward_errors(self):
        self.assertEqual(self.client.post("/admin/rewards", json={"name": "Export PDF"}).status_code, 400)
        self.assertEqual(self.client.get("/admin/rewards?type=gold").status_code, 400)
        self.assertEqual(self.client.put("/admin/rewards/missing", json={"quantity": 1}).status_code, 404)


class TestAdminContent(AdminTestCase):

    def test_marketing_defaults_and_update(self):
        content = self.client.get("/admin/marketing").get_json()["content"]
        self.assertEqual(content["headerLogoText"], "DiaBeater")
        self.assertTrue(content["isHosted"])

        r = self.client.put("/admin/marketing", json={"heroTitle": "Eat well"})
        self.assertEqual(r.get_json()["content"]["heroTitle"], "Eat well")

        r = self.client.post("/admin/marketing/stop-hosting")
        self.assertFalse(r.get_json()["content"]["isHosted"])

    def test_marketing_preview_lists_featured_testimonials(self):
        five = self.documents.add("feedbacks", {"rating": 5, "category": "compliment", "userId": "u1",
                                                "displayOnMarketing": True})
        self.documents.add("feedbacks", {"rating": 4, "category": "compliment", "userId": "u2",
                                         "displayOnMarketing": True})
        self.documents.add("feedbacks", {"rating": 5, "category": "compliment", "userId": "u3"})
        testimonials = self.client.get("/admin/marketing").get_json()["testimonials"]
        self.assertEqual([f["id"] for f in testimonials], [five])

    def test_empty_marketing_update(self):
        self.assertEqual(self.client.put("/admin/marketing", json={}).status_code, 400)

    def test_subscription_price(self):
        self.documents.set("plans", "premium", {"price": 9.99, "features": ["Meal plans"]})
        self.assertEqual(self.client.get("/admin/subscriptions/premium").get_json()["plan"]["price"], 9.99)
        r = self.client.put("/admin/subscriptions/premium/price", json={"price": 12.5})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["plan"]["price"], 12.5)
        r = self.client.put("/admin/subscriptions/premium/price", json={"price": -1})
        self.assertEqual(r.status_code, 400)

    def test_subscription_features(self):
        self.documents.set("plans", "premium", {"price": 9.99, "features": []})
        r = self.client.put("/admin/subscriptions/premium/features", json={"features": ["Chat", " ", "Webinars"]})
        self.assertEqual(r.get_json()["plan"]["features"], ["Chat", "Webinars"])

    def test_feedback_toggle(self):
        feedback_id = self.documents.add("feedbacks", {"rating": 5, "category": "compliment", "userId": "u1"})
        r = self.client.post(f"/admin/feedback/{feedback_id}/toggle")
        self.assertTrue(r.get_json()["feedback"]["displayOnMarketing"])
        self.assertEqual(self.client.get("/admin/feedback").get_json()["featuredCount"], 1)

    def test_report(self):
        self.add_plan("Herb Salmon", status="APPROVED", saveCount=3)
        report = self.client.get("/admin/report").get_json()["report"]
        self.assertEqual(report["approvedMealPlans"], 1)
        self.assertEqual(report["topMealPlans"][0]["name"], "Herb Salmon")

    def test_logs(self):
        self.client.post("/admin/categories", json={"name": "Vegan"})
        logs = self.client.get("/admin/logs").get_json()["logs"]
        self.assertTrue(any(entry["category"] == "Categories" for entry in logs))
        self.assertTrue(all(entry["timestamp"] for entry in logs))


if __name__ == "__main__":
    unittest.main()
