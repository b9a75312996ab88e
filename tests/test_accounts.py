"""
Tests for account suspension and nutritionist onboarding.
Email delivery is mocked (no network).
"""
import unittest
from unittest.mock import patch

from diabeater.entities import AccountStatus, ApplicationStatus, Role
from diabeater.errors import NotFoundError, TransientIOError, ValidationError
from diabeater.repositories import Repositories
from diabeater.services import accounts
from diabeater.state import UserAccountsState

from support import AppTestCase


class TestSuspension(AppTestCase):

    def setUp(self):
        super().setUp()
        self.repos = Repositories(self.backend)
        self.uid = self.create_nutritionist()
        self.state = UserAccountsState(self.repos.user_accounts)
        self.state.refresh()

    def test_suspend_disables_login_and_marks_inactive(self):
        account = accounts.suspend(self.repos, self.state, self.uid)
        self.assertIs(account.status, AccountStatus.Inactive)
        self.assertIs(self.state.find(self.uid).status, AccountStatus.Inactive)
        self.assertTrue(self.backend.identity.find_by_email("nina@diabeater.io").disabled)

    def test_unsuspend_restores(self):
        accounts.suspend(self.repos, self.state, self.uid)
        account = accounts.unsuspend(self.repos, self.state, self.uid)
        self.assertIs(account.status, AccountStatus.Active)
        self.assertFalse(self.backend.identity.find_by_email("nina@diabeater.io").disabled)

    def test_failed_remote_write_rolls_back_local_state(self):
        with patch.object(self.repos.user_accounts, "update_status",
                          side_effect=TransientIOError("Could not update user_accounts record.")):
            with self.assertRaises(TransientIOError) as ctx:
                accounts.suspend(self.repos, self.state, self.uid)
        self.assertIn("Failed to suspend Nina Tan", ctx.exception.message)
        self.assertIs(self.state.find(self.uid).status, AccountStatus.Active)

    def test_failed_suspend_leaves_login_enabled(self):
        with patch.object(self.repos.user_accounts, "update_status",
                          side_effect=TransientIOError("Could not update user_accounts record.")):
            with self.assertRaises(TransientIOError):
                accounts.suspend(self.repos, self.state, self.uid)
        self.assertFalse(self.backend.identity.find_by_email("nina@diabeater.io").disabled)
        self.assertIs(self.repos.user_accounts.get_user(self.uid).status, AccountStatus.Active)

    def test_failed_unsuspend_leaves_login_disabled(self):
        accounts.suspend(self.repos, self.state, self.uid)
        with patch.object(self.repos.user_accounts, "update_status",
                          side_effect=TransientIOError("Could not update user_accounts record.")):
            with self.assertRaises(TransientIOError):
                accounts.unsuspend(self.repos, self.state, self.uid)
        self.assertTrue(self.backend.identity.find_by_email("nina@diabeater.io").disabled)
        self.assertIs(self.state.find(self.uid).status, AccountStatus.Inactive)

    def test_suspend_unknown_user(self):
        with self.assertRaises(NotFoundError):
            accounts.suspend(self.repos, self.state, "nobody")


@patch("diabeater.services.accounts.send_nutritionist_rejection_email", return_value={"id": "msg-2"})
@patch("diabeater.services.accounts.send_nutritionist_approval_email", return_value={"id": "msg-1"})
class TestNutritionistOnboarding(AppTestCase):

    def setUp(self):
        super().setUp()
        self.repos = Repositories(self.backend)

    def _apply(self, email="rita@diabeater.io"):
        data = {"email": email, "firstName": "Rita", "lastName": "Lim", "dob": "1990-04-01"}
        return accounts.apply_as_nutritionist(self.repos, data, "rita-pass", "licence.pdf", b"%PDF-1.4")

    def test_application_creates_pending_account(self, mock_approve, mock_reject):
        application = self._apply()
        self.assertIs(application.status, ApplicationStatus.pending)
        self.assertEqual(application.certificate_url, f"/files/certificates/{application.id}/licence.pdf")
        account = self.repos.user_accounts.get_user(application.id)
        self.assertIs(account.role, Role.pending_nutritionist)
        self.assertIs(account.status, AccountStatus.Inactive)
        self.assertEqual(self.backend.identity.get_claims(application.id)["approved"], False)

    def test_application_requires_pdf(self, mock_approve, mock_reject):
        data = {"email": "rita@diabeater.io", "firstName": "Rita", "lastName": "Lim"}
        with self.assertRaises(ValidationError):
            accounts.apply_as_nutritionist(self.repos, data, "rita-pass", "licence.docx", b"doc")
        # The login created for the applicant is removed again
        self.assertIsNone(self.backend.identity.find_by_email("rita@diabeater.io"))

    def test_approve(self, mock_approve, mock_reject):
        uid = self._apply().id
        result = accounts.approve_nutritionist(self.repos, uid)

        self.assertEqual(result, {"success": True, "message": "Nutritionist approved successfully", "emailSent": True})
        mock_approve.assert_called_once_with("rita@diabeater.io", "Rita Lim")
        self.assertIs(self.repos.applications.get_application(uid).status, ApplicationStatus.approved)
        account = self.repos.user_accounts.get_user(uid)
        self.assertIs(account.role, Role.nutritionist)
        self.assertIs(account.status, AccountStatus.Active)
        claims = self.backend.identity.get_claims(uid)
        self.assertEqual(claims, {"nutritionist": True, "approved": True, "rejected": False})

    def test_approve_twice(self, mock_approve, mock_reject):
        uid = self._apply().id
        accounts.approve_nutritionist(self.repos, uid)
        with self.assertRaises(ValidationError):
            accounts.approve_nutritionist(self.repos, uid)

    def test_approve_reports_failed_email(self, mock_approve, mock_reject):
        mock_approve.return_value = None
        uid = self._apply().id
        self.assertFalse(accounts.approve_nutritionist(self.repos, uid)["emailSent"])

    def test_reject_uses_default_reason(self, mock_approve, mock_reject):
        uid = self._apply().id
        result = accounts.reject_nutritionist(self.repos, uid, "  ")

        self.assertTrue(result["emailSent"])
        mock_reject.assert_called_once_with("rita@diabeater.io", "Rita Lim", "No reason provided")
        application = self.repos.applications.get_application(uid)
        self.assertIs(application.status, ApplicationStatus.rejected)
        self.assertEqual(application.rejection_reason, "No reason provided")
        with self.assertRaises(NotFoundError):
            self.repos.user_accounts.get_user(uid)
        self.assertTrue(self.backend.identity.get_claims(uid)["rejected"])

    def test_failed_approval_can_be_retried(self, mock_approve, mock_reject):
        uid = self._apply().id
        with patch.object(self.repos.user_accounts, "update_account",
                          side_effect=TransientIOError("Could not update user_accounts record.")):
            with self.assertRaises(TransientIOError):
                accounts.approve_nutritionist(self.repos, uid)
        self.assertIs(self.repos.applications.get_application(uid).status, ApplicationStatus.pending)
        mock_approve.assert_not_called()

        result = accounts.approve_nutritionist(self.repos, uid)
        self.assertTrue(result["success"])
        self.assertIs(self.repos.applications.get_application(uid).status, ApplicationStatus.approved)
        self.assertIs(self.repos.user_accounts.get_user(uid).role, Role.nutritionist)

    def test_failed_rejection_can_be_retried(self, mock_approve, mock_reject):
        uid = self._apply().id
        with patch.object(self.repos.identity, "set_claims",
                          side_effect=TransientIOError("Could not update login.")):
            with self.assertRaises(TransientIOError):
                accounts.reject_nutritionist(self.repos, uid, "Expired licence")
        # The account record is already gone but the application is still open
        self.assertIs(self.repos.applications.get_application(uid).status, ApplicationStatus.pending)

        accounts.reject_nutritionist(self.repos, uid, "Expired licence")
        application = self.repos.applications.get_application(uid)
        self.assertIs(application.status, ApplicationStatus.rejected)
        self.assertEqual(application.rejection_reason, "Expired licence")
        self.assertTrue(self.backend.identity.get_claims(uid)["rejected"])
        mock_reject.assert_called_once_with("rita@diabeater.io", "Rita Lim", "Expired licence")

    def test_missing_application(self, mock_approve, mock_reject):
        with self.assertRaises(NotFoundError):
            accounts.approve_nutritionist(self.repos, "nobody")


if __name__ == "__main__":
    unittest.main()
