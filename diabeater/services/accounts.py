"""
Account administration: suspension, nutritionist onboarding and console admins.
"""
import logging
from datetime import datetime

from diabeater.entities import AccountStatus, ApplicationStatus, Role, format_timestamp
from diabeater.errors import DiabeaterError, NotFoundError, ValidationError
from diabeater.repositories.nutritionist_applications import DEFAULT_REJECTION_REASON
from diabeater.utils.email_service import send_nutritionist_approval_email, send_nutritionist_rejection_email
from diabeater.utils.logging import log_action

logger = logging.getLogger(__name__)


def _restore_login(repos, user_id, attempted):
    try:
        if attempted is AccountStatus.Inactive:
            repos.identity.enable(user_id)
        else:
            repos.identity.disable(user_id)
    except DiabeaterError as e:
        logger.error(f"Could not restore login for {user_id}: {e.message}")


def _set_login_status(repos, state, user_id, status, verb):
    account = state.find(user_id) if state is not None else None
    if account is None:
        account = repos.user_accounts.get_user(user_id)
    name = account.display_name

    rollback = state.patch(user_id, status=status) if state is not None else (lambda: None)
    try:
        if status is AccountStatus.Inactive:
            repos.identity.disable(user_id)
        else:
            repos.identity.enable(user_id)
        updated = repos.user_accounts.update_status(user_id, status)
    except DiabeaterError as e:
        rollback()
        _restore_login(repos, user_id, status)
        logger.error(f"Failed to {verb} {user_id}: {e.message}")
        raise type(e)(f"Failed to {verb} {name}: {e.message}") from e

    if state is not None:
        state.apply(updated)
    log_action('Accounts', f"{verb.capitalize()}ed user {name} ({user_id})")
    return updated


def suspend(repos, state, user_id):
    """Disable the user's login and mark the account Inactive."""
    return _set_login_status(repos, state, user_id, AccountStatus.Inactive, 'suspend')


def unsuspend(repos, state, user_id):
    return _set_login_status(repos, state, user_id, AccountStatus.Active, 'unsuspend')


def apply_as_nutritionist(repos, data, password, certificate_name, certificate_data):
    """
    Create the applicant's login and file their application. The login stays
    without nutritionist access until an admin approves it.
    """
    if not certificate_data:
        raise ValidationError("A PDF certificate is required.")
    display_name = f"{data.get('firstName', '')} {data.get('lastName', '')}".strip() or data['email']
    user_id = repos.identity.create_login(
        data['email'], password, display_name,
        claims={'nutritionist': True, 'approved': False, 'rejected': False},
    )
    try:
        application = repos.applications.submit_application(user_id, data, certificate_name, certificate_data)
    except DiabeaterError:
        repos.identity.delete_login(user_id)
        raise
    return application


def _pending_application(repos, user_id):
    application = repos.applications.get_application(user_id)
    if application.status is not ApplicationStatus.pending:
        raise ValidationError(f"This application has already been {application.status.value}.")
    return application


def approve_nutritionist(repos, user_id):
    application = _pending_application(repos, user_id)

    # The application stays pending until every other write has landed
    repos.user_accounts.update_account(user_id, {
        'status': AccountStatus.Active.value,
        'role': Role.nutritionist.value,
    })
    claims = repos.identity.get_claims(user_id)
    claims.update({'nutritionist': True, 'approved': True, 'rejected': False})
    repos.identity.set_claims(user_id, claims)
    repos.identity.enable(user_id)
    repos.applications.mark_approved(user_id)

    email_sent = send_nutritionist_approval_email(application.email, application.full_name) is not None
    if not email_sent:
        logger.warning(f"Nutritionist {user_id} approved but email notification failed")

    log_action('Nutritionists', f"Approved nutritionist {application.full_name} ({application.email})")
    return {
        'success': True,
        'message': "Nutritionist approved successfully",
        'emailSent': email_sent,
    }


def reject_nutritionist(repos, user_id, reason=None):
    application = _pending_application(repos, user_id)
    reason = (reason or '').strip() or DEFAULT_REJECTION_REASON

    try:
        repos.user_accounts.delete_account(user_id)
    except NotFoundError:
        logger.info(f"Account {user_id} already removed")
    claims = repos.identity.get_claims(user_id)
    claims.update({'nutritionist': False, 'approved': False, 'rejected': True})
    repos.identity.set_claims(user_id, claims)
    repos.applications.mark_rejected(user_id, reason)

    email_sent = send_nutritionist_rejection_email(application.email, application.full_name, reason) is not None
    if not email_sent:
        logger.warning(f"Nutritionist {user_id} rejected but email notification failed")

    log_action('Nutritionists', f"Rejected nutritionist {application.full_name} ({application.email}): {reason}")
    return {
        'success': True,
        'message': "Nutritionist rejected successfully",
        'emailSent': email_sent,
    }


def create_admin_account(repos, data, password):
    """
    Create a login with the admin claim, its account record and its entry in
    the admins collection. The login is removed again if a record write fails.
    """
    display_name = f"{data['firstName']} {data['lastName']}".strip()
    user_id = repos.identity.create_login(data['email'], password, display_name, claims={'admin': True})
    try:
        account = repos.user_accounts.add_account(user_id, {
            'email': data['email'],
            'firstName': data['firstName'],
            'lastName': data['lastName'],
            'dob': data.get('dob', ''),
            'role': Role.admin.value,
            'status': AccountStatus.Active.value,
            'isPremium': False,
            'points': 0,
            'profilePictureUrl': '',
            'createdAt': format_timestamp(datetime.utcnow()),
        })
        repos.user_accounts.register_admin(user_id, data['email'])
    except DiabeaterError:
        try:
            repos.user_accounts.delete_account(user_id)
        except NotFoundError:
            pass
        repos.identity.delete_login(user_id)
        raise

    log_action('Admin', f"Created admin account {display_name} ({data['email']})")
    return account
