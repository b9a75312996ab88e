"""
Identity provider: credential verification, custom claims and login
enable/disable, backed by the Flask-Login ``User`` model.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from diabeater import db
from diabeater.errors import AuthorizationError, NotFoundError, TransientIOError, ValidationError
from diabeater.models import User

logger = logging.getLogger(__name__)


class IdentityProvider:

    def verify(self, email, password):
        """Return ``{"uid": ..., "claims": {...}}`` for valid credentials."""
        raise NotImplementedError

    def create_login(self, email, password, display_name, uid=None, claims=None):
        raise NotImplementedError

    def get_claims(self, uid):
        raise NotImplementedError

    def set_claims(self, uid, claims):
        raise NotImplementedError

    def disable(self, uid):
        raise NotImplementedError

    def enable(self, uid):
        raise NotImplementedError

    def delete_login(self, uid):
        raise NotImplementedError


class SqlIdentityProvider(IdentityProvider):

    def __init__(self, session=None):
        self.session = session or db.session

    def _commit(self, action):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Identity provider failed to {action}: {e}")
            raise TransientIOError(f"Could not {action}. Please try again.") from e

    def _user(self, uid):
        user = self.session.get(User, uid)
        if user is None:
            raise NotFoundError(f"No login exists for user {uid}.")
        return user

    def find_by_email(self, email):
        return User.query.filter_by(email=(email or '').strip().lower()).first()

    def verify(self, email, password):
        user = self.find_by_email(email)
        if not user or not user.check_password(password or ''):
            raise AuthorizationError("Invalid email or password.")
        if user.disabled:
            raise AuthorizationError("This account has been suspended. Please contact support.")
        return {"uid": user.id, "claims": user.claims}

    def create_login(self, email, password, display_name, uid=None, claims=None):
        email_norm = (email or '').strip().lower()
        if not email_norm:
            raise ValidationError("Email is required.")
        if self.find_by_email(email_norm):
            raise ValidationError("Email already registered.")

        user = User(email=email_norm, display_name=display_name)
        if uid:
            user.id = uid
        user.set_password(password)
        user.claims = claims or {}
        self.session.add(user)
        self._commit("create login")
        logger.info(f"Created login {user.id} for {email_norm}")
        return user.id

    def get_claims(self, uid):
        return self._user(uid).claims

    def set_claims(self, uid, claims):
        user = self._user(uid)
        user.claims = claims
        self._commit("update claims")

    def disable(self, uid):
        user = self._user(uid)
        user.disabled = True
        self._commit("disable login")

    def enable(self, uid):
        user = self._user(uid)
        user.disabled = False
        self._commit("enable login")

    def delete_login(self, uid):
        user = self.session.get(User, uid)
        if user is None:
            return
        self.session.delete(user)
        self._commit("delete login")
