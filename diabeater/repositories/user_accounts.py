import logging
import os
import random
import string
import time

from diabeater.entities import AccountStatus, UserAccount
from diabeater.errors import ValidationError
from diabeater.store import collections

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
}
MAX_PROFILE_IMAGE_BYTES = 5 * 1024 * 1024

# Profile fields a user may change about themselves
PROFILE_FIELDS = {'firstName', 'lastName', 'username', 'profilePictureUrl'}


class UserAccountRepository:

    def __init__(self, documents, blobs=None):
        self.documents = documents
        self.blobs = blobs

    def get_all_users(self, role=None):
        equals = {'role': role.value} if role else {}
        return [UserAccount.from_record(r) for r in self.documents.query(collections.USER_ACCOUNTS, **equals)]

    def get_premium_users(self):
        return [UserAccount.from_record(r) for r in self.documents.query(collections.USER_ACCOUNTS, isPremium=True)]

    def get_user(self, user_id):
        return UserAccount.from_record(self.documents.get(collections.USER_ACCOUNTS, user_id))

    def add_account(self, user_id, record):
        """Write a new account record under the login's user id."""
        self.documents.set(collections.USER_ACCOUNTS, user_id, {**record, 'userId': user_id})
        return self.get_user(user_id)

    def register_admin(self, user_id, email):
        self.documents.set(collections.ADMINS, user_id, {'email': email.strip().lower()})

    def update_status(self, user_id, status):
        if not isinstance(status, AccountStatus):
            status = AccountStatus(status)
        record = self.documents.update(collections.USER_ACCOUNTS, user_id, {'status': status.value})
        return UserAccount.from_record(record)

    def update_account(self, user_id, fields):
        return UserAccount.from_record(self.documents.update(collections.USER_ACCOUNTS, user_id, fields))

    def update_profile(self, user_id, data):
        update = {key: value for key, value in data.items() if key in PROFILE_FIELDS}
        if not update:
            raise ValidationError("No profile fields to update.")
        return self.update_account(user_id, update)

    def delete_account(self, user_id):
        self.documents.delete(collections.USER_ACCOUNTS, user_id)

    def upload_profile_image(self, user_id, filename, data, content_type):
        """
        Store a new profile picture and point the account at it.
        Returns the public URL of the uploaded image.
        """
        if not data:
            raise ValidationError("No file provided")
        if len(data) > MAX_PROFILE_IMAGE_BYTES:
            raise ValidationError("File size too large. Maximum size is 5MB.")
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"Invalid file type. Allowed types: {', '.join(ALLOWED_IMAGE_TYPES)}")

        extension = os.path.splitext(filename or '')[1].lstrip('.').lower() or ALLOWED_IMAGE_TYPES[content_type]
        suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
        path = f"profileImages/{user_id}/profile_{int(time.time() * 1000)}_{suffix}.{extension}"
        url = self.blobs.upload(path, data, content_type=content_type)
        self.update_account(user_id, {'profilePictureUrl': url, 'profileImagePath': path})
        logger.info(f"Profile image for {user_id} stored at {path}")
        return url
