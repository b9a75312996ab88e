import logging
from datetime import datetime

from werkzeug.utils import secure_filename

from diabeater.entities import AccountStatus, ApplicationStatus, NutritionistApplication, Role, format_timestamp
from diabeater.errors import NotFoundError, ValidationError
from diabeater.store import collections

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"


class NutritionistApplicationRepository:

    def __init__(self, documents, blobs):
        self.documents = documents
        self.blobs = blobs

    def submit_application(self, user_id, data, certificate_name, certificate_data):
        """
        Upload the certificate PDF, then write the pending account and the
        application under the applicant's user id.
        """
        filename = secure_filename(certificate_name or '')
        if not certificate_data or not filename.lower().endswith('.pdf'):
            raise ValidationError("A PDF certificate is required.")

        certificate_path = f"certificates/{user_id}/{filename}"
        certificate_url = self.blobs.upload(certificate_path, certificate_data, content_type='application/pdf')
        now = format_timestamp(datetime.utcnow())

        self.documents.set(collections.USER_ACCOUNTS, user_id, {
            'userId': user_id,
            'email': data['email'],
            'firstName': data.get('firstName', ''),
            'lastName': data.get('lastName', ''),
            'dob': data.get('dob', ''),
            'profilePictureUrl': '',
            'role': Role.pending_nutritionist.value,
            'isPremium': False,
            'status': AccountStatus.Inactive.value,
            'username': '',
            'createdAt': now,
        })
        self.documents.set(collections.NUTRITIONIST_APPLICATIONS, user_id, {
            'email': data['email'],
            'firstName': data.get('firstName', ''),
            'lastName': data.get('lastName', ''),
            'dob': data.get('dob', ''),
            'certificateUrl': certificate_url,
            'certificatePath': certificate_path,
            'certificateFileName': filename,
            'status': ApplicationStatus.pending.value,
            'appliedDate': now,
            'createdAt': now,
        })
        logger.info(f"Nutritionist application submitted for {user_id}")
        return self.get_application(user_id)

    def get_all_applications(self, status=None):
        equals = {'status': status.value} if status else {}
        return [
            NutritionistApplication.from_record(r)
            for r in self.documents.query(collections.NUTRITIONIST_APPLICATIONS, **equals)
        ]

    def get_application(self, user_id):
        try:
            record = self.documents.get(collections.NUTRITIONIST_APPLICATIONS, user_id)
        except NotFoundError:
            raise NotFoundError("Nutritionist application not found.")
        return NutritionistApplication.from_record(record)

    def get_certificate_url(self, user_id):
        return self.get_application(user_id).certificate_url or None

    def mark_approved(self, user_id):
        record = self.documents.update(collections.NUTRITIONIST_APPLICATIONS, user_id, {
            'status': ApplicationStatus.approved.value,
            'approvedAt': format_timestamp(datetime.utcnow()),
        })
        return NutritionistApplication.from_record(record)

    def mark_rejected(self, user_id, reason=None):
        record = self.documents.update(collections.NUTRITIONIST_APPLICATIONS, user_id, {
            'status': ApplicationStatus.rejected.value,
            'rejectionReason': reason or DEFAULT_REJECTION_REASON,
            'rejectedAt': format_timestamp(datetime.utcnow()),
        })
        return NutritionistApplication.from_record(record)
