import logging
import time
from datetime import datetime

from werkzeug.utils import secure_filename

from diabeater.entities import MealPlan, MealPlanStatus, format_timestamp
from diabeater.errors import ValidationError
from diabeater.store import collections

logger = logging.getLogger(__name__)

IMAGE_FOLDER = 'meal_plan_images'

# Fields an author may edit; status, counters and authorship are owned elsewhere.
EDITABLE_FIELDS = {
    'name', 'description', 'ingredients', 'steps', 'categories',
    'calories', 'protein', 'carbohydrates', 'fats', 'saturatedFat',
    'unsaturatedFat', 'cholesterol', 'sodium', 'potassium', 'sugar',
}


def image_file_name(filename):
    """Storage key for a newly uploaded image: ``<millis>_<filename>``."""
    safe_name = secure_filename(filename or '')
    if not safe_name:
        raise ValidationError("Please upload a meal plan image.")
    return f"{int(time.time() * 1000)}_{safe_name}"


class MealPlanRepository:

    def __init__(self, documents, blobs):
        self.documents = documents
        self.blobs = blobs

    def _decode(self, records):
        return [MealPlan.from_record(record) for record in records]

    def _upload_image(self, filename, data):
        key = image_file_name(filename)
        url = self.blobs.upload(f"{IMAGE_FOLDER}/{key}", data)
        return key, url

    def add_meal_plan(self, record, image_name, image_data, author_id, author_name):
        """
        Upload the image and write a new plan in PENDING_APPROVAL.
        ``image_name`` and ``image_data`` are the uploaded file's name and bytes.
        """
        if not image_data:
            raise ValidationError("Please upload a meal plan image.")
        key, url = self._upload_image(image_name, image_data)

        new_plan = {field: value for field, value in record.items() if field in EDITABLE_FIELDS}
        new_plan.update({
            'imageUrl': url,
            'imageFileName': key,
            'author': author_name,
            'authorId': author_id,
            'status': MealPlanStatus.PENDING_APPROVAL.value,
            'likes': 0,
            'saveCount': 0,
            'createdAt': format_timestamp(datetime.utcnow()),
        })
        # Decode before writing so a malformed submission never reaches the store
        MealPlan.from_record({**new_plan, 'id': 'new'})
        try:
            plan_id = self.documents.add(collections.MEAL_PLANS, new_plan)
        except Exception:
            self.blobs.delete(f"{IMAGE_FOLDER}/{key}")
            raise
        logger.info(f"Meal plan {plan_id} '{new_plan.get('name')}' submitted by {author_id}")
        return self.get_meal_plan(plan_id)

    def get_meal_plans_by_status(self, status):
        return self._decode(self.documents.query(collections.MEAL_PLANS, status=status.value))

    def get_pending_meal_plans(self):
        return self.get_meal_plans_by_status(MealPlanStatus.PENDING_APPROVAL)

    def get_approved_meal_plans(self):
        return self.get_meal_plans_by_status(MealPlanStatus.APPROVED)

    def get_rejected_meal_plans(self):
        return self.get_meal_plans_by_status(MealPlanStatus.REJECTED)

    def get_all_meal_plans(self):
        return self._decode(self.documents.query(collections.MEAL_PLANS))

    def get_meal_plans_by_author(self, author_id):
        return self._decode(self.documents.query(collections.MEAL_PLANS, authorId=author_id))

    def get_meal_plan(self, plan_id):
        return MealPlan.from_record(self.documents.get(collections.MEAL_PLANS, plan_id))

    def update_meal_plan_status(self, plan_id, status, rejection_reason=None):
        update = {'status': status.value}
        if status is MealPlanStatus.REJECTED:
            update['rejectionReason'] = rejection_reason
        else:
            update['rejectionReason'] = None
        return MealPlan.from_record(self.documents.update(collections.MEAL_PLANS, plan_id, update))

    def update_meal_plan(self, plan_id, data, new_image=None):
        """
        Apply an author's content edit. The plan goes back to PENDING_APPROVAL
        for re-review. ``new_image`` is an optional ``(filename, bytes)`` pair
        that replaces the current image; the old blob is released afterwards.
        """
        record = self.documents.get(collections.MEAL_PLANS, plan_id)
        current = MealPlan.from_record(record)
        update = {field: value for field, value in data.items() if field in EDITABLE_FIELDS}
        update['status'] = MealPlanStatus.PENDING_APPROVAL.value
        update['rejectionReason'] = None
        MealPlan.from_record({**record, **update})

        if new_image:
            filename, image_data = new_image
            key, url = self._upload_image(filename, image_data)
            update['imageFileName'] = key
            update['imageUrl'] = url

        try:
            updated = MealPlan.from_record(self.documents.update(collections.MEAL_PLANS, plan_id, update))
        except Exception:
            if new_image:
                self.blobs.delete(f"{IMAGE_FOLDER}/{update['imageFileName']}")
            raise

        if new_image and current.image_file_name:
            self.blobs.delete(f"{IMAGE_FOLDER}/{current.image_file_name}")
        logger.info(f"Meal plan {plan_id} updated and resubmitted for approval")
        return updated

    def delete_meal_plan(self, plan_id):
        plan = self.get_meal_plan(plan_id)
        self.documents.delete(collections.MEAL_PLANS, plan_id)
        if plan.image_file_name:
            self.blobs.delete(f"{IMAGE_FOLDER}/{plan.image_file_name}")
        logger.info(f"Meal plan {plan_id} deleted")
        return plan
