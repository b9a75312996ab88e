import logging
from datetime import datetime

from diabeater.entities import Notification, NotificationType, format_timestamp
from diabeater.store import collections

logger = logging.getLogger(__name__)

STATUS_UPDATE_TYPES = {
    NotificationType.MEAL_PLAN_STATUS_UPDATE,
    NotificationType.mealPlanApproval,
    NotificationType.mealPlanRejection,
}


class NotificationRepository:

    def __init__(self, documents):
        self.documents = documents

    def add_notification(self, recipient_id, message, meal_plan_id,
                         rejection_reason=None,
                         notification_type=NotificationType.MEAL_PLAN_STATUS_UPDATE):
        record = {
            'recipientId': recipient_id,
            'type': notification_type.value,
            'message': message,
            'mealPlanId': meal_plan_id,
            'isRead': False,
            'timestamp': format_timestamp(datetime.utcnow()),
        }
        if rejection_reason:
            record['rejectionReason'] = rejection_reason
        notification_id = self.documents.add(collections.NOTIFICATIONS, record)
        logger.info(f"Notification {notification_id} queued for {recipient_id} about meal plan {meal_plan_id}")
        return Notification.from_record({**record, 'id': notification_id})

    def get_notifications(self, user_id, status_updates_only=False):
        """Notifications for one recipient, newest first."""
        notifications = [
            Notification.from_record(record)
            for record in self.documents.query(collections.NOTIFICATIONS, recipientId=user_id)
        ]
        if status_updates_only:
            notifications = [n for n in notifications if n.type in STATUS_UPDATE_TYPES]
        notifications.sort(key=lambda n: n.timestamp or datetime.min, reverse=True)
        return notifications

    def get_notification(self, notification_id):
        return Notification.from_record(self.documents.get(collections.NOTIFICATIONS, notification_id))

    def mark_as_read(self, notification_id):
        record = self.documents.update(collections.NOTIFICATIONS, notification_id, {'isRead': True})
        return Notification.from_record(record)
