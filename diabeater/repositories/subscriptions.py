import logging
from datetime import datetime

from diabeater.entities import SubscriptionPlan, parse_timestamp
from diabeater.errors import ValidationError
from diabeater.store import collections

logger = logging.getLogger(__name__)

PREMIUM_PLAN_NAME = 'Premium Plan'


class SubscriptionRepository:

    def __init__(self, documents):
        self.documents = documents

    def get_plan(self, plan_id):
        return SubscriptionPlan.from_record(self.documents.get(collections.SUBSCRIPTION_PLANS, plan_id))

    def update_subscription_price(self, plan_id, price):
        try:
            price = float(price)
        except (TypeError, ValueError):
            raise ValidationError("Price must be a number.")
        if price < 0:
            raise ValidationError("Price cannot be negative.")
        record = self.documents.update(collections.SUBSCRIPTION_PLANS, plan_id, {'price': price})
        logger.info(f"Updated price for {plan_id} to {price:.2f}")
        return SubscriptionPlan.from_record(record)

    def update_premium_features(self, plan_id, features):
        if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
            raise ValidationError("Features must be a list of text entries.")
        cleaned = [f.strip() for f in features if f.strip()]
        record = self.documents.update(collections.SUBSCRIPTION_PLANS, plan_id, {'features': cleaned})
        logger.info(f"Updated features for {plan_id}: {len(cleaned)} entries")
        return SubscriptionPlan.from_record(record)

    def get_user_subscriptions(self, user_id, plan_name=None):
        """A user's subscription records, newest first."""
        equals = {'userId': user_id}
        if plan_name:
            equals['plan'] = plan_name
        records = self.documents.query(collections.SUBSCRIPTIONS, **equals)
        records.sort(key=lambda r: parse_timestamp(r.get('createdAt')) or datetime.min, reverse=True)
        return records
