from diabeater.entities import parse_timestamp
from diabeater.errors import ValidationError
from diabeater.store import collections


def _in_period(record, key, start, end):
    try:
        stamp = parse_timestamp(record.get(key))
    except ValidationError:
        return False
    return stamp is not None and start <= stamp < end


class ReportRepository:
    """Raw lookups behind the admin statistics report."""

    def __init__(self, documents):
        self.documents = documents

    def count(self, collection, **equals):
        return len(self.documents.query(collection, **equals))

    def get_user_signups_by_period(self, start, end):
        return [
            r for r in self.documents.query(collections.USER_ACCOUNTS)
            if _in_period(r, 'createdAt', start, end)
        ]

    def get_subscriptions_by_period(self, start, end):
        return [
            r for r in self.documents.query(collections.SUBSCRIPTIONS)
            if _in_period(r, 'createdAt', start, end)
        ]

    def get_all_subscriptions(self):
        return self.documents.query(collections.SUBSCRIPTIONS)

    def get_meal_plan_records(self):
        return self.documents.query(collections.MEAL_PLANS)
