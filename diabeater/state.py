"""
Working sets held for one request: the meal plans or user accounts a screen is
showing. Each holder is created by the caller and passed to whatever mutates
it, so there is no shared module-level state.

Mutations follow two phases: ``patch`` changes the local copy immediately and
returns a rollback callable; the caller invokes it if the remote write fails.
"""
import dataclasses
import logging

from diabeater.entities import Role
from diabeater.moderation.aggregation import ListFilters, list_view

logger = logging.getLogger(__name__)


class WorkingSet:

    def __init__(self):
        self.items = []

    def fetch(self):
        raise NotImplementedError

    def refresh(self):
        self.items = list(self.fetch())
        return self.items

    def find(self, item_id):
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def apply(self, item):
        """Replace the item with the same id, or append a new one."""
        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[index] = item
                return
        self.items.append(item)

    def remove(self, item_id):
        self.items = [item for item in self.items if item.id != item_id]

    def patch(self, item_id, **fields):
        original = self.find(item_id)
        if original is None:
            # Not on screen; nothing to roll back
            return lambda: None
        self.apply(dataclasses.replace(original, **fields))

        def rollback():
            logger.info(f"Rolling back local change to {item_id}")
            self.apply(original)

        return rollback


class MealPlanState(WorkingSet):
    """
    Meal plans for one screen. Admins work over every plan; a nutritionist's
    set is restricted to the plans they authored.
    """

    def __init__(self, repository, role, user_id=None, filters=None):
        super().__init__()
        self.repository = repository
        self.role = role
        self.user_id = user_id
        self.filters = filters or ListFilters()

    def fetch(self):
        if self.role is Role.admin:
            return self.repository.get_all_meal_plans()
        return self.repository.get_meal_plans_by_author(self.user_id)

    @property
    def plans(self):
        return self.items

    def view(self):
        return list_view(self.items, self.role, self.filters)


class UserAccountsState(WorkingSet):

    def __init__(self, repository, role=None):
        super().__init__()
        self.repository = repository
        self.role = role

    def fetch(self):
        return self.repository.get_all_users(role=self.role)

    @property
    def accounts(self):
        return self.items
