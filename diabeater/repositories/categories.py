import logging

from diabeater.entities import Category
from diabeater.errors import NotFoundError
from diabeater.store import collections

logger = logging.getLogger(__name__)


class CategoryRepository:

    def __init__(self, documents):
        self.documents = documents

    def get_all_categories(self):
        categories = [Category.from_record(r) for r in self.documents.query(collections.MEAL_PLAN_CATEGORIES)]
        return sorted(categories, key=lambda c: c.name.lower())

    def get_category(self, category_id):
        return Category.from_record(self.documents.get(collections.MEAL_PLAN_CATEGORIES, category_id))

    def get_by_name(self, name):
        for record in self.documents.query(collections.MEAL_PLAN_CATEGORIES, categoryName=name):
            return Category.from_record(record)
        raise NotFoundError(f"Category '{name}' not found.")

    def add_category(self, name, description='', external_id=None):
        record = {'categoryName': name, 'categoryDescription': description}
        if external_id:
            record['categoryId'] = external_id
        category_id = self.documents.add(collections.MEAL_PLAN_CATEGORIES, record)
        return Category.from_record({**record, 'id': category_id})

    def update_category(self, category_id, name, description='', external_id=None):
        update = {'categoryName': name, 'categoryDescription': description}
        if external_id is not None:
            update['categoryId'] = external_id
        return Category.from_record(self.documents.update(collections.MEAL_PLAN_CATEGORIES, category_id, update))

    def delete_category(self, category_id):
        category = self.get_category(category_id)
        self.documents.delete(collections.MEAL_PLAN_CATEGORIES, category_id)
        return category
