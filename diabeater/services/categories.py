"""
Admin management of meal plan categories.

Plans refer to categories by name only, so deleting or renaming a category
leaves existing plans untouched.
"""
import logging

from diabeater.errors import ValidationError
from diabeater.utils.logging import log_action

logger = logging.getLogger(__name__)


def _clean(name, description, external_id):
    name = (name or '').strip()
    if not name:
        raise ValidationError("Category name is required.")
    external_id = (external_id or '').strip() or None
    return name, (description or '').strip(), external_id


def list_categories(repo):
    return repo.get_all_categories()


def create_category(repo, name, description='', external_id=None):
    name, description, external_id = _clean(name, description, external_id)
    category = repo.add_category(name, description, external_id)
    log_action('Categories', f"Created category '{category.name}' ({category.id})")
    return category


def update_category(repo, category_id, name, description='', external_id=None):
    name, description, external_id = _clean(name, description, external_id)
    category = repo.update_category(category_id, name, description, external_id)
    log_action('Categories', f"Updated category '{category.name}' ({category.id})")
    return category


def delete_category(repo, category_id):
    category = repo.delete_category(category_id)
    logger.info(f"Deleted category {category.name}; meal plans keep the name as a plain tag")
    log_action('Categories', f"Deleted category '{category.name}' ({category.id})")
    return category


DEFAULT_CATEGORIES = (
    ('Breakfast', 'Morning meals', 'breakfast'),
    ('Lunch', 'Midday meals', 'lunch'),
    ('Dinner', 'Evening meals', 'dinner'),
    ('Snacks', 'Light bites between meals', 'snacks'),
    ('Quick Meals', 'Fast preparation meals', 'quick-meals'),
    ('High Protein', 'Protein-rich meals', 'high-protein'),
    ('Low Carb', 'Low carbohydrate meals', 'low-carb'),
    ('Vegetarian', 'Plant-based meals', 'vegetarian'),
)


def seed_default_categories(repo):
    """Add any default category that does not exist yet. Returns the ones added."""
    existing = {c.name.lower() for c in repo.get_all_categories()}
    added = []
    for name, description, external_id in DEFAULT_CATEGORIES:
        if name.lower() in existing:
            continue
        added.append(repo.add_category(name, description, external_id))
    return added
