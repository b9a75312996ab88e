"""
Audit logging for admin actions.
"""

from flask_login import current_user
from diabeater.models import LogEntry
from diabeater import db

PROJECT = 'diabeater'


def log_action(category, description, actor_id=None):
    """
    Record one admin action in the audit log.

    Args:
        category (str): Action family (e.g., 'Moderation', 'Accounts', 'Categories')
        description (str): Human-readable summary shown in the audit list
        actor_id (str, optional): User performing the action. Defaults to the
                                  logged-in user when there is one.
    """
    if actor_id is None and current_user and current_user.is_authenticated:
        actor_id = current_user.id

    log_entry = LogEntry(
        project=PROJECT,
        category=category,
        actor_id=actor_id,
        description=description
    )
    db.session.add(log_entry)
    db.session.commit()
    return log_entry
