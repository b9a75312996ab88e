"""
Featured testimonials for the marketing website.
"""
import logging
import random
from collections import OrderedDict

from diabeater.errors import ValidationError
from diabeater.repositories.feedback import MAX_FEATURED
from diabeater.utils.logging import log_action

logger = logging.getLogger(__name__)

FEATURED_CATEGORY = 'compliment'


def is_candidate(feedback):
    return feedback.rating == 5 and feedback.category.strip().lower() == FEATURED_CATEGORY


def select_featured(feedbacks, rng=None, limit=MAX_FEATURED):
    """
    Pick up to ``limit`` five-star compliments, one per author, authors in
    random order.
    """
    rng = rng or random.Random()
    by_author = OrderedDict()
    for feedback in feedbacks:
        if is_candidate(feedback):
            # Anonymous feedback is grouped per item
            author = feedback.author_id or f"anonymous:{feedback.id}"
            by_author.setdefault(author, []).append(feedback)

    authors = list(by_author)
    rng.shuffle(authors)
    return [rng.choice(by_author[author]) for author in authors[:limit]]


def automate_featured(repo, rng=None):
    """
    Recompute the featured set from scratch and reconcile every feedback's
    flag against it, writing only the flags that change.

    Returns a summary dict with the selected ids and the number of writes.
    """
    feedbacks = repo.get_feedbacks()
    selected = select_featured(feedbacks, rng=rng)
    selected_ids = {f.id for f in selected}

    changed = 0
    for feedback in feedbacks:
        target = feedback.id in selected_ids
        if feedback.display_on_marketing != target:
            repo.set_display_on_marketing(feedback.id, target)
            changed += 1

    logger.info(f"Featured feedback recomputed: {len(selected_ids)} selected, {changed} updated")
    log_action('Feedback', f"Automated featured feedback: {len(selected_ids)} selected, {changed} flags changed")
    return {
        'selected': [f.id for f in selected],
        'changed': changed,
    }


def toggle_display_on_marketing(repo, feedback_id):
    feedback = repo.get_feedback(feedback_id)
    target = not feedback.display_on_marketing
    if target:
        featured = [f for f in repo.get_feedbacks() if f.display_on_marketing]
        if len(featured) >= MAX_FEATURED:
            raise ValidationError(
                f"At most {MAX_FEATURED} feedbacks can be shown on the marketing website. "
                "Remove one before featuring another."
            )
    updated = repo.set_display_on_marketing(feedback_id, target)
    log_action('Feedback', f"{'Featured' if target else 'Unfeatured'} feedback {feedback_id}")
    return updated
