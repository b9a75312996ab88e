from diabeater.moderation.aggregation import (
    ALL_TAB,
    COHORTS,
    POPULAR_TAB,
    ListFilters,
    ListView,
    classify_cohorts,
    list_view,
    popular_cohorts,
    status_counts,
)
from diabeater.moderation.engine import Decision, ModerationEngine
from diabeater.moderation.messages import compose_status_message

__all__ = [
    'ALL_TAB',
    'COHORTS',
    'POPULAR_TAB',
    'Decision',
    'ListFilters',
    'ListView',
    'ModerationEngine',
    'classify_cohorts',
    'compose_status_message',
    'list_view',
    'popular_cohorts',
    'status_counts',
]
