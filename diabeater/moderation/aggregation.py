"""
List aggregation for the meal plan screens.

Everything here is a pure function of an already-fetched working set: tab and
search filtering, the tab badge counts, and the keyword cohorts behind the
admin "Popular" tab.
"""
from collections import OrderedDict
from dataclasses import dataclass, field

from diabeater.entities import MealPlanStatus, Role

POPULAR_TAB = 'POPULAR'
ALL_TAB = 'ALL'
TABS = (
    ALL_TAB,
    MealPlanStatus.PENDING_APPROVAL.value,
    MealPlanStatus.APPROVED.value,
    MealPlanStatus.REJECTED.value,
    POPULAR_TAB,
)

MOST_SAVED = 'most_saved'

# Matched as lowercase substrings of name, description and categories.
COHORT_KEYWORDS = OrderedDict([
    ('high_protein', ('high protein', 'high-protein', 'protein', 'chicken', 'salmon', 'tuna', 'turkey', 'egg', 'tofu')),
    ('low_carb', ('low carb', 'low-carb', 'keto', 'zucchini', 'cauliflower', 'lettuce wrap')),
    ('vegetarian', ('vegetarian', 'vegan', 'plant-based', 'plant based', 'lentil', 'chickpea', 'tofu')),
    ('quick', ('quick', 'easy', 'fast', '10-minute', '15-minute', '20-minute', 'no-cook')),
    ('diabetic_friendly', ('diabetic', 'diabetes', 'blood sugar', 'low sugar', 'sugar-free', 'low gi', 'low-gi', 'glycemic')),
])
COHORTS = (MOST_SAVED,) + tuple(COHORT_KEYWORDS)


@dataclass
class ListFilters:
    active_tab: str = MealPlanStatus.PENDING_APPROVAL.value
    search_term: str = ''
    category: str = ''

    @classmethod
    def from_args(cls, args, default_tab=MealPlanStatus.PENDING_APPROVAL.value):
        tab = (args.get('tab') or default_tab).upper()
        if tab not in TABS:
            tab = default_tab
        return cls(
            active_tab=tab,
            search_term=(args.get('search') or '').strip(),
            category=(args.get('category') or '').strip(),
        )


@dataclass
class ListView:
    plans: list
    counts: dict
    cohorts: OrderedDict = field(default=None)

    def to_dict(self):
        data = {
            'mealPlans': [plan.to_dict() for plan in self.plans],
            'counts': self.counts,
        }
        if self.cohorts is not None:
            data['cohorts'] = {
                name: [plan.id for plan in members]
                for name, members in self.cohorts.items()
            }
        return data


def status_counts(plans):
    """Tab badge counts, always taken from the unfiltered working set."""
    counts = {'pending': 0, 'approved': 0, 'rejected': 0}
    keys = {
        MealPlanStatus.PENDING_APPROVAL: 'pending',
        MealPlanStatus.APPROVED: 'approved',
        MealPlanStatus.REJECTED: 'rejected',
    }
    for plan in plans:
        counts[keys[plan.status]] += 1
    return counts


def matches_search(plan, search_term):
    if not search_term:
        return True
    needle = search_term.lower()
    return any(needle in (text or '').lower() for text in (plan.name, plan.author, plan.description))


def matches_category(plan, category):
    return not category or category in plan.categories


def apply_filters(plans, filters):
    return [
        plan for plan in plans
        if matches_search(plan, filters.search_term) and matches_category(plan, filters.category)
    ]


def classify_cohorts(plan):
    """Cohort tags for one plan. Only approved plans belong to any cohort."""
    if plan.status is not MealPlanStatus.APPROVED:
        return set()

    tags = set()
    if plan.save_count > 0:
        tags.add(MOST_SAVED)

    text = ' '.join([plan.name, plan.description, *plan.categories]).lower()
    for cohort, keywords in COHORT_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            tags.add(cohort)
    return tags


def popular_cohorts(plans):
    """
    Group plans into cohorts, each sorted by save count descending.
    ``sorted`` is stable, so ties keep the order the plans were fetched in.
    """
    cohorts = OrderedDict((name, []) for name in COHORTS)
    for plan in plans:
        for tag in classify_cohorts(plan):
            cohorts[tag].append(plan)
    for name, members in cohorts.items():
        cohorts[name] = sorted(members, key=lambda p: p.save_count, reverse=True)
    return cohorts


def _flatten(cohorts):
    seen = set()
    flattened = []
    for members in cohorts.values():
        for plan in members:
            if plan.id not in seen:
                seen.add(plan.id)
                flattened.append(plan)
    return flattened


def list_view(plans, role, filters):
    """
    Build the list a meal plan screen renders from the caller's working set.

    Status tabs narrow the set for both roles and the All tab keeps every
    status. The cohort view on the Popular tab is admin only; nutritionists
    asking for it get their whole (already author-restricted) set.
    """
    counts = status_counts(plans)

    if filters.active_tab == POPULAR_TAB and role is Role.admin:
        cohorts = OrderedDict(
            (name, apply_filters(members, filters))
            for name, members in popular_cohorts(plans).items()
        )
        return ListView(plans=_flatten(cohorts), counts=counts, cohorts=cohorts)

    source = plans
    if filters.active_tab not in (ALL_TAB, POPULAR_TAB):
        source = [plan for plan in plans if plan.status.value == filters.active_tab]
    return ListView(plans=apply_filters(source, filters), counts=counts)
