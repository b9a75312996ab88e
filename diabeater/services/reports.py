"""
Statistics for the admin report screen.
"""
from datetime import datetime
import logging

from diabeater.entities import MealPlanStatus, Role
from diabeater.store import collections

logger = logging.getLogger(__name__)

CANCELLED_STATUSES = {'canceled', 'cancelled'}


def month_bounds(now):
    """Return (start of last month, start of this month, start of next month)."""
    this_month = datetime(now.year, now.month, 1)
    if now.month == 1:
        last_month = datetime(now.year - 1, 12, 1)
    else:
        last_month = datetime(now.year, now.month - 1, 1)
    if now.month == 12:
        next_month = datetime(now.year + 1, 1, 1)
    else:
        next_month = datetime(now.year, now.month + 1, 1)
    return last_month, this_month, next_month


def _revenue(subscriptions):
    total = 0.0
    for sub in subscriptions:
        price = sub.get('price')
        if isinstance(price, (int, float)) and not isinstance(price, bool):
            total += price
    return round(total, 2)


def _growth_rate(current, previous):
    if previous <= 0:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def _save_count(record):
    try:
        return max(int(float(record.get('saveCount') or 0)), 0)
    except (TypeError, ValueError):
        return 0


def build_report(repo, now=None):
    """
    Args:
        repo: ReportRepository
        now: naive UTC datetime the month boundaries are taken from
    """
    now = now or datetime.utcnow()
    last_month, this_month, next_month = month_bounds(now)

    subscriptions = repo.get_all_subscriptions()
    this_month_subs = repo.get_subscriptions_by_period(this_month, next_month)
    last_month_subs = repo.get_subscriptions_by_period(last_month, this_month)
    this_month_users = repo.get_user_signups_by_period(this_month, next_month)
    last_month_users = repo.get_user_signups_by_period(last_month, this_month)

    plans = repo.get_meal_plan_records()
    top_plans = sorted(
        (p for p in plans if p.get('status') == MealPlanStatus.APPROVED.value),
        key=_save_count,
        reverse=True,
    )[:5]

    current_revenue = _revenue(this_month_subs)
    previous_revenue = _revenue(last_month_subs)

    report = {
        'totalUsers': repo.count(collections.USER_ACCOUNTS),
        'totalNutritionists': repo.count(collections.USER_ACCOUNTS, role=Role.nutritionist.value),
        'totalMealPlans': len(plans),
        'approvedMealPlans': sum(1 for p in plans if p.get('status') == MealPlanStatus.APPROVED.value),
        'pendingMealPlans': sum(1 for p in plans if p.get('status') == MealPlanStatus.PENDING_APPROVAL.value),
        'activeSubscriptions': sum(1 for s in subscriptions if (s.get('status') or '').lower() == 'active'),
        'cancelledSubscriptions': sum(
            1 for s in subscriptions if (s.get('status') or '').lower() in CANCELLED_STATUSES
        ),
        'currentMonthRevenue': current_revenue,
        'lastMonthRevenue': previous_revenue,
        'revenueGrowthRate': _growth_rate(current_revenue, previous_revenue),
        'totalRevenue': _revenue(subscriptions),
        'newUsersThisMonth': len(this_month_users),
        'newUsersLastMonth': len(last_month_users),
        'userGrowthRate': _growth_rate(len(this_month_users), len(last_month_users)),
        'topMealPlans': [
            {'id': p['id'], 'name': p.get('name', ''), 'saveCount': _save_count(p)}
            for p in top_plans
        ],
        'generatedAt': now.isoformat(),
    }
    logger.info(f"Built admin report: {report['totalUsers']} users, {report['totalMealPlans']} meal plans")
    return report
