import logging

import pytz
from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user

from diabeater.core.api import (
    admin_required,
    form_error_response,
    get_repositories,
    json_body,
    register_error_handlers,
)
from diabeater.entities import ApplicationStatus, Role
from diabeater.errors import PartialFailure, ValidationError
from diabeater.forms import (
    AdminAccountForm,
    ApplicationRejectionForm,
    CategoryForm,
    DecisionForm,
    SubscriptionPriceForm,
)
from diabeater.models import LogEntry, User
from diabeater.moderation import ListFilters, ModerationEngine
from diabeater.repositories.subscriptions import PREMIUM_PLAN_NAME
from diabeater.services import accounts, categories, feedback, reports, rewards
from diabeater.state import MealPlanState, UserAccountsState
from diabeater.utils.logging import log_action

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__)
register_error_handlers(admin_bp)


@admin_bp.before_request
@login_required
@admin_required
def require_admin():
    """Every admin endpoint needs a logged-in admin."""


def _meal_plan_state(repos):
    state = MealPlanState(repos.meal_plans, Role.admin, user_id=current_user.id,
                          filters=ListFilters.from_args(request.args))
    state.refresh()
    return state


# Meal plans

@admin_bp.route("/meal-plans", methods=["GET"])
def list_meal_plans():
    state = _meal_plan_state(get_repositories())
    view = state.view()
    return jsonify({"tab": state.filters.active_tab, **view.to_dict()})


@admin_bp.route("/meal-plans/<plan_id>", methods=["GET"])
def meal_plan_detail(plan_id):
    plan = get_repositories().meal_plans.get_meal_plan(plan_id)
    return jsonify({"mealPlan": plan.to_dict()})


@admin_bp.route("/meal-plans/<plan_id>/decision", methods=["POST"])
def decide_meal_plan(plan_id):
    form = DecisionForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    repos = get_repositories()
    state = MealPlanState(repos.meal_plans, Role.admin, user_id=current_user.id,
                          filters=ListFilters.from_args(request.args))
    engine = ModerationEngine(repos.meal_plans, repos.notifications, current_user, state=state)
    try:
        decision = engine.decide(plan_id, form.verdict.data, form.reason.data)
    except PartialFailure as e:
        return jsonify({
            "mealPlan": e.result.to_dict(),
            "warning": e.message,
            "counts": state.view().counts,
        })

    return jsonify({
        "mealPlan": decision.plan.to_dict(),
        "notification": decision.notification.to_dict(),
        "message": f'Meal plan "{decision.plan.name}" {decision.plan.status.value.lower()}.',
        "counts": state.view().counts,
    })


@admin_bp.route("/meal-plans/<plan_id>", methods=["DELETE"])
def delete_meal_plan(plan_id):
    plan = get_repositories().meal_plans.delete_meal_plan(plan_id)
    log_action("Moderation", f"{current_user.display_name} deleted meal plan '{plan.name}' ({plan.id})")
    return jsonify({"message": f'Meal plan "{plan.name}" deleted.'})


# Categories

@admin_bp.route("/categories", methods=["GET"])
def list_categories():
    items = categories.list_categories(get_repositories().categories)
    return jsonify({"categories": [c.to_dict() for c in items]})


@admin_bp.route("/categories", methods=["POST"])
def create_category():
    form = CategoryForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    category = categories.create_category(
        get_repositories().categories, form.name.data, form.description.data, form.external_id.data
    )
    return jsonify({"category": category.to_dict()}), 201


@admin_bp.route("/categories/<category_id>", methods=["PUT"])
def update_category(category_id):
    form = CategoryForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    category = categories.update_category(
        get_repositories().categories, category_id, form.name.data, form.description.data, form.external_id.data
    )
    return jsonify({"category": category.to_dict()})


@admin_bp.route("/categories/<category_id>", methods=["DELETE"])
def delete_category(category_id):
    category = categories.delete_category(get_repositories().categories, category_id)
    return jsonify({"message": f"Category '{category.name}' deleted."})


# User accounts

def _account_matches(account, search_term):
    if not search_term:
        return True
    needle = search_term.lower()
    return any(needle in (text or '').lower() for text in (account.display_name, account.email, account.username))


@admin_bp.route("/users", methods=["GET"])
def list_users():
    role = request.args.get("role")
    try:
        role = Role(role) if role else None
    except ValueError:
        raise ValidationError(f"Unknown role '{role}'.")
    state = UserAccountsState(get_repositories().user_accounts, role=role)
    state.refresh()
    search_term = (request.args.get("search") or "").strip()
    users = [a for a in state.accounts if _account_matches(a, search_term)]
    return jsonify({"users": [a.to_dict() for a in users]})


@admin_bp.route("/users/<user_id>", methods=["GET"])
def user_detail(user_id):
    account = get_repositories().user_accounts.get_user(user_id)
    return jsonify({"user": account.to_dict()})


def _change_suspension(user_id, action):
    repos = get_repositories()
    state = UserAccountsState(repos.user_accounts)
    state.refresh()
    account = action(repos, state, user_id)
    return jsonify({"user": account.to_dict(), "users": [a.to_dict() for a in state.accounts]})


@admin_bp.route("/users/<user_id>/suspend", methods=["POST"])
def suspend_user(user_id):
    if user_id == current_user.id:
        raise ValidationError("You cannot suspend your own account.")
    return _change_suspension(user_id, accounts.suspend)


@admin_bp.route("/users/<user_id>/unsuspend", methods=["POST"])
def unsuspend_user(user_id):
    return _change_suspension(user_id, accounts.unsuspend)


@admin_bp.route("/admins", methods=["POST"])
def create_admin_account():
    form = AdminAccountForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    account = accounts.create_admin_account(get_repositories(), form.to_record(), form.password.data)
    return jsonify({"user": account.to_dict(), "message": "Admin account created successfully."}), 201


@admin_bp.route("/premium-accounts", methods=["GET"])
def premium_accounts():
    repos = get_repositories()
    users = []
    for account in repos.user_accounts.get_premium_users():
        history = repos.subscriptions.get_user_subscriptions(account.id, plan_name=PREMIUM_PLAN_NAME)
        users.append({**account.to_dict(), "currentSubscription": history[0] if history else None})
    return jsonify({"users": users})


@admin_bp.route("/premium-accounts/<user_id>/subscriptions", methods=["GET"])
def subscription_history(user_id):
    repos = get_repositories()
    account = repos.user_accounts.get_user(user_id)
    return jsonify({
        "user": account.to_dict(),
        "subscriptions": repos.subscriptions.get_user_subscriptions(user_id),
    })


# Nutritionist applications

@admin_bp.route("/applications", methods=["GET"])
def list_applications():
    status = request.args.get("status")
    try:
        status = ApplicationStatus(status) if status else None
    except ValueError:
        raise ValidationError(f"Unknown application status '{status}'.")
    applications = get_repositories().applications.get_all_applications(status=status)
    return jsonify({"applications": [a.to_dict() for a in applications]})


@admin_bp.route("/applications/<user_id>/certificate", methods=["GET"])
def application_certificate(user_id):
    url = get_repositories().applications.get_certificate_url(user_id)
    return jsonify({"certificateUrl": url})


@admin_bp.route("/applications/<user_id>/approve", methods=["POST"])
def approve_application(user_id):
    return jsonify(accounts.approve_nutritionist(get_repositories(), user_id))


@admin_bp.route("/applications/<user_id>/reject", methods=["POST"])
def reject_application(user_id):
    form = ApplicationRejectionForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    return jsonify(accounts.reject_nutritionist(get_repositories(), user_id, form.reason.data))


# Feedback

@admin_bp.route("/feedback", methods=["GET"])
def list_feedback():
    items = get_repositories().feedback.get_feedbacks()
    return jsonify({
        "feedbacks": [f.to_dict() for f in items],
        "featuredCount": sum(1 for f in items if f.display_on_marketing),
    })


@admin_bp.route("/feedback/<feedback_id>/toggle", methods=["POST"])
def toggle_feedback(feedback_id):
    updated = feedback.toggle_display_on_marketing(get_repositories().feedback, feedback_id)
    return jsonify({"feedback": updated.to_dict()})


@admin_bp.route("/feedback/automate", methods=["POST"])
def automate_feedback():
    return jsonify(feedback.automate_featured(get_repositories().feedback))


# Marketing website

@admin_bp.route("/marketing", methods=["GET"])
def marketing_content():
    repos = get_repositories()
    return jsonify({
        "content": repos.marketing.fetch_content().to_dict(),
        "testimonials": [f.to_dict() for f in repos.feedback.get_featured_feedbacks()],
    })


@admin_bp.route("/marketing", methods=["PUT"])
def update_marketing_content():
    content = get_repositories().marketing.update_content(json_body())
    log_action("Marketing", f"{current_user.display_name} updated marketing content")
    return jsonify({"content": content.to_dict()})


@admin_bp.route("/marketing/stop-hosting", methods=["POST"])
def stop_hosting():
    content = get_repositories().marketing.stop_hosting()
    log_action("Marketing", f"{current_user.display_name} stopped hosting the marketing website")
    return jsonify({"content": content.to_dict()})


# Subscriptions

@admin_bp.route("/subscriptions/<plan_id>", methods=["GET"])
def subscription_plan(plan_id):
    plan = get_repositories().subscriptions.get_plan(plan_id)
    return jsonify({"plan": plan.to_dict()})


@admin_bp.route("/subscriptions/<plan_id>/price", methods=["PUT"])
def update_subscription_price(plan_id):
    form = SubscriptionPriceForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    plan = get_repositories().subscriptions.update_subscription_price(plan_id, form.price.data)
    log_action("Subscriptions", f"Price for {plan_id} set to {plan.price:.2f}")
    return jsonify({"plan": plan.to_dict(), "message": f"Price for {plan_id} updated successfully."})


@admin_bp.route("/subscriptions/<plan_id>/features", methods=["PUT"])
def update_subscription_features(plan_id):
    features = json_body().get("features")
    plan = get_repositories().subscriptions.update_premium_features(plan_id, features)
    log_action("Subscriptions", f"Features for {plan_id} updated ({len(plan.features)} entries)")
    return jsonify({"plan": plan.to_dict(), "message": f"Features for {plan_id} updated successfully."})


# Rewards

@admin_bp.route("/rewards", methods=["GET"])
def list_rewards():
    reward_type = rewards.parse_reward_type(request.args.get("type"), required=False)
    result = rewards.list_rewards(get_repositories().rewards, reward_type)
    return jsonify({
        "rewards": [r.to_dict() for r in result["rewards"]],
        "templates": [t.to_dict() for t in result["templates"]],
    })


@admin_bp.route("/rewards", methods=["POST"])
def add_reward():
    data = json_body()
    reward_type = rewards.parse_reward_type(data.get("type"))
    reward = rewards.add_reward(get_repositories().rewards, reward_type, data)
    return jsonify({"reward": reward.to_dict()}), 201


@admin_bp.route("/rewards/<reward_id>", methods=["PUT"])
def update_reward(reward_id):
    reward = rewards.update_reward(get_repositories().rewards, reward_id, json_body())
    return jsonify({"reward": reward.to_dict()})


@admin_bp.route("/rewards/<reward_id>", methods=["DELETE"])
def delete_reward(reward_id):
    reward = rewards.delete_reward(get_repositories().rewards, reward_id)
    return jsonify({"message": f"Reward '{reward.name}' deleted."})


# Reports and audit log

@admin_bp.route("/report", methods=["GET"])
def report():
    return jsonify({"report": reports.build_report(get_repositories().reports)})


@admin_bp.route("/logs", methods=["GET"])
def view_logs():
    user_tz = pytz.timezone(current_user.time_zone or current_app.config["DISPLAY_TIME_ZONE"])

    # Use outerjoin (LEFT JOIN) to include entries with no actor
    log_entries = LogEntry.query.outerjoin(User, LogEntry.actor_id == User.id)
    log_entries = log_entries.order_by(LogEntry.timestamp.desc()).limit(500).all()

    entries = []
    for log in log_entries:
        localized_timestamp = log.timestamp.replace(tzinfo=pytz.utc).astimezone(user_tz)
        tz_abbr = localized_timestamp.tzname()
        entries.append({
            "timestamp": localized_timestamp.strftime("%Y-%m-%d, %I:%M:%S %p ") + tz_abbr,
            "actor": log.actor.email if log.actor else None,
            "category": log.category,
            "description": log.description,
        })
    return jsonify({"logs": entries})
