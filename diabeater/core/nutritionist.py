from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from diabeater.core.api import (
    form_error_response,
    get_repositories,
    nutritionist_required,
    read_upload,
    register_error_handlers,
)
from diabeater.entities import Role
from diabeater.errors import AuthorizationError, ValidationError
from diabeater.forms import MealPlanForm, ProfileForm, ProfileImageForm
from diabeater.moderation import ALL_TAB, ListFilters
from diabeater.state import MealPlanState

nutritionist_bp = Blueprint("nutritionist", __name__)
register_error_handlers(nutritionist_bp)


@nutritionist_bp.before_request
@login_required
@nutritionist_required
def require_nutritionist():
    """Every nutritionist endpoint needs an approved nutritionist."""


def _own_plan(repos, plan_id):
    plan = repos.meal_plans.get_meal_plan(plan_id)
    if plan.author_id != current_user.id:
        raise AuthorizationError("You can only manage your own meal plans.")
    return plan


def _own_state(repos):
    state = MealPlanState(repos.meal_plans, Role.nutritionist, user_id=current_user.id,
                          filters=ListFilters.from_args(request.args, default_tab=ALL_TAB))
    state.refresh()
    return state


@nutritionist_bp.route("/meal-plans", methods=["GET"])
def list_meal_plans():
    view = _own_state(get_repositories()).view()
    return jsonify(view.to_dict())


@nutritionist_bp.route("/meal-plans/<plan_id>", methods=["GET"])
def meal_plan_detail(plan_id):
    plan = _own_plan(get_repositories(), plan_id)
    return jsonify({"mealPlan": plan.to_dict()})


@nutritionist_bp.route("/meal-plans", methods=["POST"])
def create_meal_plan():
    form = MealPlanForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    upload = read_upload(form.image.data)
    if upload is None:
        raise ValidationError("Please upload a meal plan image.")

    repos = get_repositories()
    account = repos.user_accounts.get_user(current_user.id)
    filename, data, _ = upload
    plan = repos.meal_plans.add_meal_plan(
        form.to_record(), filename, data,
        author_id=current_user.id,
        author_name=account.display_name,
    )
    return jsonify({
        "mealPlan": plan.to_dict(),
        "message": "Meal plan submitted for approval.",
    }), 201


@nutritionist_bp.route("/meal-plans/<plan_id>", methods=["PUT"])
def update_meal_plan(plan_id):
    repos = get_repositories()
    _own_plan(repos, plan_id)
    form = MealPlanForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    upload = read_upload(form.image.data)
    new_image = upload[:2] if upload else None
    plan = repos.meal_plans.update_meal_plan(plan_id, form.to_record(), new_image=new_image)
    return jsonify({
        "mealPlan": plan.to_dict(),
        "message": "Meal plan updated and sent back for approval.",
    })


@nutritionist_bp.route("/meal-plans/<plan_id>", methods=["DELETE"])
def delete_meal_plan(plan_id):
    repos = get_repositories()
    _own_plan(repos, plan_id)
    plan = repos.meal_plans.delete_meal_plan(plan_id)
    return jsonify({"message": f'Meal plan "{plan.name}" deleted.'})


@nutritionist_bp.route("/notifications", methods=["GET"])
def notifications():
    items = get_repositories().notifications.get_notifications(current_user.id, status_updates_only=True)
    return jsonify({
        "notifications": [n.to_dict() for n in items],
        "unreadCount": sum(1 for n in items if not n.read),
    })


@nutritionist_bp.route("/notifications/<notification_id>/read", methods=["POST"])
def mark_notification_read(notification_id):
    repo = get_repositories().notifications
    notification = repo.get_notification(notification_id)
    if notification.recipient_id != current_user.id:
        raise AuthorizationError("You can only update your own notifications.")
    return jsonify({"notification": repo.mark_as_read(notification_id).to_dict()})


@nutritionist_bp.route("/profile", methods=["GET"])
def profile():
    account = get_repositories().user_accounts.get_user(current_user.id)
    return jsonify({"profile": account.to_dict()})


@nutritionist_bp.route("/profile", methods=["PUT"])
def update_profile():
    form = ProfileForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    account = get_repositories().user_accounts.update_profile(current_user.id, form.to_record())
    return jsonify({"profile": account.to_dict()})


@nutritionist_bp.route("/profile/image", methods=["POST"])
def upload_profile_image():
    form = ProfileImageForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    filename, data, content_type = read_upload(form.image.data)
    url = get_repositories().user_accounts.upload_profile_image(current_user.id, filename, data, content_type)
    return jsonify({"profilePictureUrl": url})
