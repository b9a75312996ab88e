from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from diabeater import db
from diabeater.core.api import form_error_response, get_repositories, read_upload, register_error_handlers
from diabeater.forms import LoginForm, NutritionistApplicationForm
from diabeater.models import User
from diabeater.services.accounts import apply_as_nutritionist
from diabeater.utils.logging import log_action

auth_bp = Blueprint("auth", __name__)
register_error_handlers(auth_bp)


def _portal_refusal(claims):
    """Message explaining why a verified login may not use the portal, or None."""
    if claims.get('admin') is True:
        return None
    if claims.get('nutritionist') is True:
        if claims.get('approved') is True:
            return None
        if claims.get('rejected') is True:
            return "Your nutritionist application was not approved."
        return "Your nutritionist application is still pending approval."
    if claims.get('rejected') is True:
        return "Your nutritionist application was not approved."
    return "This portal is only available to admins and approved nutritionists."


def _user_payload(user):
    return {
        "id": user.id,
        "email": user.email,
        "displayName": user.display_name,
        "role": user.role,
        "timeZone": user.time_zone,
    }


@auth_bp.route("/csrf-token", methods=["GET"])
def csrf_token():
    return jsonify({"csrfToken": generate_csrf()})


@auth_bp.route("/login", methods=["POST"])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    identity = get_repositories().identity
    result = identity.verify(form.email.data, form.password.data)
    refusal = _portal_refusal(result["claims"])
    if refusal:
        log_action("Login Refused", f"Portal login refused for {form.email.data}: {refusal}", actor_id=result["uid"])
        return jsonify({"error": refusal}), 403

    user = db.session.get(User, result["uid"])
    login_user(user)
    log_action("Login", f"User {user.email} logged in", actor_id=user.id)
    return jsonify({"user": _user_payload(user)})


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    log_action("Logout", f"User {current_user.email} logged out", actor_id=current_user.id)
    logout_user()
    return jsonify({"message": "You have been logged out."})


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({"user": _user_payload(current_user)})


@auth_bp.route("/apply", methods=["POST"])
def apply():
    """Nutritionist application: multipart form with a PDF certificate."""
    form = NutritionistApplicationForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    certificate_name, certificate_data, _ = read_upload(form.certificate.data)
    data = {
        "email": form.email.data.strip().lower(),
        "firstName": form.first_name.data.strip(),
        "lastName": form.last_name.data.strip(),
        "dob": form.dob.data.isoformat() if form.dob.data else "",
    }
    application = apply_as_nutritionist(
        get_repositories(), data, form.password.data, certificate_name, certificate_data
    )
    log_action(
        "Nutritionist Application",
        f"{application.full_name} ({application.email}) applied as a nutritionist",
        actor_id=application.id,
    )
    return jsonify({
        "message": "Application submitted. You will receive an email once it has been reviewed.",
        "application": application.to_dict(),
    }), 201
