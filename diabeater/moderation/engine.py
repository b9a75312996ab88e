"""
Meal plan moderation: the PENDING_APPROVAL -> APPROVED | REJECTED transition
and the author notification that follows each decision.
"""
import logging
from dataclasses import dataclass

from diabeater.entities import MealPlanStatus
from diabeater.errors import AuthorizationError, DiabeaterError, PartialFailure, ValidationError
from diabeater.moderation.messages import compose_status_message
from diabeater.utils.logging import log_action

logger = logging.getLogger(__name__)

VERDICTS = (MealPlanStatus.APPROVED, MealPlanStatus.REJECTED)


@dataclass
class Decision:
    plan: object
    notification: object


def parse_verdict(verdict):
    if isinstance(verdict, MealPlanStatus):
        status = verdict
    else:
        try:
            status = MealPlanStatus((verdict or '').strip().upper())
        except (ValueError, AttributeError):
            raise ValidationError(f"Unknown decision {verdict!r}. Use APPROVED or REJECTED.")
    if status not in VERDICTS:
        raise ValidationError("A decision must be APPROVED or REJECTED.")
    return status


class ModerationEngine:
    """
    Applies admin decisions to meal plans.

    ``decider`` is the logged-in user making decisions; only admins may decide.
    ``state`` is the caller's MealPlanState, refreshed after every decision
    that changed a plan.
    """

    def __init__(self, meal_plans, notifications, decider, state=None):
        self.meal_plans = meal_plans
        self.notifications = notifications
        self.decider = decider
        self.state = state

    def _validate(self, verdict, reason):
        status = parse_verdict(verdict)
        reason = (reason or '').strip()
        if status is MealPlanStatus.REJECTED and not reason:
            raise ValidationError("A rejection reason is required.")
        if getattr(self.decider, 'role', None) != 'admin':
            raise AuthorizationError("Only admins can approve or reject meal plans.")
        return status, reason or None

    def decide(self, plan_id, verdict, reason=None):
        """
        Approve or reject a plan and notify its author.

        Raises:
            ValidationError: bad verdict, or rejection without a reason
            AuthorizationError: decider is not an admin
            NotFoundError: the plan does not exist
            TransientIOError: the status write failed (nothing was written)
            PartialFailure: the status was saved but the notification was not
        """
        status, reason = self._validate(verdict, reason)

        plan = self.meal_plans.get_meal_plan(plan_id)
        if plan.status is not MealPlanStatus.PENDING_APPROVAL:
            logger.warning(
                f"Meal plan {plan_id} is already {plan.status.value}; "
                f"{self.decider.display_name} is re-deciding it as {status.value}"
            )

        updated = self.meal_plans.update_meal_plan_status(plan_id, status, reason)

        message = compose_status_message(updated.name, status, self.decider.display_name, reason)
        try:
            notification = self.notifications.add_notification(
                recipient_id=updated.author_id,
                message=message,
                meal_plan_id=updated.id,
                rejection_reason=reason,
            )
        except DiabeaterError as e:
            logger.error(f"Meal plan {plan_id} marked {status.value} but notifying {updated.author_id} failed: {e}")
            self._refresh()
            self._audit(updated, status, reason, notified=False)
            raise PartialFailure(
                f'Decision saved, but the notification to the author of "{updated.name}" failed.',
                result=updated,
                cause=e,
            ) from e

        self._refresh()
        self._audit(updated, status, reason, notified=True)
        return Decision(plan=updated, notification=notification)

    def _refresh(self):
        if self.state is not None:
            self.state.refresh()

    def _audit(self, plan, status, reason, notified):
        description = f"{self.decider.display_name} {status.value.lower()} meal plan '{plan.name}' ({plan.id})"
        if reason:
            description += f": {reason}"
        if not notified:
            description += " [author not notified]"
        log_action('Moderation', description, actor_id=getattr(self.decider, 'id', None))
