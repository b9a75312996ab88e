from diabeater.entities import MealPlanStatus


def compose_status_message(plan_name, verdict, decider_name, reason=None):
    """Notification text sent to a plan's author after a moderation decision."""
    message = f'Your meal plan "{plan_name}" has been {verdict.value} by {decider_name}.'
    if verdict is MealPlanStatus.REJECTED:
        message += f" Reason: {reason}"
    return message
