"""
Collection names in the document store. These match the names the mobile app
and the marketing site already read, so they must not be renamed.
"""

MEAL_PLANS = "meal_plans"
USER_ACCOUNTS = "user_accounts"
NOTIFICATIONS = "notifications"
MEAL_PLAN_CATEGORIES = "meal_plan_categories"
FEEDBACKS = "feedbacks"
NUTRITIONIST_APPLICATIONS = "nutritionist_application"
SUBSCRIPTIONS = "subscriptions"
SUBSCRIPTION_PLANS = "plans"
ADMINS = "admins"
MARKETING_WEBSITE = "marketingWebsite"
REWARDS = "rewards"
REWARD_TEMPLATES = "reward_templates"

# Older screens wrote to "user-accounts"; everything now resolves to one name.
LEGACY_ALIASES = {
    "user-accounts": USER_ACCOUNTS,
}


def resolve(name):
    return LEGACY_ALIASES.get(name, name)
