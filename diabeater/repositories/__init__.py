"""
Entity-shaped access to the managed backend. Repositories decode records into
``diabeater.entities`` types and let store errors propagate unchanged.
"""
from diabeater.repositories.categories import CategoryRepository
from diabeater.repositories.feedback import FeedbackRepository
from diabeater.repositories.marketing import MarketingContentRepository
from diabeater.repositories.meal_plans import MealPlanRepository
from diabeater.repositories.notifications import NotificationRepository
from diabeater.repositories.nutritionist_applications import NutritionistApplicationRepository
from diabeater.repositories.reports import ReportRepository
from diabeater.repositories.rewards import RewardRepository
from diabeater.repositories.subscriptions import SubscriptionRepository
from diabeater.repositories.user_accounts import UserAccountRepository


class Repositories:
    """All repositories bound to one backend."""

    def __init__(self, backend):
        self.backend = backend
        documents, blobs = backend.documents, backend.blobs
        self.meal_plans = MealPlanRepository(documents, blobs)
        self.notifications = NotificationRepository(documents)
        self.categories = CategoryRepository(documents)
        self.user_accounts = UserAccountRepository(documents, blobs)
        self.applications = NutritionistApplicationRepository(documents, blobs)
        self.feedback = FeedbackRepository(documents)
        self.marketing = MarketingContentRepository(documents)
        self.subscriptions = SubscriptionRepository(documents)
        self.reports = ReportRepository(documents)
        self.rewards = RewardRepository(documents)

    @property
    def identity(self):
        return self.backend.identity


__all__ = [
    'CategoryRepository',
    'FeedbackRepository',
    'MarketingContentRepository',
    'MealPlanRepository',
    'NotificationRepository',
    'NutritionistApplicationRepository',
    'ReportRepository',
    'Repositories',
    'RewardRepository',
    'SubscriptionRepository',
    'UserAccountRepository',
]
