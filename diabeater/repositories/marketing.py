import logging
from datetime import datetime

from diabeater.entities import MarketingContent
from diabeater.errors import NotFoundError, ValidationError
from diabeater.store import collections

logger = logging.getLogger(__name__)

CONTENT_DOC_ID = 'currentContent'


def default_content():
    year = datetime.utcnow().year
    return {
        'headerLogoText': "DiaBeater",
        'headerNavHome': "Home",
        'headerNavFeatures': "Features",
        'headerNavAbout': "About Us",
        'headerNavContact': "Contact",
        'headerCtaButton': "Sign Up",
        'heroTitle': "Welcome to DiaBeater - Manage Your Diabetes Easily!",
        'heroSubtitle': "Empowering you with tools for better health management.",
        'heroCtaText': "Start Your Journey",
        'youtubeVideoLink': "https://www.youtube.com/embed/your_video_id",
        'featuresSectionTitle': "Key Features",
        'feature1Title': "Personalized Meal Plans",
        'feature1Description': "Get meal plans tailored to your dietary needs and health goals, updated regularly.",
        'feature2Title': "Glucose Tracking & Analytics",
        'feature2Description': "Monitor your glucose levels with intuitive graphs and detailed reports for better insights.",
        'feature3Title': "Secure Data Storage",
        'feature3Description': "Your health data is securely stored and accessible anytime, anywhere, ensuring privacy.",
        'feature4Title': "Direct Nutritionist Support",
        'feature4Description': "Connect directly with certified nutritionists for expert advice and personalized guidance.",
        'testimonialsSectionTitle': "What Our Users Say",
        'nutritionistsSectionTitle': "Meet Our Expert Nutritionists",
        'gamificationSectionTitle': "Stay Motivated with Gamification",
        'gamificationDescription': "Earn points, unlock badges, and compete with friends to make managing diabetes fun, engaging, and rewarding!",
        'featuresComparisonTitle': "Basic vs. Premium Features",
        'basicHeader': "Basic Plan",
        'premiumHeader': "Premium Plan",
        'basicFeatureList': [
            "Basic Glucose Tracking",
            "Standard Meal Ideas",
            "Community Forum Access",
        ],
        'premiumFeatureList': [
            "Advanced Glucose Analytics",
            "Personalized Meal Plans",
            "Direct Nutritionist Chat",
            "Premium Content Library",
            "Exclusive Webinars",
        ],
        'comparisonCtaText': "Upgrade Now",
        'downloadCTATitle': "Download DiaBeater Today!",
        'downloadCTASubtitle': "Available on iOS and Android. Start your journey to better health now.",
        'appStoreLink': "#",
        'googlePlayLink': "#",
        'footerAboutText': "DiaBeater is committed to providing innovative tools for diabetes management.",
        'footerContactEmail': "info@diabeater.com",
        'footerCopyright': f"© {year} DiaBeater. All rights reserved.",
        'footerPrivacyPolicy': "Privacy Policy",
        'footerTermsOfService': "Terms of Service",
        'isHosted': True,
    }


class MarketingContentRepository:

    def __init__(self, documents):
        self.documents = documents

    def _ensure_content(self):
        try:
            return self.documents.get(collections.MARKETING_WEBSITE, CONTENT_DOC_ID)
        except NotFoundError:
            logger.info("Marketing content not found. Initializing with default.")
            self.documents.set(collections.MARKETING_WEBSITE, CONTENT_DOC_ID, default_content())
            return self.documents.get(collections.MARKETING_WEBSITE, CONTENT_DOC_ID)

    def fetch_content(self):
        return MarketingContent.from_record(self._ensure_content())

    def update_content(self, fields):
        if not fields:
            raise ValidationError("No marketing content fields to update.")
        update = {key: value for key, value in fields.items() if key not in ('id', 'isHosted')}
        # Validate the merged document before writing it
        current = self._ensure_content()
        MarketingContent.from_record({**current, **update})
        record = self.documents.update(collections.MARKETING_WEBSITE, CONTENT_DOC_ID, update)
        return MarketingContent.from_record(record)

    def stop_hosting(self):
        self._ensure_content()
        record = self.documents.update(collections.MARKETING_WEBSITE, CONTENT_DOC_ID, {'isHosted': False})
        logger.info("Marketing website hosting disabled")
        return MarketingContent.from_record(record)
