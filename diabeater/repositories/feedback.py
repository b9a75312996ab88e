from diabeater.entities import Feedback
from diabeater.store import collections

MAX_FEATURED = 3


class FeedbackRepository:

    def __init__(self, documents):
        self.documents = documents

    def get_feedbacks(self):
        return [Feedback.from_record(r) for r in self.documents.query(collections.FEEDBACKS)]

    def get_feedback(self, feedback_id):
        return Feedback.from_record(self.documents.get(collections.FEEDBACKS, feedback_id))

    def set_display_on_marketing(self, feedback_id, display):
        record = self.documents.update(collections.FEEDBACKS, feedback_id, {'displayOnMarketing': bool(display)})
        return Feedback.from_record(record)

    def get_featured_feedbacks(self):
        """Public testimonials: featured five-star feedback, at most three."""
        featured = [
            f for f in self.get_feedbacks()
            if f.display_on_marketing and f.rating == 5
        ]
        return featured[:MAX_FEATURED]
