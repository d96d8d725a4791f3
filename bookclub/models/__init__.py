"""SQLAlchemy ORM models."""

from bookclub.models.analytics import ReadingAnalytics
from bookclub.models.recommendation import BookRecommendation
from bookclub.models.user import User

__all__ = ["BookRecommendation", "ReadingAnalytics", "User"]
