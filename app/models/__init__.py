"""
Database models package
"""
from app.models.classroom import Classroom
from app.models.quiz import Quiz
from app.models.submission import Submission
from app.models.live_session import LiveSession

__all__ = ["Classroom", "Quiz", "Submission", "LiveSession"]
