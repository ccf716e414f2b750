"""
Submission model - one immutable record per completed attempt
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON
from app.database import Base
from app.models.base import new_id, utcnow


class Submission(Base):
    """
    Submissions table - append-only; a student may hold several attempts
    """
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=new_id)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False, index=True)
    test_id = Column(String(36), ForeignKey("tests.id"), nullable=False, index=True)
    student_name = Column(String(255), nullable=False, index=True)
    score = Column(Integer, nullable=False)  # 0-100
    answers = Column(JSON, nullable=False, default=dict)  # {question_id: label}
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Submission(test_id={self.test_id}, student={self.student_name}, score={self.score})>"
