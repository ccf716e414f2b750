"""
LiveSession model - where a student is right now in an attempt
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, UniqueConstraint
from app.database import Base
from app.models.base import new_id, utcnow


class LiveSession(Base):
    """
    Live sessions table - one mutable row per (test, student_name)
    """
    __tablename__ = "live_sessions"
    __table_args__ = (
        UniqueConstraint("test_id", "student_name", name="uq_live_session_student"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False, index=True)
    test_id = Column(String(36), ForeignKey("tests.id"), nullable=False, index=True)
    student_name = Column(String(255), nullable=False)
    current_question_index = Column(Integer, nullable=False, default=0)
    answers = Column(JSON, nullable=False, default=dict)  # {question_id: label}
    last_updated = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return (
            f"<LiveSession(test_id={self.test_id}, student={self.student_name}, "
            f"q={self.current_question_index})>"
        )
