"""
Quiz model - a validated quiz document assigned to a class
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from app.database import Base
from app.models.base import new_id, utcnow


class Quiz(Base):
    """
    Tests table - stores the full quiz document

    passage and questions are replaced as a whole on every edit; there are
    no partial patches.
    """
    __tablename__ = "tests"

    id = Column(String(36), primary_key=True, default=new_id)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    passage = Column(JSON, nullable=False, default=list)  # ["paragraph 1", "paragraph 2"]
    passage_mode = Column(String(20), nullable=False, default="shared")
    questions = Column(JSON, nullable=False)  # Full question data
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Quiz(id={self.id}, class_id={self.class_id}, title={self.title})>"
