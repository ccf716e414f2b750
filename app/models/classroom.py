"""
Classroom model - a teacher's class, resolved by join code
"""
from sqlalchemy import Column, String, DateTime
from app.database import Base
from app.models.base import new_id, utcnow


class Classroom(Base):
    """
    Classes table - owned by one teacher, joined by students via join code
    """
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    join_code = Column(String(16), unique=True, nullable=False, index=True)
    teacher_id = Column(String(128), nullable=False, index=True)
    active_test_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Classroom(id={self.id}, name={self.name}, join_code={self.join_code})>"
