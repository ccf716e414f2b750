"""
Column default helpers shared by all models
"""
from datetime import datetime, timezone
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
