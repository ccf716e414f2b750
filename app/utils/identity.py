"""
Identity boundaries

Teachers are authenticated by an external provider whose gateway forwards
a stable teacher id; students are self-declared and unverified.
"""
from fastapi import Header, HTTPException
from typing import Optional
import logging

logger = logging.getLogger(__name__)

TEACHER_HEADER = "X-Teacher-Id"


async def get_current_teacher(
    x_teacher_id: Optional[str] = Header(None, alias=TEACHER_HEADER)
) -> str:
    """
    Resolve the authenticated teacher id

    Raises:
        HTTPException: 401 if the gateway did not forward an identity
    """
    if not x_teacher_id or not x_teacher_id.strip():
        logger.info("Rejected teacher request without identity header")
        raise HTTPException(status_code=401, detail="Teacher sign-in required")
    return x_teacher_id.strip()


def normalize_student_name(name: str) -> str:
    """
    Trim a self-declared student name

    Raises:
        HTTPException: 400 if the name is blank
    """
    cleaned = " ".join(name.split())
    if not cleaned:
        raise HTTPException(status_code=400, detail="Student name is required")
    return cleaned


def normalize_join_code(code: str) -> str:
    """Join codes are stored uppercase; user input is uppercased before lookup"""
    return code.strip().upper()
