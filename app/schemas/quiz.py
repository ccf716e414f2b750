"""
Pydantic schemas for quiz documents, requests and responses
"""
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from datetime import datetime


class QuizOption(BaseModel):
    """One answer choice"""
    label: str  # "A".."E"
    text: str


class QuizQuestion(BaseModel):
    """Individual quiz question in normalized form"""
    id: int
    text: str
    passage: List[str] = []  # Empty when the quiz uses a shared passage
    options: List[QuizOption]
    correct_answer: str = Field(..., alias="correctAnswer")
    explanation: str = ""

    class Config:
        populate_by_name = True


class QuizDocument(BaseModel):
    """A quiz accepted by the validator"""
    title: str
    passage: List[str] = []
    passage_mode: str = Field("shared", pattern="^(shared|per_question)$")
    questions: List[QuizQuestion]

    def stored_questions(self) -> List[Dict[str, Any]]:
        """Questions as they are written to the JSON column"""
        return [q.model_dump(by_alias=True) for q in self.questions]


class QuizResponse(BaseModel):
    """Persisted quiz"""
    id: str
    class_id: str
    title: str
    passage: List[str]
    passage_mode: str
    questions: List[QuizQuestion]
    total_questions: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class QuizSummary(BaseModel):
    """Quiz listing entry"""
    id: str
    title: str
    total_questions: int
    created_at: datetime


class AttemptStart(BaseModel):
    """Student starting an attempt"""
    student_name: str = Field(..., min_length=1, max_length=255)


class StudentQuizView(BaseModel):
    """Quiz as shown to a student during an attempt (no answer key)"""
    id: str
    title: str
    passage: List[str]
    passage_mode: str
    questions: List[Dict[str, Any]]
    total_questions: int


class QuestionGrading(BaseModel):
    """Grading details for a single question"""
    question_id: int
    selected: Optional[str] = None
    correct_answer: str
    is_correct: bool
    explanation: str = ""


class QuestionStats(BaseModel):
    """Class-wide answer distribution for one question"""
    question_id: int
    text: str
    answered: int
    correct: int
    incorrect: int
    correct_percent: int
    incorrect_percent: int


class QuizStatsResponse(BaseModel):
    """Live per-question statistics for the teacher monitor"""
    test_id: str
    total_participants: int
    completed: int
    active: int
    questions: List[QuestionStats]
