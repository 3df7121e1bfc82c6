# bcalm/db/models.py
from sqlalchemy import Column, Integer, Float, String, Text, ForeignKey, DateTime, JSON, Boolean, UniqueConstraint
from .base import Base

class Profile(Base):
    __tablename__ = "profiles"
    id = Column(String, primary_key=True)  # identity provider user id
    email = Column(String, nullable=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    current_status = Column(String, nullable=True)
    target_role = Column(String, nullable=True)
    years_experience = Column(Integer, nullable=True)
    onboarding_status = Column(String, nullable=False, default="pending")
    personalization_quality = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

class AssessmentQuestion(Base):
    __tablename__ = "assessment_questions"
    id = Column(String, primary_key=True)
    dimension = Column(String, nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    order_index = Column(Integer, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

class AssessmentAttempt(Base):
    __tablename__ = "assessment_attempts"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    total_score = Column(Integer, nullable=True)
    readiness_band = Column(String, nullable=True)
    scores_json = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    share_token = Column(String, nullable=True, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

class AssessmentAnswer(Base):
    __tablename__ = "assessment_answers"
    # one row per question per attempt; re-answering upserts on this key
    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_answer_attempt_question"),
    )
    id = Column(String, primary_key=True)
    attempt_id = Column(String, ForeignKey("assessment_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("assessment_questions.id"), nullable=False)
    answer_value = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

class AnalysisJob(Base):
    __tablename__ = "analysis_jobs"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="processing", index=True)
    cv_file_path = Column(String, nullable=True)
    cv_file_name = Column(String, nullable=True)
    cv_text = Column(Text, nullable=True)
    jd_text = Column(Text, nullable=True)
    score = Column(Float, nullable=True)
    strengths = Column(JSON, nullable=True)
    gaps = Column(JSON, nullable=True)
    quick_wins = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    needs_jd = Column(Boolean, nullable=False, default=False)
    needs_target_role = Column(Boolean, nullable=False, default=False)
    result_json = Column(JSON, nullable=True)
    meta_snapshot = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
