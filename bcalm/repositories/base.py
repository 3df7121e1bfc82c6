# bcalm/repositories/base.py
"""
Persistence contracts used by the services.

Two implementations satisfy them: `bcalm.repositories.sql` (SQLAlchemy) and
`bcalm.repositories.memory` (dicts, for tests and local runs). Both must keep
the same invariants:

- answers are unique per (attempt_id, question_id); `upsert` updates in place
- `AttemptRepository.complete` only updates an attempt that is not completed
- `AnalysisJobRepository.mark_complete/mark_failed` only move jobs out of
  `processing`; they return None when the job is missing or already terminal
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from bcalm.models.analysis import AnalysisJob, AnalysisReport
from bcalm.models.assessment import AssessmentAnswer, AssessmentAttempt, AssessmentQuestion
from bcalm.models.profile import Profile


class QuestionRepository(ABC):
    @abstractmethod
    async def list_ordered(self) -> List[AssessmentQuestion]: ...

    @abstractmethod
    async def get(self, question_id: str) -> Optional[AssessmentQuestion]: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def add_many(self, questions: Sequence[Dict[str, Any]]) -> List[AssessmentQuestion]: ...


class AttemptRepository(ABC):
    @abstractmethod
    async def create(self, user_id: str) -> AssessmentAttempt: ...

    @abstractmethod
    async def get(self, attempt_id: str) -> Optional[AssessmentAttempt]: ...

    @abstractmethod
    async def latest_incomplete(self, user_id: str) -> Optional[AssessmentAttempt]: ...

    @abstractmethod
    async def get_by_share_token(self, share_token: str) -> Optional[AssessmentAttempt]: ...

    @abstractmethod
    async def complete(
        self,
        attempt_id: str,
        total_score: int,
        readiness_band: str,
        scores_json: str,
        share_token: str,
        completed_at: datetime,
    ) -> Optional[AssessmentAttempt]: ...

    @abstractmethod
    async def delete(self, attempt_id: str) -> bool: ...


class AnswerRepository(ABC):
    @abstractmethod
    async def upsert(self, attempt_id: str, question_id: str, answer_value: int) -> AssessmentAnswer: ...

    @abstractmethod
    async def list_for_attempt(self, attempt_id: str) -> List[AssessmentAnswer]: ...

    @abstractmethod
    async def count_for_attempt(self, attempt_id: str) -> int: ...

    @abstractmethod
    async def delete_for_attempt(self, attempt_id: str) -> int: ...


class ProfileRepository(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> Optional[Profile]: ...

    @abstractmethod
    async def create(self, user_id: str, **fields: Any) -> Profile: ...

    @abstractmethod
    async def update(self, user_id: str, **fields: Any) -> Optional[Profile]: ...


class AnalysisJobRepository(ABC):
    @abstractmethod
    async def create(
        self,
        user_id: str,
        cv_file_path: Optional[str],
        cv_file_name: Optional[str],
        cv_text: Optional[str],
        jd_text: Optional[str],
        meta_snapshot: Optional[Dict[str, Any]] = None,
    ) -> AnalysisJob: ...

    @abstractmethod
    async def get(self, job_id: str) -> Optional[AnalysisJob]: ...

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[AnalysisJob]: ...

    @abstractmethod
    async def mark_complete(self, job_id: str, report: AnalysisReport, completed_at: datetime) -> Optional[AnalysisJob]: ...

    @abstractmethod
    async def mark_failed(self, job_id: str, notes: str, completed_at: datetime) -> Optional[AnalysisJob]: ...


@dataclass
class Repositories:
    questions: QuestionRepository
    attempts: AttemptRepository
    answers: AnswerRepository
    profiles: ProfileRepository
    jobs: AnalysisJobRepository
