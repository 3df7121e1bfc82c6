# bcalm/repositories/sql.py
"""
SQLAlchemy-backed repositories. Each call opens its own short session from the
factory built in `bcalm.db.session`; writes run inside `session.begin()`.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import async_sessionmaker

from bcalm.db import models as orm
from bcalm.models.analysis import AnalysisJob, AnalysisReport, JobStatus
from bcalm.models.assessment import AssessmentAnswer, AssessmentAttempt, AssessmentQuestion
from bcalm.models.profile import Profile
from bcalm.repositories.base import (
    AnalysisJobRepository,
    AnswerRepository,
    AttemptRepository,
    ProfileRepository,
    QuestionRepository,
    Repositories,
)

logger = logging.getLogger(__name__)

def _now():
    return datetime.now(timezone.utc)

def _new_id() -> str:
    return str(uuid.uuid4())

def _upsert_insert(dialect_name: str):
    # ON CONFLICT upserts are dialect-specific constructs
    if dialect_name == "postgresql":
        return pg_insert
    if dialect_name == "sqlite":
        return sqlite_insert
    raise RuntimeError(f"Answer upsert is not supported on dialect {dialect_name!r}")


class _SqlRepository:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory


class SqlQuestionRepository(_SqlRepository, QuestionRepository):
    async def list_ordered(self) -> List[AssessmentQuestion]:
        async with self._session_factory() as session:
            rows = (await session.execute(
                select(orm.AssessmentQuestion).order_by(orm.AssessmentQuestion.order_index)
            )).scalars().all()
            return [AssessmentQuestion.model_validate(r) for r in rows]

    async def get(self, question_id: str) -> Optional[AssessmentQuestion]:
        async with self._session_factory() as session:
            row = await session.get(orm.AssessmentQuestion, question_id)
            return AssessmentQuestion.model_validate(row) if row else None

    async def count(self) -> int:
        async with self._session_factory() as session:
            return (await session.execute(select(func.count()).select_from(orm.AssessmentQuestion))).scalar_one()

    async def add_many(self, questions: Sequence[Dict[str, Any]]) -> List[AssessmentQuestion]:
        async with self._session_factory() as session, session.begin():
            rows = [
                orm.AssessmentQuestion(
                    id=q.get("id") or _new_id(),
                    dimension=q["dimension"],
                    question_text=q["question_text"],
                    order_index=q["order_index"],
                    created_at=_now(),
                )
                for q in questions
            ]
            session.add_all(rows)
        return [AssessmentQuestion.model_validate(r) for r in rows]


class SqlAttemptRepository(_SqlRepository, AttemptRepository):
    async def create(self, user_id: str) -> AssessmentAttempt:
        async with self._session_factory() as session, session.begin():
            row = orm.AssessmentAttempt(id=_new_id(), user_id=user_id, is_completed=False, created_at=_now())
            session.add(row)
        return AssessmentAttempt.model_validate(row)

    async def get(self, attempt_id: str) -> Optional[AssessmentAttempt]:
        async with self._session_factory() as session:
            row = await session.get(orm.AssessmentAttempt, attempt_id)
            return AssessmentAttempt.model_validate(row) if row else None

    async def latest_incomplete(self, user_id: str) -> Optional[AssessmentAttempt]:
        async with self._session_factory() as session:
            row = (await session.execute(
                select(orm.AssessmentAttempt)
                .where(orm.AssessmentAttempt.user_id == user_id, orm.AssessmentAttempt.is_completed.is_(False))
                .order_by(orm.AssessmentAttempt.created_at.desc())
                .limit(1)
            )).scalars().first()
            return AssessmentAttempt.model_validate(row) if row else None

    async def get_by_share_token(self, share_token: str) -> Optional[AssessmentAttempt]:
        async with self._session_factory() as session:
            row = (await session.execute(
                select(orm.AssessmentAttempt).where(orm.AssessmentAttempt.share_token == share_token)
            )).scalars().first()
            return AssessmentAttempt.model_validate(row) if row else None

    async def complete(self, attempt_id, total_score, readiness_band, scores_json, share_token, completed_at) -> Optional[AssessmentAttempt]:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(orm.AssessmentAttempt)
                .where(orm.AssessmentAttempt.id == attempt_id, orm.AssessmentAttempt.is_completed.is_(False))
                .values(
                    total_score=total_score,
                    readiness_band=readiness_band,
                    scores_json=scores_json,
                    share_token=share_token,
                    is_completed=True,
                    completed_at=completed_at,
                )
            )
            if result.rowcount == 0:
                return None
            row = await session.get(orm.AssessmentAttempt, attempt_id, populate_existing=True)
            return AssessmentAttempt.model_validate(row)

    async def delete(self, attempt_id: str) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(delete(orm.AssessmentAttempt).where(orm.AssessmentAttempt.id == attempt_id))
            return result.rowcount > 0


class SqlAnswerRepository(_SqlRepository, AnswerRepository):
    async def upsert(self, attempt_id: str, question_id: str, answer_value: int) -> AssessmentAnswer:
        async with self._session_factory() as session, session.begin():
            insert = _upsert_insert(session.bind.dialect.name)
            stmt = insert(orm.AssessmentAnswer).values(
                id=_new_id(),
                attempt_id=attempt_id,
                question_id=question_id,
                answer_value=answer_value,
                created_at=_now(),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["attempt_id", "question_id"],
                set_={"answer_value": stmt.excluded.answer_value},
            )
            await session.execute(stmt)
            row = (await session.execute(
                select(orm.AssessmentAnswer).where(
                    orm.AssessmentAnswer.attempt_id == attempt_id,
                    orm.AssessmentAnswer.question_id == question_id,
                )
            )).scalar_one()
            return AssessmentAnswer.model_validate(row)

    async def list_for_attempt(self, attempt_id: str) -> List[AssessmentAnswer]:
        async with self._session_factory() as session:
            rows = (await session.execute(
                select(orm.AssessmentAnswer).where(orm.AssessmentAnswer.attempt_id == attempt_id)
            )).scalars().all()
            return [AssessmentAnswer.model_validate(r) for r in rows]

    async def count_for_attempt(self, attempt_id: str) -> int:
        async with self._session_factory() as session:
            return (await session.execute(
                select(func.count()).select_from(orm.AssessmentAnswer).where(orm.AssessmentAnswer.attempt_id == attempt_id)
            )).scalar_one()

    async def delete_for_attempt(self, attempt_id: str) -> int:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(delete(orm.AssessmentAnswer).where(orm.AssessmentAnswer.attempt_id == attempt_id))
            return result.rowcount


class SqlProfileRepository(_SqlRepository, ProfileRepository):
    async def get(self, user_id: str) -> Optional[Profile]:
        async with self._session_factory() as session:
            row = await session.get(orm.Profile, user_id)
            return Profile.model_validate(row) if row else None

    async def create(self, user_id: str, **fields: Any) -> Profile:
        now = _now()
        async with self._session_factory() as session, session.begin():
            row = orm.Profile(id=user_id, created_at=now, updated_at=now, **fields)
            if row.onboarding_status is None:
                row.onboarding_status = "pending"
            session.add(row)
        return Profile.model_validate(row)

    async def update(self, user_id: str, **fields: Any) -> Optional[Profile]:
        async with self._session_factory() as session, session.begin():
            row = await session.get(orm.Profile, user_id)
            if row is None:
                return None
            for key, value in fields.items():
                setattr(row, key, value)
            row.updated_at = _now()
        return Profile.model_validate(row)


class SqlAnalysisJobRepository(_SqlRepository, AnalysisJobRepository):
    async def create(self, user_id, cv_file_path, cv_file_name, cv_text, jd_text, meta_snapshot=None) -> AnalysisJob:
        async with self._session_factory() as session, session.begin():
            row = orm.AnalysisJob(
                id=_new_id(),
                user_id=user_id,
                status=JobStatus.PROCESSING.value,
                cv_file_path=cv_file_path,
                cv_file_name=cv_file_name,
                cv_text=cv_text,
                jd_text=jd_text,
                needs_jd=False,
                needs_target_role=False,
                meta_snapshot=meta_snapshot,
                created_at=_now(),
            )
            session.add(row)
        return AnalysisJob.model_validate(row)

    async def get(self, job_id: str) -> Optional[AnalysisJob]:
        async with self._session_factory() as session:
            row = await session.get(orm.AnalysisJob, job_id)
            return AnalysisJob.model_validate(row) if row else None

    async def list_for_user(self, user_id: str) -> List[AnalysisJob]:
        async with self._session_factory() as session:
            rows = (await session.execute(
                select(orm.AnalysisJob)
                .where(orm.AnalysisJob.user_id == user_id)
                .order_by(orm.AnalysisJob.created_at.desc())
            )).scalars().all()
            return [AnalysisJob.model_validate(r) for r in rows]

    async def _transition(self, job_id: str, values: Dict[str, Any]) -> Optional[AnalysisJob]:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(orm.AnalysisJob)
                .where(orm.AnalysisJob.id == job_id, orm.AnalysisJob.status == JobStatus.PROCESSING.value)
                .values(**values)
            )
            if result.rowcount == 0:
                return None
            row = await session.get(orm.AnalysisJob, job_id, populate_existing=True)
            return AnalysisJob.model_validate(row)

    async def mark_complete(self, job_id: str, report: AnalysisReport, completed_at: datetime) -> Optional[AnalysisJob]:
        return await self._transition(job_id, {
            "status": JobStatus.COMPLETE.value,
            "score": report.score,
            "strengths": list(report.strengths),
            "gaps": list(report.gaps),
            "quick_wins": list(report.quick_wins),
            "notes": report.notes,
            "needs_jd": report.needs_jd,
            "needs_target_role": report.needs_target_role,
            "result_json": report.raw,
            "completed_at": completed_at,
        })

    async def mark_failed(self, job_id: str, notes: str, completed_at: datetime) -> Optional[AnalysisJob]:
        return await self._transition(job_id, {
            "status": JobStatus.FAILED.value,
            "notes": notes,
            "completed_at": completed_at,
        })


def build_sql_repositories(session_factory: async_sessionmaker) -> Repositories:
    return Repositories(
        questions=SqlQuestionRepository(session_factory),
        attempts=SqlAttemptRepository(session_factory),
        answers=SqlAnswerRepository(session_factory),
        profiles=SqlProfileRepository(session_factory),
        jobs=SqlAnalysisJobRepository(session_factory),
    )
