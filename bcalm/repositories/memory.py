# bcalm/repositories/memory.py
"""
Dict-backed repositories for tests and local runs (REPOSITORY_BACKEND=memory).

Every operation completes without awaiting anything else, so each one is
atomic with respect to other coroutines on the same event loop.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

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

def _now():
    return datetime.now(timezone.utc)

def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryQuestionRepository(QuestionRepository):
    def __init__(self):
        self._rows: Dict[str, AssessmentQuestion] = {}

    async def list_ordered(self) -> List[AssessmentQuestion]:
        return [q.model_copy() for q in sorted(self._rows.values(), key=lambda q: q.order_index)]

    async def get(self, question_id: str) -> Optional[AssessmentQuestion]:
        q = self._rows.get(question_id)
        return q.model_copy() if q else None

    async def count(self) -> int:
        return len(self._rows)

    async def add_many(self, questions: Sequence[Dict[str, Any]]) -> List[AssessmentQuestion]:
        out = []
        for data in questions:
            q = AssessmentQuestion(id=data.get("id") or _new_id(), **{k: v for k, v in data.items() if k != "id"})
            self._rows[q.id] = q
            out.append(q.model_copy())
        return out


class InMemoryAttemptRepository(AttemptRepository):
    def __init__(self):
        # insertion order doubles as creation order
        self._rows: Dict[str, AssessmentAttempt] = {}

    async def create(self, user_id: str) -> AssessmentAttempt:
        attempt = AssessmentAttempt(id=_new_id(), user_id=user_id, is_completed=False, created_at=_now())
        self._rows[attempt.id] = attempt
        return attempt.model_copy()

    async def get(self, attempt_id: str) -> Optional[AssessmentAttempt]:
        a = self._rows.get(attempt_id)
        return a.model_copy() if a else None

    async def latest_incomplete(self, user_id: str) -> Optional[AssessmentAttempt]:
        for a in reversed(list(self._rows.values())):
            if a.user_id == user_id and not a.is_completed:
                return a.model_copy()
        return None

    async def get_by_share_token(self, share_token: str) -> Optional[AssessmentAttempt]:
        for a in self._rows.values():
            if a.share_token and a.share_token == share_token:
                return a.model_copy()
        return None

    async def complete(self, attempt_id, total_score, readiness_band, scores_json, share_token, completed_at) -> Optional[AssessmentAttempt]:
        a = self._rows.get(attempt_id)
        if a is None or a.is_completed:
            return None
        updated = a.model_copy(update={
            "total_score": total_score,
            "readiness_band": readiness_band,
            "scores_json": scores_json,
            "share_token": share_token,
            "is_completed": True,
            "completed_at": completed_at,
        })
        self._rows[attempt_id] = updated
        return updated.model_copy()

    async def delete(self, attempt_id: str) -> bool:
        return self._rows.pop(attempt_id, None) is not None


class InMemoryAnswerRepository(AnswerRepository):
    def __init__(self):
        # keyed by the natural key so a second save can only overwrite
        self._rows: Dict[tuple, AssessmentAnswer] = {}

    async def upsert(self, attempt_id: str, question_id: str, answer_value: int) -> AssessmentAnswer:
        key = (attempt_id, question_id)
        existing = self._rows.get(key)
        if existing is not None:
            answer = existing.model_copy(update={"answer_value": answer_value})
        else:
            answer = AssessmentAnswer(
                id=_new_id(), attempt_id=attempt_id, question_id=question_id,
                answer_value=answer_value, created_at=_now(),
            )
        self._rows[key] = answer
        return answer.model_copy()

    async def list_for_attempt(self, attempt_id: str) -> List[AssessmentAnswer]:
        return [a.model_copy() for (aid, _), a in self._rows.items() if aid == attempt_id]

    async def count_for_attempt(self, attempt_id: str) -> int:
        return sum(1 for (aid, _) in self._rows if aid == attempt_id)

    async def delete_for_attempt(self, attempt_id: str) -> int:
        keys = [k for k in self._rows if k[0] == attempt_id]
        for k in keys:
            del self._rows[k]
        return len(keys)


class InMemoryProfileRepository(ProfileRepository):
    def __init__(self):
        self._rows: Dict[str, Profile] = {}

    async def get(self, user_id: str) -> Optional[Profile]:
        p = self._rows.get(user_id)
        return p.model_copy() if p else None

    async def create(self, user_id: str, **fields: Any) -> Profile:
        now = _now()
        profile = Profile(id=user_id, created_at=now, updated_at=now, **fields)
        self._rows[user_id] = profile
        return profile.model_copy()

    async def update(self, user_id: str, **fields: Any) -> Optional[Profile]:
        p = self._rows.get(user_id)
        if p is None:
            return None
        updated = p.model_copy(update={**fields, "updated_at": _now()})
        self._rows[user_id] = updated
        return updated.model_copy()


class InMemoryAnalysisJobRepository(AnalysisJobRepository):
    def __init__(self):
        self._rows: Dict[str, AnalysisJob] = {}

    async def create(self, user_id, cv_file_path, cv_file_name, cv_text, jd_text, meta_snapshot=None) -> AnalysisJob:
        job = AnalysisJob(
            id=_new_id(),
            user_id=user_id,
            status=JobStatus.PROCESSING,
            cv_file_path=cv_file_path,
            cv_file_name=cv_file_name,
            cv_text=cv_text,
            jd_text=jd_text,
            meta_snapshot=meta_snapshot,
            created_at=_now(),
        )
        self._rows[job.id] = job
        return job.model_copy(deep=True)

    async def get(self, job_id: str) -> Optional[AnalysisJob]:
        j = self._rows.get(job_id)
        return j.model_copy(deep=True) if j else None

    async def list_for_user(self, user_id: str) -> List[AnalysisJob]:
        # newest first; reversed insertion order breaks timestamp ties
        rows = [j for j in reversed(list(self._rows.values())) if j.user_id == user_id]
        rows.sort(key=lambda j: j.created_at, reverse=True)
        return [j.model_copy(deep=True) for j in rows]

    def _transition(self, job_id: str, update: Dict[str, Any]) -> Optional[AnalysisJob]:
        j = self._rows.get(job_id)
        if j is None or j.status != JobStatus.PROCESSING:
            return None
        updated = j.model_copy(update=update, deep=True)
        self._rows[job_id] = updated
        return updated.model_copy(deep=True)

    async def mark_complete(self, job_id: str, report: AnalysisReport, completed_at: datetime) -> Optional[AnalysisJob]:
        return self._transition(job_id, {
            "status": JobStatus.COMPLETE,
            "score": report.score,
            "strengths": list(report.strengths),
            "gaps": list(report.gaps),
            "quick_wins": list(report.quick_wins),
            "notes": report.notes,
            "needs_jd": report.needs_jd,
            "needs_target_role": report.needs_target_role,
            "result_json": dict(report.raw),
            "completed_at": completed_at,
        })

    async def mark_failed(self, job_id: str, notes: str, completed_at: datetime) -> Optional[AnalysisJob]:
        return self._transition(job_id, {
            "status": JobStatus.FAILED,
            "notes": notes,
            "completed_at": completed_at,
        })


def build_memory_repositories() -> Repositories:
    return Repositories(
        questions=InMemoryQuestionRepository(),
        attempts=InMemoryAttemptRepository(),
        answers=InMemoryAnswerRepository(),
        profiles=InMemoryProfileRepository(),
        jobs=InMemoryAnalysisJobRepository(),
    )
