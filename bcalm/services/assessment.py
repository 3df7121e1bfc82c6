# bcalm/services/assessment.py
"""
Assessment engine: 24 questions across 8 dimensions, answered on a 1..5 scale.

Scoring sums answer values per dimension (3..15 each) and overall (24..120),
then classifies the total into a readiness band. Completion is one-way and
mints the share token used by the public results page.
"""
import json
import logging
import secrets
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from bcalm.core.errors import (
    AlreadyCompleted,
    Forbidden,
    IncompleteAnswers,
    InvalidAnswer,
    NotCompleted,
    NotFound,
)
from bcalm.data.assessment_questions import ASSESSMENT_QUESTIONS
from bcalm.models.assessment import (
    AssessmentAnswer,
    AssessmentAttempt,
    AssessmentQuestion,
    AttemptResult,
    OwnerInfo,
    PublicResult,
    ResumeState,
)
from bcalm.repositories.base import Repositories

logger = logging.getLogger(__name__)

MIN_ANSWER = 1
MAX_ANSWER = 5

# (lower bound, band, score range) evaluated top-down, first match wins
BAND_LADDER = [
    (96, "Internship Ready", "96-120"),
    (72, "On Track", "72-95"),
    (48, "Building Foundation", "48-71"),
    (0, "Early Explorer", "0-47"),
]

def readiness_band(total_score: int) -> str:
    for lower, band, _ in BAND_LADDER:
        if total_score >= lower:
            return band
    return BAND_LADDER[-1][1]

def score_range(band: str) -> str:
    for _, name, bucket in BAND_LADDER:
        if name == band:
            return bucket
    raise ValueError(f"Unknown readiness band: {band}")

def display_name(first_name: Optional[str], last_name: Optional[str]) -> Optional[str]:
    """'Priya S.' style name for public pages."""
    first = (first_name or "").strip()
    last = (last_name or "").strip()
    if not first:
        return None
    if last:
        return f"{first} {last[0].upper()}."
    return first

def score_answers(questions: Iterable[AssessmentQuestion], answers: Iterable[AssessmentAnswer]) -> Tuple[int, Dict[str, int]]:
    """
    Returns (total_score, {dimension: subtotal}). Dimensions appear in question
    order; answers for unknown question ids are ignored.
    """
    dimension_of: Dict[str, str] = {}
    subtotals: Dict[str, int] = OrderedDict()
    for q in sorted(questions, key=lambda q: q.order_index):
        dimension_of[q.id] = q.dimension
        subtotals.setdefault(q.dimension, 0)
    for a in answers:
        dim = dimension_of.get(a.question_id)
        if dim is not None:
            subtotals[dim] += a.answer_value
    return sum(subtotals.values()), dict(subtotals)


class AssessmentService:
    def __init__(self, repos: Repositories):
        self.repos = repos

    async def seed_questions(self) -> int:
        """Insert the static question bank into an empty store. Returns rows added."""
        if await self.repos.questions.count() > 0:
            return 0
        added = await self.repos.questions.add_many(ASSESSMENT_QUESTIONS)
        logger.info("Seeded %d assessment questions", len(added))
        return len(added)

    async def list_questions(self) -> List[AssessmentQuestion]:
        return await self.repos.questions.list_ordered()

    async def start_or_resume_attempt(self, user_id: str, force_new: bool = False) -> Tuple[AssessmentAttempt, bool]:
        """Returns (attempt, created)."""
        if not force_new:
            existing = await self.repos.attempts.latest_incomplete(user_id)
            if existing is not None:
                return existing, False
        attempt = await self.repos.attempts.create(user_id)
        logger.info("Started assessment attempt %s for user %s", attempt.id, user_id)
        return attempt, True

    async def get_resume_state(self, user_id: str) -> ResumeState:
        attempt = await self.repos.attempts.latest_incomplete(user_id)
        if attempt is None:
            return ResumeState(has_incomplete=False)
        answered = await self.repos.answers.count_for_attempt(attempt.id)
        return ResumeState(has_incomplete=True, attempt=attempt, answered_count=answered)

    async def discard_incomplete_attempt(self, user_id: str) -> Optional[str]:
        """Delete the latest incomplete attempt and its answers. Returns its id, or None."""
        attempt = await self.repos.attempts.latest_incomplete(user_id)
        if attempt is None:
            return None
        await self.repos.answers.delete_for_attempt(attempt.id)
        await self.repos.attempts.delete(attempt.id)
        logger.info("Discarded incomplete attempt %s for user %s", attempt.id, user_id)
        return attempt.id

    async def _owned_open_attempt(self, attempt_id: str, user_id: str) -> AssessmentAttempt:
        attempt = await self.repos.attempts.get(attempt_id)
        if attempt is None:
            raise NotFound("Attempt not found")
        if attempt.user_id != user_id:
            raise Forbidden("This attempt belongs to another user")
        if attempt.is_completed:
            raise AlreadyCompleted("Assessment already completed")
        return attempt

    async def save_answer(self, attempt_id: str, question_id: str, answer_value: int, user_id: str) -> AssessmentAnswer:
        await self._owned_open_attempt(attempt_id, user_id)
        if isinstance(answer_value, bool) or not isinstance(answer_value, int) or not MIN_ANSWER <= answer_value <= MAX_ANSWER:
            raise InvalidAnswer(f"Answer value must be between {MIN_ANSWER} and {MAX_ANSWER}")
        if await self.repos.questions.get(question_id) is None:
            raise NotFound("Question not found")
        return await self.repos.answers.upsert(attempt_id, question_id, answer_value)

    async def complete_attempt(self, attempt_id: str, user_id: str) -> AssessmentAttempt:
        await self._owned_open_attempt(attempt_id, user_id)

        questions = await self.repos.questions.list_ordered()
        answers = await self.repos.answers.list_for_attempt(attempt_id)
        if len(answers) != len(questions):
            raise IncompleteAnswers(answered=len(answers), total=len(questions))

        total, subtotals = score_answers(questions, answers)
        band = readiness_band(total)
        completed = await self.repos.attempts.complete(
            attempt_id,
            total_score=total,
            readiness_band=band,
            scores_json=json.dumps(subtotals),
            share_token=secrets.token_urlsafe(16),
            completed_at=datetime.now(timezone.utc),
        )
        if completed is None:
            # lost a race with another completion; that one's token stands
            raise AlreadyCompleted("Assessment already completed")
        logger.info("Completed attempt %s: total=%d band=%s", attempt_id, total, band)
        return completed

    async def get_result(self, attempt_id: str, user_id: str) -> AttemptResult:
        attempt = await self.repos.attempts.get(attempt_id)
        if attempt is None:
            raise NotFound("Attempt not found")
        if attempt.user_id != user_id:
            raise Forbidden("This attempt belongs to another user")
        if not attempt.is_completed:
            raise NotCompleted()

        answer_count = await self.repos.answers.count_for_attempt(attempt_id)
        profile = await self.repos.profiles.get(attempt.user_id)
        owner = OwnerInfo(name=profile.full_name, email=profile.email) if profile else None
        return AttemptResult(
            attempt=attempt,
            user=owner,
            answer_count=answer_count,
            dimension_scores=attempt.dimension_scores(),
        )

    async def get_public_result(self, share_token: str) -> PublicResult:
        attempt = await self.repos.attempts.get_by_share_token(share_token) if share_token else None
        if attempt is None or not attempt.is_completed:
            raise NotFound("Shared result not found")
        profile = await self.repos.profiles.get(attempt.user_id)
        name = display_name(profile.first_name, profile.last_name) if profile else None
        if name is None:
            raise NotFound("Shared result not found")
        return PublicResult(
            display_name=name,
            readiness_band=attempt.readiness_band,
            score_range=score_range(attempt.readiness_band),
            total_score=attempt.total_score,
        )
