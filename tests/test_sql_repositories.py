# tests/test_sql_repositories.py
"""SQL repositories against in-memory SQLite (aiosqlite)."""
import asyncio
from datetime import datetime, timezone

import pytest

from bcalm.db.session import build_engine, build_session_factory, close_db, init_db
from bcalm.models.analysis import AnalysisReport, JobStatus
from bcalm.repositories.sql import build_sql_repositories
from bcalm.services.assessment import AssessmentService
from bcalm.core.errors import AlreadyCompleted

USER = "sql-user"

@pytest.fixture
async def sql_repos():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield build_sql_repositories(build_session_factory(engine))
    await close_db(engine)

@pytest.fixture
async def sql_assessment(sql_repos):
    svc = AssessmentService(sql_repos)
    await svc.seed_questions()
    return svc

def _now():
    return datetime.now(timezone.utc)

@pytest.mark.asyncio
async def test_seed_and_order(sql_assessment, sql_repos):
    assert await sql_repos.questions.count() == 24
    assert await sql_assessment.seed_questions() == 0
    questions = await sql_repos.questions.list_ordered()
    assert [q.order_index for q in questions] == list(range(1, 25))

@pytest.mark.asyncio
async def test_answer_upsert_keeps_single_row(sql_assessment, sql_repos):
    attempt = await sql_repos.attempts.create(USER)
    q = (await sql_repos.questions.list_ordered())[0]
    first = await sql_repos.answers.upsert(attempt.id, q.id, 2)
    second = await sql_repos.answers.upsert(attempt.id, q.id, 4)

    assert second.id == first.id
    answers = await sql_repos.answers.list_for_attempt(attempt.id)
    assert len(answers) == 1
    assert answers[0].answer_value == 4
    assert await sql_repos.answers.count_for_attempt(attempt.id) == 1

@pytest.mark.asyncio
async def test_latest_incomplete_and_delete(sql_assessment, sql_repos):
    older = await sql_repos.attempts.create(USER)
    await asyncio.sleep(0.002)
    newer = await sql_repos.attempts.create(USER)
    assert (await sql_repos.attempts.latest_incomplete(USER)).id == newer.id
    assert await sql_repos.attempts.latest_incomplete("nobody") is None

    assert await sql_repos.attempts.delete(newer.id) is True
    assert await sql_repos.attempts.delete(newer.id) is False
    assert (await sql_repos.attempts.latest_incomplete(USER)).id == older.id

@pytest.mark.asyncio
async def test_completion_is_conditional(sql_repos):
    attempt = await sql_repos.attempts.create(USER)
    done = await sql_repos.attempts.complete(attempt.id, 72, "On Track", "{}", "tok-1", _now())
    assert done.is_completed is True
    assert done.share_token == "tok-1"

    again = await sql_repos.attempts.complete(attempt.id, 10, "Early Explorer", "{}", "tok-2", _now())
    assert again is None
    stored = await sql_repos.attempts.get(attempt.id)
    assert stored.share_token == "tok-1"
    assert stored.total_score == 72
    assert (await sql_repos.attempts.get_by_share_token("tok-1")).id == attempt.id
    assert await sql_repos.attempts.latest_incomplete(USER) is None

@pytest.mark.asyncio
async def test_full_assessment_flow_on_sql(sql_assessment, sql_repos):
    attempt, created = await sql_assessment.start_or_resume_attempt(USER)
    assert created
    for q in await sql_assessment.list_questions():
        await sql_assessment.save_answer(attempt.id, q.id, 3, USER)
    done = await sql_assessment.complete_attempt(attempt.id, USER)
    assert done.total_score == 72
    assert done.readiness_band == "On Track"
    assert set(done.dimension_scores().values()) == {9}
    with pytest.raises(AlreadyCompleted):
        await sql_assessment.complete_attempt(attempt.id, USER)

@pytest.mark.asyncio
async def test_discard_removes_answers(sql_assessment, sql_repos):
    attempt, _ = await sql_assessment.start_or_resume_attempt(USER)
    q = (await sql_assessment.list_questions())[0]
    await sql_assessment.save_answer(attempt.id, q.id, 5, USER)
    assert await sql_assessment.discard_incomplete_attempt(USER) == attempt.id
    assert await sql_repos.answers.count_for_attempt(attempt.id) == 0
    assert await sql_repos.attempts.get(attempt.id) is None

@pytest.mark.asyncio
async def test_profile_create_and_update(sql_repos):
    created = await sql_repos.profiles.create(USER, email="a@example.com", first_name="Ana")
    assert created.onboarding_status == "pending"
    updated = await sql_repos.profiles.update(USER, target_role="Analyst", years_experience=2)
    assert updated.target_role == "Analyst"
    assert updated.years_experience == 2
    assert updated.first_name == "Ana"
    assert await sql_repos.profiles.update("missing", target_role="x") is None

@pytest.mark.asyncio
async def test_job_transitions_happen_once(sql_repos):
    job = await sql_repos.jobs.create(USER, "/tmp/cv.txt", "cv.txt", "text", None, meta_snapshot={"target_role": None})
    assert job.status == JobStatus.PROCESSING

    report = AnalysisReport(
        job_id=job.id, score=77.0, strengths=["s"], gaps=["g"], quick_wins=["q"],
        notes="n", needs_jd=True, raw={"jobId": job.id, "score": 77},
    )
    done = await sql_repos.jobs.mark_complete(job.id, report, _now())
    assert done.status == JobStatus.COMPLETE
    assert done.score == 77.0
    assert done.strengths == ["s"] and done.gaps == ["g"] and done.quick_wins == ["q"]
    assert done.needs_jd is True
    assert done.result_json == {"jobId": job.id, "score": 77}
    assert done.completed_at is not None

    assert await sql_repos.jobs.mark_failed(job.id, "late failure", _now()) is None
    assert await sql_repos.jobs.mark_complete(job.id, report, _now()) is None
    assert (await sql_repos.jobs.get(job.id)).status == JobStatus.COMPLETE
    assert await sql_repos.jobs.mark_failed("missing", "x", _now()) is None

@pytest.mark.asyncio
async def test_jobs_listed_newest_first(sql_repos):
    first = await sql_repos.jobs.create(USER, None, None, None, None)
    await asyncio.sleep(0.002)
    second = await sql_repos.jobs.create(USER, None, None, None, None)
    failed = await sql_repos.jobs.mark_failed(first.id, "nope", _now())
    assert failed.status == JobStatus.FAILED
    assert failed.notes == "nope"
    assert [j.id for j in await sql_repos.jobs.list_for_user(USER)] == [second.id, first.id]
