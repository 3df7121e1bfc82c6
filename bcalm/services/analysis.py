# bcalm/services/analysis.py
"""
CV analysis job pipeline.

    [none] --submit--> processing --callback/placeholder--> complete
                                  --worker call failed----> failed

Submission is fast: the CV is stored, its text extracted and a job row created
in `processing`. Scoring happens elsewhere; the external worker reports back
through `apply_callback`. Without a worker url the job is finished by a
one-shot placeholder timer (ANALYSIS_PLACEHOLDER_ENABLED) or failed at once.
"""
import asyncio
import logging
import hmac
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

import httpx

from bcalm.core.config import Settings, settings as default_settings
from bcalm.core.errors import (
    AlreadyCompleted,
    Forbidden,
    InvalidUpload,
    MissingFile,
    NotFound,
    OnboardingIncomplete,
    Unauthorized,
)
from bcalm.models.analysis import AnalysisJob
from bcalm.models.profile import Profile
from bcalm.repositories.base import Repositories
from bcalm.services.analysis_worker import AnalysisWorkerClient, build_placeholder_result
from bcalm.services.parse_utils import extract_text_auto, has_allowed_extension, meaningful_length
from bcalm.services.report_adapter import parse_callback_payload
from bcalm.services.storage import LocalFileStorage

logger = logging.getLogger(__name__)

MIN_CV_TEXT_CHARS = 50
WORKER_FAILED_NOTES = "Failed to connect to analysis service. Please try again."
WORKER_UNAVAILABLE_NOTES = "Analysis service is not available right now. Please try again later."
PAYLOAD_SOURCE = "bcalm_api"

def _now():
    return datetime.now(timezone.utc)


class AnalysisService:
    def __init__(
        self,
        repos: Repositories,
        settings: Optional[Settings] = None,
        storage: Optional[LocalFileStorage] = None,
        worker: Optional[AnalysisWorkerClient] = None,
    ):
        self.repos = repos
        self.settings = settings or default_settings
        self.storage = storage or LocalFileStorage(self.settings)
        self.worker = worker or AnalysisWorkerClient(self.settings)
        # placeholder timers still waiting to fire
        self._pending: Set[asyncio.Task] = set()

    # submission

    async def submit(
        self,
        user_id: str,
        file_name: Optional[str],
        content: Optional[bytes],
        content_type: Optional[str] = None,
        jd_text: Optional[str] = None,
    ) -> AnalysisJob:
        profile = await self.repos.profiles.get(user_id)
        if profile is None or not profile.onboarding_completed:
            raise OnboardingIncomplete()
        if not file_name or not content:
            raise MissingFile()
        if not has_allowed_extension(file_name):
            raise InvalidUpload()
        if len(content) > self.settings.MAX_UPLOAD_BYTES:
            limit_mb = self.settings.MAX_UPLOAD_BYTES // (1024 * 1024)
            raise InvalidUpload(f"CV file must be {limit_mb} MB or smaller")

        # extract first so a rejected upload never reaches disk
        loop = asyncio.get_running_loop()
        cv_text, detected = await loop.run_in_executor(None, extract_text_auto, content)
        if meaningful_length(cv_text) < MIN_CV_TEXT_CHARS:
            logger.warning("Rejected upload %s for user %s: no readable text (%s)", file_name, user_id, detected)
            raise InvalidUpload("Could not extract text from CV. Please upload a readable PDF or DOCX file.")
        logger.debug("Extracted %d chars from %s (%s, %s)", len(cv_text), file_name, detected, content_type)

        path = await self.storage.save(content, file_name)

        jd_text = (jd_text or "").strip() or None
        job = await self.repos.jobs.create(
            user_id=user_id,
            cv_file_path=path,
            cv_file_name=file_name,
            cv_text=cv_text,
            jd_text=jd_text,
            meta_snapshot=self._meta_snapshot(profile),
        )
        logger.info("Created analysis job %s for user %s", job.id, user_id)

        if self.worker.configured:
            await self._dispatch(job)
        elif self.settings.ANALYSIS_PLACEHOLDER_ENABLED:
            self._schedule_placeholder(job, profile.target_role)
        else:
            logger.warning("No analysis worker configured; failing job %s", job.id)
            await self.repos.jobs.mark_failed(job.id, WORKER_UNAVAILABLE_NOTES, _now())

        return await self.repos.jobs.get(job.id)

    @staticmethod
    def _meta_snapshot(profile: Profile) -> Dict[str, Any]:
        return {
            "current_status": profile.current_status,
            "target_role": profile.target_role,
            "years_experience": profile.years_experience,
            "personalization_quality": profile.personalization_quality,
        }

    def build_worker_payload(self, job: AnalysisJob) -> Dict[str, Any]:
        base = self.settings.PUBLIC_BASE_URL.rstrip("/")
        meta = dict(job.meta_snapshot or {})
        meta.update({
            "jobId": job.id,
            "source": PAYLOAD_SOURCE,
            "uploaded_at": job.created_at.isoformat(),
        })
        return {
            "jobId": job.id,
            "userId": job.user_id,
            "meta": meta,
            "fileUrl": f"{base}/api/v1/analysis/files/{job.id}",
            "fileName": job.cv_file_name,
            "cvText": job.cv_text,
            "jdText": job.jd_text,
            "callbackUrl": f"{base}/api/v1/analysis/callback",
        }

    async def _dispatch(self, job: AnalysisJob) -> None:
        try:
            await self.worker.dispatch(self.build_worker_payload(job))
        except httpx.HTTPError:
            # the worker cannot be retried transparently; the user resubmits
            logger.exception("Analysis worker call failed for job %s", job.id)
            await self.repos.jobs.mark_failed(job.id, WORKER_FAILED_NOTES, _now())

    # placeholder completion

    def _schedule_placeholder(self, job: AnalysisJob, target_role: Optional[str]) -> None:
        delay = self.settings.ANALYSIS_PLACEHOLDER_DELAY_SEC
        task = asyncio.create_task(self._placeholder_after(delay, job.id, target_role, job.jd_text))
        self._pending.add(task)
        task.add_done_callback(self._placeholder_done)
        logger.info("Placeholder completion for job %s in %.1fs", job.id, delay)

    def _placeholder_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Placeholder completion failed", exc_info=task.exception())

    async def _placeholder_after(self, delay: float, job_id: str, target_role: Optional[str], jd_text: Optional[str]) -> None:
        await asyncio.sleep(delay)
        await self.complete_with_placeholder(job_id, target_role, jd_text)

    async def complete_with_placeholder(self, job_id: str, target_role: Optional[str] = None, jd_text: Optional[str] = None) -> Optional[AnalysisJob]:
        report = parse_callback_payload(build_placeholder_result(job_id, target_role, jd_text))
        job = await self.repos.jobs.mark_complete(job_id, report, _now())
        if job is None:
            logger.warning("Placeholder skipped for job %s: no longer processing", job_id)
        else:
            logger.info("Job %s completed with placeholder report", job_id)
        return job

    @property
    def pending_timers(self) -> int:
        return len(self._pending)

    async def shutdown(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

    # reads

    async def get_job(self, job_id: str, user_id: str) -> AnalysisJob:
        job = await self.repos.jobs.get(job_id)
        if job is None:
            raise NotFound("Job not found")
        if job.user_id != user_id:
            raise Forbidden("Access denied")
        return job

    async def list_jobs_for_user(self, user_id: str) -> List[AnalysisJob]:
        return await self.repos.jobs.list_for_user(user_id)

    # worker-facing endpoints

    def _check_secret(self, provided: Optional[str]) -> None:
        expected = self.settings.ANALYSIS_CALLBACK_SECRET
        if not expected:
            return
        if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
            raise Unauthorized("Invalid callback secret")

    async def serve_source_file(self, job_id: str, provided_secret: Optional[str]) -> Tuple[str, Optional[str]]:
        """Returns (path, original file name) of the CV behind a job."""
        self._check_secret(provided_secret)
        job = await self.repos.jobs.get(job_id)
        if job is None:
            raise NotFound("Job not found")
        if not job.cv_file_path:
            raise NotFound("File not found")
        if not await self.storage.exists(job.cv_file_path):
            raise NotFound("File not found on disk")
        return job.cv_file_path, job.cv_file_name

    async def apply_callback(self, payload: Any, provided_secret: Optional[str]) -> AnalysisJob:
        self._check_secret(provided_secret)
        report = parse_callback_payload(payload)

        job = await self.repos.jobs.get(report.job_id)
        if job is None:
            raise NotFound("Job not found")
        if job.is_terminal:
            raise AlreadyCompleted(f"Job already {job.status.value}")

        updated = await self.repos.jobs.mark_complete(report.job_id, report, _now())
        if updated is None:
            raise AlreadyCompleted("Job already finished")
        logger.info("Job %s completed by worker callback (score=%s)", updated.id, updated.score)
        return updated
