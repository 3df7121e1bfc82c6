# bcalm/api/v1/analysis.py
"""
CV analysis endpoints.
- POST /analysis/submit       multipart `cv` (+ optional `jdText`), needs onboarding
- GET  /analysis/user/jobs    caller's jobs, newest first
- GET  /analysis/{jobId}      poll one job
- GET  /analysis/files/{jobId} and POST /analysis/callback are called by the
  external worker and guarded by the shared callback secret instead of a user token
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Header, Query, Request, UploadFile, status
from fastapi.responses import FileResponse

from bcalm.api.deps import get_analysis_service, get_current_user
from bcalm.models.analysis import AnalysisJobDetail, AnalysisJobSummary, CallbackAck, SubmitResponse
from bcalm.services.analysis import AnalysisService
from bcalm.services.auth import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])

@router.post("/submit", response_model=SubmitResponse, response_model_by_alias=True, status_code=status.HTTP_200_OK)
async def submit_cv(
    cv: Optional[UploadFile] = File(None),
    jd_text: Optional[str] = Form(None, alias="jdText"),
    user: CurrentUser = Depends(get_current_user),
    svc: AnalysisService = Depends(get_analysis_service),
):
    file_name = cv.filename if cv else None
    content_type = cv.content_type if cv else None
    # one byte past the limit is enough to reject oversized uploads
    content = await cv.read(svc.settings.MAX_UPLOAD_BYTES + 1) if cv else None
    job = await svc.submit(user.id, file_name, content, content_type=content_type, jd_text=jd_text)
    return SubmitResponse(job_id=job.id, status=job.status)

# declared before /{job_id} so "user" is not captured as a job id
@router.get("/user/jobs", response_model=List[AnalysisJobSummary], response_model_by_alias=True)
async def list_my_jobs(user: CurrentUser = Depends(get_current_user), svc: AnalysisService = Depends(get_analysis_service)):
    jobs = await svc.list_jobs_for_user(user.id)
    return [AnalysisJobSummary.model_validate(j) for j in jobs]

@router.get("/files/{job_id}")
async def serve_cv_file(
    job_id: str,
    secret: Optional[str] = Query(None),
    x_callback_secret: Optional[str] = Header(None),
    svc: AnalysisService = Depends(get_analysis_service),
):
    path, file_name = await svc.serve_source_file(job_id, x_callback_secret or secret)
    return FileResponse(path, filename=file_name)

@router.post("/callback", response_model=CallbackAck, response_model_by_alias=True)
async def worker_callback(
    request: Request,
    x_callback_secret: Optional[str] = Header(None),
    svc: AnalysisService = Depends(get_analysis_service),
):
    try:
        payload = await request.json()
    except ValueError:
        # rejected as InvalidPayload after the secret check
        payload = None
    job = await svc.apply_callback(payload, x_callback_secret)
    return CallbackAck(job_id=job.id, status=job.status)

@router.get("/{job_id}", response_model=AnalysisJobDetail, response_model_by_alias=True)
async def get_job(job_id: str, user: CurrentUser = Depends(get_current_user), svc: AnalysisService = Depends(get_analysis_service)):
    job = await svc.get_job(job_id, user.id)
    return AnalysisJobDetail.model_validate(job)
