# bcalm/models/analysis.py
from enum import Enum
from pydantic import Field
from typing import Optional, Any, Dict, List
from datetime import datetime

from bcalm.models.base import CamelModel

class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

class AnalysisReport(CamelModel):
    """
    Normalized result of one CV analysis, whatever field names the worker used.
    Built by `bcalm.services.report_adapter.parse_callback_payload`.
    """
    job_id: str
    score: float
    strengths: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    quick_wins: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    needs_jd: bool = False
    needs_target_role: bool = False
    raw: Dict[str, Any] = Field(default_factory=dict)

class AnalysisJob(CamelModel):
    id: str
    user_id: str
    status: JobStatus = JobStatus.PROCESSING
    cv_file_path: Optional[str] = None
    cv_file_name: Optional[str] = None
    cv_text: Optional[str] = None
    jd_text: Optional[str] = None
    score: Optional[float] = None
    strengths: Optional[List[str]] = None
    gaps: Optional[List[str]] = None
    quick_wins: Optional[List[str]] = None
    notes: Optional[str] = None
    needs_jd: bool = False
    needs_target_role: bool = False
    result_json: Optional[Dict[str, Any]] = None
    meta_snapshot: Optional[Dict[str, Any]] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != JobStatus.PROCESSING

class AnalysisJobDetail(CamelModel):
    """What the owner sees when polling a job."""
    id: str
    status: JobStatus
    score: Optional[float] = None
    strengths: Optional[List[str]] = None
    gaps: Optional[List[str]] = None
    quick_wins: Optional[List[str]] = None
    notes: Optional[str] = None
    needs_jd: bool = False
    needs_target_role: bool = False
    cv_file_name: Optional[str] = None
    jd_text: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

class AnalysisJobSummary(CamelModel):
    id: str
    status: JobStatus
    score: Optional[float] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

class SubmitResponse(CamelModel):
    ok: bool = True
    job_id: str
    status: JobStatus

class CallbackAck(CamelModel):
    success: bool = True
    job_id: str
    status: JobStatus
