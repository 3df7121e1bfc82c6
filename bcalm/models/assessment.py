# bcalm/models/assessment.py
import json
from pydantic import Field
from typing import Optional, Dict
from datetime import datetime

from bcalm.models.base import CamelModel

class AssessmentQuestion(CamelModel):
    id: str
    dimension: str
    question_text: str
    order_index: int

class AssessmentAttempt(CamelModel):
    id: str
    user_id: str
    total_score: Optional[int] = None
    readiness_band: Optional[str] = None
    # serialized {dimension: subtotal}
    scores_json: Optional[str] = None
    is_completed: bool = False
    share_token: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    def dimension_scores(self) -> Dict[str, int]:
        if not self.scores_json:
            return {}
        return json.loads(self.scores_json)

class AssessmentAnswer(CamelModel):
    id: str
    attempt_id: str
    question_id: str
    answer_value: int
    created_at: datetime

# request bodies

class StartAttemptIn(CamelModel):
    force_new: bool = False

class AnswerIn(CamelModel):
    question_id: str
    # range (1..5) is enforced by the service so the error shape stays uniform
    answer_value: int

# responses

class ResumeState(CamelModel):
    has_incomplete: bool
    attempt: Optional[AssessmentAttempt] = None
    answered_count: int = 0

class OwnerInfo(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None

class AttemptResult(CamelModel):
    attempt: AssessmentAttempt
    user: Optional[OwnerInfo] = None
    answer_count: int
    dimension_scores: Dict[str, int] = Field(default_factory=dict)

class PublicResult(CamelModel):
    display_name: str
    readiness_band: str
    score_range: str
    total_score: int
