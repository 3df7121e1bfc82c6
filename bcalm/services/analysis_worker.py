# bcalm/services/analysis_worker.py
"""
Outbound side of the CV analysis pipeline.

- AnalysisWorkerClient: posts a job to the external worker webhook
  (ANALYSIS_WEBHOOK_URL). One attempt only; the worker reports back through
  POST /api/v1/analysis/callback.
- build_placeholder_result: deterministic stand-in report used when no worker
  is configured, shaped like a real worker body so it goes through the same
  callback adapter.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from bcalm.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class AnalysisWorkerClient:
    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or default_settings
        # tests pass httpx.MockTransport here
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.settings.ANALYSIS_WEBHOOK_URL)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.ANALYSIS_WEBHOOK_API_KEY:
            headers["Authorization"] = f"Bearer {self.settings.ANALYSIS_WEBHOOK_API_KEY}"
        return headers

    async def dispatch(self, payload: Dict[str, Any]) -> None:
        """
        POST the job payload. Raises httpx.HTTPError on network failure,
        timeout or a non-2xx response; the caller decides what that means.
        """
        if not self.configured:
            raise RuntimeError("ANALYSIS_WEBHOOK_URL is not configured")
        url = str(self.settings.ANALYSIS_WEBHOOK_URL)
        async with httpx.AsyncClient(timeout=self.settings.ANALYSIS_TIMEOUT_SEC, transport=self._transport) as client:
            resp = await client.post(url, json=payload, headers=self._headers())
            resp.raise_for_status()
        logger.info("Dispatched analysis job %s to worker (%s)", payload.get("jobId"), resp.status_code)


def build_placeholder_result(job_id: str, target_role: Optional[str], jd_text: Optional[str]) -> Dict[str, Any]:
    return {
        "meta": {"jobId": job_id, "source": "placeholder"},
        "role_preset": target_role or "General",
        "overall_score": 72,
        "summary": (
            "Your CV shows solid potential with good technical skills. Focus on adding measurable "
            "achievements and industry-specific keywords to boost your score."
        ),
        "top_strengths": [
            {"point": "Strong technical background", "evidence": "Listed relevant skills"},
            {"point": "Clear project descriptions", "evidence": "Projects have context"},
            {"point": "Good educational credentials", "evidence": "Listed degree and institution"},
        ],
        "top_fixes": [
            {"point": "Add more metrics", "recommended": "Include percentages, numbers, or revenue impact"},
            {"point": "Optimize for ATS", "recommended": "Add industry-standard terminology"},
            {"point": "Strengthen summary", "recommended": "Tailor to target role with specific achievements"},
        ],
        "seven_step_plan": [
            {"step": 1, "action": "Add a compelling professional summary", "priority": "high"},
            {"step": 2, "action": "Quantify your achievements with metrics", "priority": "high"},
            {"step": 3, "action": "Optimize keywords for your target role", "priority": "medium"},
        ],
        "needs_jd": not (jd_text and jd_text.strip()),
        "needs_target_role": not target_role,
    }
