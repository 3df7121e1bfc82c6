# bcalm/api/deps.py
"""
Request dependencies. Services live on app.state (built in bcalm.main on
startup); tests swap them through app.dependency_overrides.
"""
import logging
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from bcalm.services.analysis import AnalysisService
from bcalm.services.assessment import AssessmentService
from bcalm.services.auth import CurrentUser, decode_access_token
from bcalm.services.profile import ProfileService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        td = decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if not td.sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return CurrentUser(id=td.sub, email=td.email, first_name=td.first_name, last_name=td.last_name)

def get_assessment_service(request: Request) -> AssessmentService:
    return request.app.state.assessment_service

def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service

def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service
