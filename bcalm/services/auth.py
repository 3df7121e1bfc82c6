# bcalm/services/auth.py
"""
Verification of access tokens minted by the identity provider.

The provider signs HS256 JWTs with a shared secret; `sub` carries the user id
and `user_metadata` (when present) carries the names captured at sign-up.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import jwt
from pydantic import BaseModel
from bcalm.core.config import Settings, settings as default_settings

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60

class TokenData(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

def _split_name(metadata: Dict[str, Any]):
    first = metadata.get("first_name")
    last = metadata.get("last_name")
    if first or last:
        return first, last
    full = (metadata.get("full_name") or metadata.get("name") or "").strip()
    if not full:
        return None, None
    parts = full.split()
    return parts[0], (" ".join(parts[1:]) or None)

def create_access_token(subject: str, claims: Optional[Dict[str, Any]] = None, expires_delta: Optional[timedelta] = None, settings: Optional[Settings] = None) -> str:
    """Sign a token the way the identity provider does. Used by tests and local tooling."""
    cfg = settings or default_settings
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta if expires_delta else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: Dict[str, Any] = {"sub": subject, "iat": now, "exp": exp}
    if cfg.AUTH_JWT_AUDIENCE:
        payload["aud"] = cfg.AUTH_JWT_AUDIENCE
    payload.update(claims or {})
    return jwt.encode(payload, cfg.AUTH_JWT_SECRET, algorithm=ALGORITHM)

def decode_access_token(token: str, settings: Optional[Settings] = None) -> TokenData:
    cfg = settings or default_settings
    options = {"verify_aud": bool(cfg.AUTH_JWT_AUDIENCE)}
    # raises JWTError on bad signature / expiry / audience
    payload = jwt.decode(
        token,
        cfg.AUTH_JWT_SECRET,
        algorithms=[ALGORITHM],
        audience=cfg.AUTH_JWT_AUDIENCE,
        options=options,
    )
    metadata = payload.get("user_metadata") or {}
    first, last = _split_name(metadata)
    return TokenData(sub=payload.get("sub"), email=payload.get("email"), first_name=first, last_name=last)
