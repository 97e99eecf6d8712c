# crm_segments/api/deps.py
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from crm_segments.core.config import settings
from crm_segments.db.session import get_db
from crm_segments.schemas.token import TokenPayload
from crm_segments.services.campaign_dispatcher import CampaignDispatcher
from crm_segments.services.segment_service import SegmentService

ANONYMOUS = "anonymous"

# Tokens are issued by the auth service; this one only reads them.
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme_optional),
) -> Optional[TokenPayload]:
    if token is None:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        # An unreadable token is treated the same as no token.
        return None


def get_current_identity(
    current_user: Optional[TokenPayload] = Depends(get_current_user_optional),
) -> str:
    """Who is acting: the caller's email (or subject), else 'anonymous'."""
    if current_user is None:
        return ANONYMOUS
    return current_user.identity


def get_segment_service(db: Session = Depends(get_db)) -> SegmentService:
    return SegmentService(db)


def get_campaign_dispatcher(db: Session = Depends(get_db)) -> CampaignDispatcher:
    return CampaignDispatcher(db)
