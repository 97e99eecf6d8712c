# crm_segments/schemas/token.py
from pydantic import BaseModel
from typing import Optional


class TokenPayload(BaseModel):
    sub: str  # "sub" is the standard claim for subject (user ID)
    email: Optional[str] = None
    exp: Optional[int] = None  # Standard claim for expiration time

    model_config = {"from_attributes": True}

    @property
    def identity(self) -> str:
        return self.email or self.sub
