from jose import jwt

from crm_segments.core.config import settings


def get_user_authentication_headers(
    user_id: str = "user_test", email: str = "marketer@example.com"
) -> dict:
    """
    Generates a valid JWT token and authentication headers for a test user.
    """
    payload = {"sub": user_id, "email": email, "exp": 9999999999}
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
