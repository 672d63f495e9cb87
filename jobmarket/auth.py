from fastapi import Request

from jobmarket.config import get_settings
from jobmarket.exceptions import UnauthorizedError


def get_current_user_id(request: Request) -> str:
    """User ID asserted by the upstream identity provider."""
    user_id = request.headers.get(get_settings().identity_header, "").strip()
    if not user_id:
        raise UnauthorizedError("Missing user identity")
    return user_id
