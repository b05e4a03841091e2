"""Authentication boundary.

Identity is handled by an upstream provider (reverse proxy / identity
gateway) which forwards the signed-in user's id in the X-User-Id header.
The planner only checks that a session is present.
"""
import logging
from typing import Optional

from fastapi import Request

from mealweek.utilities.config import REQUIRE_AUTH
from mealweek.utilities.constants import USER_ID_HEADER
from mealweek.utilities.exceptions import AuthRequired

logger = logging.getLogger(__name__)


class HeaderAuthProvider:
    def __init__(self, header: str = USER_ID_HEADER, required: bool = REQUIRE_AUTH):
        self.header = header
        self.required = required

    def get_user_id(self, request: Request) -> Optional[str]:
        value = (request.headers.get(self.header) or "").strip()
        return value or None

    def authenticate(self, request: Request) -> Optional[str]:
        user_id = self.get_user_id(request)
        if user_id is None and self.required:
            logger.info("Rejected %s %s: no authenticated session", request.method, request.url.path)
            raise AuthRequired()
        return user_id


auth_provider = HeaderAuthProvider()


def require_user(request: Request) -> Optional[str]:
    """FastAPI dependency: the current user id, or AuthRequired."""
    return auth_provider.authenticate(request)
