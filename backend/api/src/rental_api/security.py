"""Office (back-office) access gate.

Office routes require ``Authorization: Bearer <token>`` matching the
configured office API token. With no token configured every office request
is rejected.
"""

import secrets

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rental_shared.config import Settings, get_settings
from rental_shared.models import ErrorCode, RentalError
from rental_shared.utils.logging import get_logger

logger = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False, description="Office API token")


def require_office(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> None:
    """Dependency that rejects requests without a valid office token.

    Raises:
        RentalError: UNAUTHORIZED
    """
    expected = settings.office_api_token
    if expected is None:
        logger.warning("Office request rejected: no office token configured")
        raise RentalError(ErrorCode.UNAUTHORIZED)
    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode(), expected.get_secret_value().encode()
    ):
        raise RentalError(ErrorCode.UNAUTHORIZED)
