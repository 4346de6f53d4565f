"""
Shared-secret protection for the worker endpoints.
"""
import secrets
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import config

security = HTTPBearer(auto_error=False)


def verify_cron_secret(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Require ``Authorization: Bearer $CRON_SECRET``."""
    if not config.CRON_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="CRON_SECRET not configured",
        )

    is_correct_secret = credentials is not None and secrets.compare_digest(
        credentials.credentials.encode("utf8"), config.CRON_SECRET.encode("utf8")
    )

    if not is_correct_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return True
