"""FastAPI dependencies: DB session and the static bearer token check.

There is one shared API token (settings.API_TOKEN), no per-user auth.
"""
import secrets
from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from pharmacy.core.config import settings
from pharmacy.core.exceptions import BusinessError
from pharmacy.db.session import SessionLocal

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def require_api_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """Reject the request unless it carries `Authorization: Bearer <API_TOKEN>`."""
    if not credentials:
        raise BusinessError.unauthorized("missing bearer token")
    # Constant-time comparison
    if not secrets.compare_digest(credentials.credentials.encode(), settings.API_TOKEN.encode()):
        raise BusinessError.unauthorized("invalid bearer token")
