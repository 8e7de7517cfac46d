"""Shared API dependencies for caller identity and the messaging service."""

from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from secure_messaging.core.settings import settings
from secure_messaging.db.session import SessionLocal
from secure_messaging.db.time import Clock, now_ms
from secure_messaging.services import MessagingService
from secure_messaging.store import MessagingStore

# HTTP Bearer scheme for identity tokens
bearer_scheme = HTTPBearer()


def get_caller_identity(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Return the caller identity carried by the bearer token.

    Tokens are issued by the external identity subsystem; the ``sub`` claim is
    the opaque identity. Its shape is checked later by the messaging service.

    Raises:
        HTTPException: If the token is invalid or carries no subject.
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.identity_token_secret,
            algorithms=[settings.identity_token_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return subject


def get_store() -> Iterator[MessagingStore]:
    """Yield a store opened for the duration of one request."""
    with MessagingStore(SessionLocal) as store:
        yield store


def get_clock() -> Clock:
    """Return the wall clock used to timestamp records."""
    return now_ms


StoreDep = Annotated[MessagingStore, Depends(get_store)]
ClockDep = Annotated[Clock, Depends(get_clock)]


def get_messaging_service(store: StoreDep, clock: ClockDep) -> MessagingService:
    """Return a messaging service bound to the request's store."""
    return MessagingService(store, clock=clock)


# Type aliases used by the endpoint modules
CallerDep = Annotated[str, Depends(get_caller_identity)]
MessagingServiceDep = Annotated[MessagingService, Depends(get_messaging_service)]
