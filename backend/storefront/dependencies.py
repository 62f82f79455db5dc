"""
Process-wide services and the request dependencies that hand them out.

Services are built once by create_app() and stored on app.state; handlers
receive them through Depends() instead of importing module singletons.
"""
import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from storefront.config import Settings
from storefront.database import build_engine, build_session_factory
from storefront.errors import RateLimitExceeded
from storefront.services.auth import Identity, IdentityVerifier
from storefront.services.image_storage import ImageStorage
from storefront.services.notifications import NotificationQueue, Notifier
from storefront.services.rate_limit import RateLimiter, WindowStore

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class Services:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    verifier: IdentityVerifier
    rate_limit_store: WindowStore
    general_limiter: RateLimiter
    submission_limiter: RateLimiter
    notifications: NotificationQueue
    images: ImageStorage

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        engine = build_engine(settings.database_url)
        store = WindowStore(settings.redis_url)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=build_session_factory(engine),
            verifier=IdentityVerifier(settings),
            rate_limit_store=store,
            general_limiter=RateLimiter(
                "general", settings.rate_limit_window_ms, settings.rate_limit_max, store
            ),
            submission_limiter=RateLimiter(
                "submissions", settings.submission_limit_window_ms, settings.submission_limit_max, store
            ),
            notifications=NotificationQueue(Notifier.from_settings(settings)),
            images=ImageStorage(settings),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services


def client_key(request: Request) -> str:
    """Rate limit key: the client's network address."""
    return request.client.host if request.client else "unknown"


async def limit_submissions(request: Request, services: Services = Depends(get_services)):
    """Stricter window for the public lead and quote forms."""
    limiter = services.submission_limiter
    result = await limiter.hit(client_key(request))
    if not result.allowed:
        raise RateLimitExceeded(limiter.headers(result))


async def require_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    services: Services = Depends(get_services),
) -> Identity:
    """Require a verified identity - raises 401 otherwise."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await services.verifier.verify(credentials.credentials)
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_admin(
    identity: Identity = Depends(require_user),
    services: Services = Depends(get_services),
) -> Identity:
    """Require an allow-listed admin email - raises 403 otherwise."""
    if not services.verifier.is_admin(identity):
        logger.warning(f"Admin access denied for {identity.email or identity.user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Admin access required",
        )
    return identity
