import logging
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from visa_portal.config import settings
from visa_portal.database import get_db
from visa_portal.models.admin import Admin
from visa_portal.models.user import User
from visa_portal.services.principal_repository import PrincipalRepository
from visa_portal.services.token_service import TokenClaims, verify_token
from visa_portal.utils.errors import AuthenticationError, AuthorizationError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedPrincipal:
    principal: User | Admin
    type: str
    claims: TokenClaims


def _get_auth_context(
    credentials: HTTPAuthorizationCredentials | None,
    db: Session,
    required_type: str | None = None,
) -> AuthenticatedPrincipal:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")

    claims = verify_token(credentials.credentials)
    if claims is None:
        raise AuthenticationError("Invalid or expired token")

    if required_type is not None and claims.type != required_type:
        logger.warning(
            "Rejected %s token id=%s on a %s-only endpoint", claims.type, claims.id, required_type
        )
        raise AuthorizationError(f"{required_type.capitalize()} access required")

    principal = PrincipalRepository(db).find_by_id(claims.id, claims.type)
    if principal is None:
        raise NotFoundError(f"{claims.type.capitalize()} not found")

    return AuthenticatedPrincipal(principal=principal, type=claims.type, claims=claims)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthenticatedPrincipal:
    return _get_auth_context(credentials, db)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    return _get_auth_context(credentials, db, required_type="user").principal


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    return _get_auth_context(credentials, db, required_type="admin").principal
