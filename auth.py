"""
Authentication / authorization dependencies

The service runs behind an identity proxy that has already verified the
bearer token, so only the claims are read here (no signature check).

- get_current_user: Authorization header -> User, 401 if missing/invalid
- require_admin: 403 unless the user belongs to ADMIN_GROUP_ID

In dev mode a synthetic user is injected when no token is sent; `?admin=false`
makes it a regular user.
"""
from dataclasses import dataclass, field, asdict
from typing import List, Optional
import logging

from fastapi import Depends, HTTPException, Request, status
from jose import jwt, JWTError

from database import Settings, get_settings

logger = logging.getLogger(__name__)

DEV_ADMIN_GROUP = "dev-admin-group"


@dataclass
class User:
    name: str
    email: str
    nav_ident: str = ""
    groups: List[str] = field(default_factory=list)
    is_admin: bool = False

    def to_dict(self):
        return asdict(self)


def parse_bearer_token(authorization: Optional[str]) -> Optional[dict]:
    """
    Read the claims of a `Bearer <jwt>` header.

    Returns:
        claims dict, or None if the header is missing or not a readable JWT
    """
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    # The auth scheme name is case-insensitive (RFC 6750)
    if scheme.lower() != "bearer":
        return None

    token = token.strip()
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.warning(f"Rejected unreadable bearer token: {e}")
        return None

    return claims if isinstance(claims, dict) else None


def user_from_claims(claims: dict, admin_group_id: str) -> User:
    groups = claims.get("groups")
    groups = [str(g) for g in groups] if isinstance(groups, list) else []

    return User(
        name=claims.get("name") or "Unknown",
        email=claims.get("preferred_username") or claims.get("email") or "",
        nav_ident=claims.get("NAVident") or "",
        groups=groups,
        # An unset admin group grants nobody admin rights
        is_admin=bool(admin_group_id) and admin_group_id in groups
    )


def create_dev_user(is_admin: bool) -> User:
    return User(
        name="Dev User",
        email="dev@example.com",
        nav_ident="D123456",
        groups=[DEV_ADMIN_GROUP] if is_admin else [],
        is_admin=is_admin
    )


def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> User:
    """
    FastAPI dependency: the caller, or 401.
    """
    claims = parse_bearer_token(request.headers.get("Authorization"))
    user = user_from_claims(claims, settings.admin_group_id) if claims is not None else None

    if user is None and settings.dev_mode:
        dev_admin = request.query_params.get("admin") != "false"
        return create_dev_user(dev_admin)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    FastAPI dependency: the caller if privileged, else 403.

    Gates tournament CRUD, lifecycle changes, schedule regeneration,
    participant edits and result entry.
    """
    if not user.is_admin:
        logger.warning(f"Admin access denied for {user.email or user.name}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden - admin access required"
        )
    return user
