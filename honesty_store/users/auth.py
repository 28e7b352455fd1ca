from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from loguru import logger

from honesty_store.config import settings
from honesty_store.users import schemas as user_schemas

# Tokens are issued by the hosted auth provider; this service only verifies them.
bearer_scheme = HTTPBearer(auto_error=False)

PROVIDER_ROLES = {"authenticated", "anon"}


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        settings.AUTH_JWT_SECRET,
        algorithms=[settings.AUTH_JWT_ALGORITHM],
        audience=settings.AUTH_JWT_AUDIENCE,
    )


def user_from_claims(claims: dict) -> user_schemas.UserDisplaySchema:
    # Custom roles live under app_metadata; the provider's own top-level
    # role ("authenticated", "anon") only says the token is signed in.
    roles = (claims.get("app_metadata") or {}).get(settings.ROLE_CLAIM)
    if roles is None:
        roles = claims.get(settings.ROLE_CLAIM)
        if roles in PROVIDER_ROLES:
            roles = None

    return user_schemas.UserDisplaySchema(
        id=claims["sub"],
        email=claims.get("email"),
        roles=roles,
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> user_schemas.UserDisplaySchema:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        claims = decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise credentials_exception

    if not claims.get("sub"):
        raise credentials_exception

    return user_from_claims(claims)
