"""
Authentication Utility - Password hashing and request authentication.

Provides:
- Password hashing with bcrypt
- FastAPI dependencies for protected routes (bearer access token)
- Role gates for founder-only / member-only routers
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.context import CryptContext
from pymongo.database import Database

from startupteam.core.exceptions import Forbidden, InvalidToken, NotFound
from startupteam.core.tokens import TokenService, get_token_service
from startupteam.db.mongodb import get_db, get_collection, to_object_id, serialize_doc

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor (missing header is reported as InvalidToken, not 403)
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Database = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    if credentials is None:
        raise InvalidToken("Authentication required")

    payload = tokens.verify_access_token(credentials.credentials)

    try:
        user_id = to_object_id(payload["sub"], "User")
    except NotFound:
        raise InvalidToken("Invalid or expired token")

    user = get_collection("users", db).find_one({"_id": user_id})
    if not user:
        raise InvalidToken("Invalid or expired token")

    return serialize_doc(user)


def require_role(*roles: str):
    """Build a dependency that only lets the given user roles through."""

    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in roles:
            raise Forbidden(
                f"Access denied. This resource is only available to {' or '.join(roles)} users.",
                details={"current_role": user["role"], "required_roles": list(roles)},
            )
        return user

    return dependency


get_current_founder = require_role("founder")
get_current_member = require_role("member")
