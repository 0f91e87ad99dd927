"""
Password hashing, bearer tokens and role checks for the API routes
"""
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, Header

from resumatch.models.schemas import TokenModel
from resumatch.services.db import tokens_coll, users_coll, to_dict
from resumatch.utils.config import TOKEN_TTL_SECONDS
from resumatch.utils.exceptions import AuthenticationError, AuthorizationError
from resumatch.utils.logging_config import get_logger

logger = get_logger(__name__)

PBKDF2_ITERATIONS = 100_000
RECRUITER_ROLES = ("RECRUITER", "ADMIN")


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Salted PBKDF2-SHA256 hash, stored as ``salt$hexdigest``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, hashed: str) -> bool:
    salt, _, _ = hashed.partition("$")
    return hmac.compare_digest(hash_password(password, salt), hashed)


async def create_token(user_id: str) -> str:
    """Issue a new bearer token for the user and store it with its expiry."""
    token = secrets.token_hex(32)
    record = TokenModel(
        token=token,
        user_id=user_id,
        expires_at=datetime.utcnow() + timedelta(seconds=TOKEN_TTL_SECONDS),
    )
    await tokens_coll.insert_one(record.model_dump())
    return token


async def get_current_user(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    """Dependency resolving the Authorization header to a user document."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Access token is required")

    token = authorization[len("Bearer "):].strip()
    rec = await tokens_coll.find_one({"token": token})
    if not rec or rec["expires_at"] < datetime.utcnow():
        logger.info("Rejected missing or expired token")
        raise AuthenticationError("Invalid or expired token")

    user = await users_coll.find_one({"id": rec["user_id"]})
    if not user:
        raise AuthenticationError("User not found")
    return to_dict(user)


def require_role(*roles: str):
    """Dependency factory allowing only the given roles through."""
    async def dependency(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in roles:
            raise AuthorizationError(f"Required role: {' or '.join(roles)}", resource=user.get("role"))
        return user
    return dependency


def is_recruiter(user: Dict[str, Any]) -> bool:
    return user.get("role") in RECRUITER_ROLES
