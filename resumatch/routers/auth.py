import uuid
from fastapi import APIRouter
from pymongo.errors import DuplicateKeyError

from resumatch.models.payloads import RegisterPayload, LoginPayload
from resumatch.models.response import AuthResponse, UserPublic
from resumatch.models.schemas import UserModel
from resumatch.services.auth import create_token, hash_password, verify_password
from resumatch.services.db import users_coll
from resumatch.utils.exceptions import AuthenticationError, ConflictError
from resumatch.utils.logging_config import get_logger, log_api_call

router = APIRouter()
logger = get_logger(__name__)


@router.post("/register", response_model=AuthResponse, status_code=201)
@log_api_call("register")
async def register(payload: RegisterPayload):
    """Create an account and return a bearer token for it"""
    existing = await users_coll.find_one({"email": payload.email})
    if existing:
        raise ConflictError("User with this email already exists", field="email")

    user = UserModel(
        id=str(uuid.uuid4()),
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    try:
        await users_coll.insert_one(user.model_dump())
    except DuplicateKeyError as e:
        # concurrent registration, caught by the unique email index
        raise ConflictError("User with this email already exists", field="email", cause=e) from e
    token = await create_token(user.id)

    logger.info(f"Registered user {user.id} with role {user.role}")
    return AuthResponse(token=token, user=UserPublic(**user.model_dump()))


@router.post("/login", response_model=AuthResponse)
@log_api_call("login")
async def login(payload: LoginPayload):
    """Exchange email and password for a bearer token"""
    user = await users_coll.find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise AuthenticationError("Invalid email or password")

    token = await create_token(user["id"])
    return AuthResponse(token=token, user=UserPublic(**user))
