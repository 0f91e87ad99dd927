from pydantic import BaseModel, Field
from typing import List, Literal

# Request bodies accepted by the API routes

class RegisterPayload(BaseModel):
    """New account"""
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6)
    role: Literal["USER", "RECRUITER", "ADMIN"] = "USER"

class LoginPayload(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=1)

class JobCreatePayload(BaseModel):
    """Job posting as submitted by a recruiter"""
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    requirements: List[str] = Field(..., min_length=1)

class JobMatchPayload(BaseModel):
    top_n: int = Field(default=10, ge=1, le=50)

class AskPayload(BaseModel):
    """Natural-language query over the visible resume corpus"""
    query: str = Field(..., min_length=1)
    k: int = Field(default=5, ge=1, le=20)
