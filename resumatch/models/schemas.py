from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime

Role = Literal["USER", "RECRUITER", "ADMIN"]

# -------- Users --------
class UserModel(BaseModel):
    id: str
    name: str
    email: str
    password_hash: str
    role: Role = "USER"
    created_at: datetime = Field(default_factory=datetime.utcnow)

# -------- Resumes --------
class ResumeModel(BaseModel):
    id: str
    user_id: str
    filename: str
    text: str
    embedding: List[float] = []
    pii: dict = Field(default_factory=dict)
    idempotency_key: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

# -------- Jobs --------
class JobModel(BaseModel):
    id: str
    user_id: Optional[str] = None   # creator (recruiter/admin)
    title: str
    description: str
    requirements: List[str] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)

# -------- Match results --------
class MatchResultModel(BaseModel):
    id: str
    job_id: str
    resume_id: str
    score: float
    evidence: List[str] = []
    missing: List[str] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

# -------- Tokens --------
class TokenModel(BaseModel):
    token: str
    user_id: str
    expires_at: datetime
