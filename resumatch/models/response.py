# models/response.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from resumatch.models.models import MatchCandidate, PIIData, RetrievalHit
from resumatch.models.schemas import JobModel, Role


class UserPublic(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    created_at: datetime


class AuthResponse(BaseModel):
    token: str
    user: UserPublic


class UploadedResume(BaseModel):
    id: str
    filename: str
    textLength: int


class UploadResponse(BaseModel):
    message: str
    resumes: List[UploadedResume] = []


class ResumeView(BaseModel):
    id: str
    filename: str
    text: str
    pii: Optional[PIIData] = None
    created_at: datetime


class ResumePage(BaseModel):
    items: List[ResumeView]
    next_offset: Optional[int] = None


class JobPage(BaseModel):
    items: List[JobModel]
    next_offset: Optional[int] = None


class AskResponse(BaseModel):
    snippets: List[RetrievalHit]


class JobMatchResponse(BaseModel):
    candidates: List[MatchCandidate]


class MetaResponse(BaseModel):
    version: str
    uptime: int
    environment: str
