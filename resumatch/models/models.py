from pydantic import BaseModel, Field
from typing import List, Optional

class PIIData(BaseModel):
    emails: List[str] = Field(default_factory=list)
    phones: List[str] = Field(default_factory=list)
    names: List[str] = Field(default_factory=list)

class CorpusEntry(BaseModel):
    id: str
    text: str
    embedding: List[float]
    candidate_name: Optional[str] = None
    candidate_email: Optional[str] = None
    filename: Optional[str] = None

class JobProfile(BaseModel):
    title: str = ""
    description: str = ""
    requirements: List[str] = Field(default_factory=list)

    def as_text(self) -> str:
        return f"{self.title} {self.description} {' '.join(self.requirements)}"

class RetrievalHit(BaseModel):
    resume_id: str
    text: str
    score: float

class MatchCandidate(BaseModel):
    resume_id: str
    candidate_name: Optional[str] = None
    candidate_email: Optional[str] = None
    resume_filename: Optional[str] = None
    match_score: float
    evidence_snippets: List[str] = Field(default_factory=list)
    missing_requirements: List[str] = Field(default_factory=list)
