"""
Scoring Settings for the matching and search engine
"""
from pydantic import BaseModel, Field, ValidationError, field_validator, ValidationInfo

from resumatch.utils import config
from resumatch.utils.exceptions import ConfigurationError


class ScoringSettings(BaseModel):
    """Weights, limits and thresholds used by the job matcher and retriever"""
    semantic_weight: float = Field(default=0.3, ge=0.0, le=1.0, description="Weight of embedding similarity in the match score")
    keyword_weight: float = Field(default=0.7, ge=0.0, le=1.0, description="Weight of requirement coverage in the match score")
    max_evidence_snippets: int = Field(default=3, ge=0, description="Evidence snippets kept per candidate")
    max_missing_requirements: int = Field(default=5, ge=0, description="Missing requirements kept per candidate")
    evidence_window: int = Field(default=100, ge=0, description="Characters of context on each side of a keyword hit")
    min_phrase_length: int = Field(default=3, ge=1, description="Shortest requirement sub-phrase checked for containment")
    retrieval_threshold: float = Field(default=0.1, ge=-1.0, le=1.0, description="Hits scoring at or below this are dropped")
    snippet_length: int = Field(default=500, ge=0, description="Characters of source text returned with a retrieval hit")

    @field_validator('keyword_weight')
    @classmethod
    def validate_total_weights(cls, v, info: ValidationInfo):
        total = v + info.data.get('semantic_weight', 0)
        if abs(total - 1.0) > 0.01:  # Allow small floating point errors
            raise ValueError('semantic_weight and keyword_weight must sum to 1.0')
        return v


DEFAULT_SCORING = ScoringSettings()


def load_scoring_settings() -> ScoringSettings:
    """Build scoring settings from the environment"""
    try:
        return ScoringSettings(
            semantic_weight=config.SEMANTIC_WEIGHT,
            keyword_weight=config.KEYWORD_WEIGHT,
        )
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid scoring weights",
            config_key="SEMANTIC_WEIGHT/KEYWORD_WEIGHT",
            config_value=f"{config.SEMANTIC_WEIGHT}/{config.KEYWORD_WEIGHT}",
            cause=e,
        ) from e
