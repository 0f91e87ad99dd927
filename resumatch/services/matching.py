import re
from typing import List, Sequence, Tuple

from resumatch.models.models import CorpusEntry, JobProfile, MatchCandidate
from resumatch.models.settings import DEFAULT_SCORING, ScoringSettings
from resumatch.services.embeddings import cosine_similarity, generate_embedding
from resumatch.utils.logging_config import get_logger, log_function_call

logger = get_logger(__name__)

_PHRASE_SPLIT = re.compile(r"[,:;]")

def requirement_phrases(requirement: str) -> List[str]:
    return [p.strip() for p in _PHRASE_SPLIT.split(requirement.lower())]

def evidence_window(text: str, index: int, length: int, window: int) -> str:
    start = max(0, index - window)
    end = min(len(text), index + length + window)
    return text[start:end]

def find_evidence(
    text: str, lowered: str, requirements: Sequence[str], settings: ScoringSettings = DEFAULT_SCORING
) -> Tuple[List[str], List[str]]:
    """Literal evidence for each requirement.

    A requirement is met by the first of its sub-phrases (split on , : ;)
    that is long enough and occurs in the lower-cased text; the snippet
    around that hit is taken from the original text. Requirements with no hit
    are returned as missing, untruncated.
    """
    evidence, missing = [], []
    for requirement in requirements:
        found = False
        for phrase in requirement_phrases(requirement):
            if len(phrase) < settings.min_phrase_length:
                continue
            index = lowered.find(phrase)
            if index != -1:
                evidence.append(evidence_window(text, index, len(phrase), settings.evidence_window))
                found = True
                break
        if not found:
            missing.append(requirement)
    return evidence, missing

def keyword_score(total: int, missing: int) -> float:
    # 0..100; no requirements means no keyword signal
    if total <= 0:
        return 0.0
    return 100.0 * (total - missing) / total

def combine_scores(similarity: float, kw_score: float, settings: ScoringSettings = DEFAULT_SCORING) -> float:
    combined = (similarity * 100 * settings.semantic_weight) + (kw_score * settings.keyword_weight)
    return max(0.0, min(100.0, combined))

def score_resume(
    job_embedding: List[float], requirements: Sequence[str], resume: CorpusEntry,
    settings: ScoringSettings = DEFAULT_SCORING
) -> MatchCandidate:
    sim = cosine_similarity(job_embedding, resume.embedding)
    evidence, missing = find_evidence(resume.text, resume.text.lower(), requirements, settings)
    kw = keyword_score(len(requirements), len(missing))

    return MatchCandidate(
        resume_id=resume.id,
        candidate_name=resume.candidate_name,
        candidate_email=resume.candidate_email,
        resume_filename=resume.filename,
        match_score=combine_scores(sim, kw, settings),
        evidence_snippets=evidence[:settings.max_evidence_snippets],
        missing_requirements=missing[:settings.max_missing_requirements],
    )

@log_function_call
def match_resumes(
    job: JobProfile, resumes: List[CorpusEntry], top_n: int = 10,
    settings: ScoringSettings = DEFAULT_SCORING
) -> List[MatchCandidate]:
    """Rank ``resumes`` against ``job`` and keep the best ``top_n``.

    The job is embedded once; each resume contributes its stored embedding.
    Ties keep input order.
    """
    if not resumes:
        return []

    job_embedding = generate_embedding(job.as_text())
    out = [score_resume(job_embedding, job.requirements, r, settings) for r in resumes]
    out = sorted(out, key=lambda c: c.match_score, reverse=True)

    logger.debug(f"match_resumes: scored {len(out)} resumes against '{job.title}'")
    return out[:max(top_n, 0)]
