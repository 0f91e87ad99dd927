from typing import List

from resumatch.models.models import CorpusEntry, RetrievalHit
from resumatch.models.settings import DEFAULT_SCORING, ScoringSettings
from resumatch.services.embeddings import cosine_similarity, generate_embedding, utf16_prefix
from resumatch.utils.logging_config import get_logger, log_function_call

logger = get_logger(__name__)


@log_function_call
def semantic_search(
    query: str,
    corpus: List[CorpusEntry],
    k: int = 5,
    settings: ScoringSettings = DEFAULT_SCORING,
) -> List[RetrievalHit]:
    """Top-k corpus entries most similar to ``query``.

    Stored embeddings are used as-is. Hits are ordered by score (ties keep
    corpus order), anything at or below the retrieval threshold is dropped,
    and at most ``k`` remain.
    """
    if not corpus:
        return []

    query_embedding = generate_embedding(query)

    hits = [
        RetrievalHit(
            resume_id=entry.id,
            text=utf16_prefix(entry.text, settings.snippet_length),
            score=cosine_similarity(query_embedding, entry.embedding),
        )
        for entry in corpus
    ]

    # sorted() is stable, so equal scores stay in corpus order
    hits = sorted(hits, key=lambda h: h.score, reverse=True)
    hits = [h for h in hits if h.score > settings.retrieval_threshold]

    logger.debug(f"semantic_search: {len(hits)} of {len(corpus)} entries above {settings.retrieval_threshold}")
    return hits[:max(k, 0)]
