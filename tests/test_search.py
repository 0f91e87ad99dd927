import pytest

from resumatch.models.models import CorpusEntry
from resumatch.models.settings import ScoringSettings
from resumatch.services.embeddings import generate_embedding
from resumatch.services.search import semantic_search


def entry(id, text, embedding=None):
    return CorpusEntry(id=id, text=text, embedding=embedding if embedding is not None else generate_embedding(text))


class TestSemanticSearch:
    """Top-k retrieval over stored embeddings"""

    def test_single_hit(self):
        corpus = [entry("a", "React developer", generate_embedding("React developer"))]
        hits = semantic_search("React developer", corpus, k=5)
        assert [h.resume_id for h in hits] == ["a"]
        assert hits[0].score == pytest.approx(1.0, abs=1e-6)

    def test_empty_corpus(self):
        assert semantic_search("anything", []) == []

    def test_threshold_drops_low_scores(self):
        corpus = [
            entry("zero", "no vector", [0.0] * 384),
            entry("short", "bad length", [1.0, 0.0]),
        ]
        assert semantic_search("React developer", corpus) == []

    def test_sorted_descending(self):
        query = "python backend engineer"
        corpus = [
            entry("weak", "python"),
            entry("exact", query),
            entry("close", "python backend engineer with django"),
        ]
        hits = semantic_search(query, corpus, k=10)
        scores = [h.score for h in hits]
        assert scores == sorted(scores, reverse=True)
        assert hits[0].resume_id == "exact"
        assert all(h.score > 0.1 for h in hits)

    def test_ties_keep_corpus_order(self):
        vec = generate_embedding("go developer")
        corpus = [entry(str(i), "go developer", vec) for i in range(4)]
        hits = semantic_search("go developer", corpus, k=4)
        assert [h.resume_id for h in hits] == ["0", "1", "2", "3"]

    def test_k_caps_results(self):
        vec = generate_embedding("go developer")
        corpus = [entry(str(i), "go developer", vec) for i in range(8)]
        assert len(semantic_search("go developer", corpus, k=3)) == 3

    def test_snippet_truncated(self):
        text = "x" * 800
        vec = generate_embedding("query")
        hits = semantic_search("query", [entry("a", text, vec)])
        assert len(hits[0].text) == 500

    def test_uses_stored_embedding_not_text(self):
        corpus = [entry("a", "completely unrelated words", generate_embedding("rust systems"))]
        assert [h.resume_id for h in semantic_search("rust systems", corpus)] == ["a"]

    def test_custom_threshold(self):
        settings = ScoringSettings(retrieval_threshold=0.999)
        corpus = [entry("a", "rust"), entry("b", "rust systems programmer")]
        hits = semantic_search("rust", corpus, settings=settings)
        assert [h.resume_id for h in hits] == ["a"]

    def test_snippet_counts_utf16_units(self):
        vec = generate_embedding("query")
        emoji = "\U0001F600"
        hits = semantic_search("query", [entry("a", emoji * 400, vec)])
        assert hits[0].text == emoji * 250

    def test_snippet_drops_split_surrogate_pair(self):
        vec = generate_embedding("query")
        text = "a" * 499 + "\U0001F600" + "tail"
        hits = semantic_search("query", [entry("a", text, vec)])
        assert hits[0].text == "a" * 499
