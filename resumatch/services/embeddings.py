"""
Deterministic hash-based text embeddings and cosine similarity.

Stands in for a learned embedding model: every text maps to a fixed
384-dimensional vector that depends only on the text, so embeddings computed
at upload time stay comparable with embeddings computed at query time.
"""
import math
import re
from typing import List, Sequence

import numpy as np

EMBEDDING_DIM = 384

_WHITESPACE = re.compile(r"\s+")


def simple_hash(value: str) -> int:
    """32-bit polynomial rolling hash (h = h*31 + c) over UTF-16 code units.

    The accumulator wraps like a signed 32-bit integer; the absolute value
    is returned, so the result is always non-negative.
    """
    h = 0
    data = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return abs(h)


def utf16_prefix(text: str, limit: int) -> str:
    """Longest prefix of ``text`` spanning at most ``limit`` UTF-16 code units.

    A surrogate pair that would straddle the limit is dropped whole.
    """
    units = 0
    for i, ch in enumerate(text):
        units += 2 if ord(ch) > 0xFFFF else 1
        if units > limit:
            return text[:i]
    return text


def tokenize(text: str) -> List[str]:
    # Empty text gives [""], and leading/trailing whitespace gives empty edge tokens
    return _WHITESPACE.split(text.lower())


def generate_embedding(text: str) -> List[float]:
    """Embed ``text`` into a unit vector of EMBEDDING_DIM floats.

    Each token is hashed together with its position; the hash picks a bucket
    and a value in [0, 1) that is added into that bucket. The result is
    L2-normalized. A zero-magnitude vector is returned as all zeros rather
    than divided by zero.
    """
    vector = np.zeros(EMBEDDING_DIM, dtype=np.float64)
    for index, token in enumerate(tokenize(text)):
        h = simple_hash(f"{token}{index}")
        vector[h % EMBEDDING_DIM] += (h % 1000) / 1000

    magnitude = float(np.linalg.norm(vector))
    if magnitude == 0.0:
        return vector.tolist()
    return (vector / magnitude).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors, unclamped.

    Vectors of different length are not comparable and score 0. A zero
    vector, or a stored vector holding NaN, carries no similarity signal and
    also scores 0.
    """
    if len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    den = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if den == 0.0 or not math.isfinite(den):
        return 0.0

    score = float(np.dot(va, vb)) / den
    return score if math.isfinite(score) else 0.0
