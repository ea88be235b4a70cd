"""Reciprocal Rank Fusion of several ranked chunk lists into one ranking."""
from __future__ import annotations

RRF_K = 60

# Sentinel for chunks without a source
UNKNOWN_SOURCE = "vector_store"


def chunk_identity(chunk: dict) -> tuple[str, str]:
    """Two chunks are the same document when text and source match."""
    return (chunk.get("text", ""), chunk.get("source") or UNKNOWN_SOURCE)


def rrf_scores(ranked_lists: list[list[dict]], k: int = RRF_K) -> dict[tuple[str, str], float]:
    """Summed 1 / (k + rank) per identity, rank 1-based, keyed in first-seen order."""
    scores: dict[tuple[str, str], float] = {}
    for ranked in ranked_lists:
        for rank, chunk in enumerate(ranked, start=1):
            key = chunk_identity(chunk)
            scores[key] = scores.get(key, 0.0) + 1.0 / (k + rank)
    return scores


def reciprocal_rank_fusion(ranked_lists: list[list[dict]], k: int = RRF_K) -> list[dict]:
    """
    Fuse ranked lists by Reciprocal Rank Fusion.

    - The first appearance of an identity supplies the chunk returned; later
      duplicates only add to its score.
    - Output is sorted by descending score; equal scores keep first-seen order
      (position across lists in input order), so repeated calls are identical.
    - Empty input, or only empty lists, gives an empty list.
    """
    canonical: dict[tuple[str, str], dict] = {}
    first_seen: dict[tuple[str, str], int] = {}
    for ranked in ranked_lists:
        for chunk in ranked:
            key = chunk_identity(chunk)
            if key not in canonical:
                canonical[key] = chunk
                first_seen[key] = len(first_seen)

    scores = rrf_scores(ranked_lists, k=k)
    # Rounded so float summation order cannot split a genuine tie.
    ordered = sorted(canonical, key=lambda key: (-round(scores[key], 12), first_seen[key]))
    return [canonical[key] for key in ordered]
