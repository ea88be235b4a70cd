"""Token-budgeted context assembly from fused vector chunks and the graph summary."""
from __future__ import annotations

import logging
import math
from typing import Callable

from .graph_retrieval import is_graph_sentinel

logger = logging.getLogger(__name__)

CONTEXT_MAX_TOKENS = 4000
MIN_CHUNK_CHARS = 20
CHUNK_SEPARATOR = "\n---\n"

NO_VECTOR_RESULTS = "Vector Search Results: No relevant information found in the document index.\n\n"
NO_GRAPH_RESULTS = "Knowledge Graph Data: No relevant information found in the knowledge graph.\n\n"


def vector_section(chunks: list[dict], min_chars: int = MIN_CHUNK_CHARS) -> str:
    texts = [c.get("text", "") for c in chunks if len(c.get("text", "")) > min_chars]
    if not texts:
        return NO_VECTOR_RESULTS
    return f"Vector Search Results:\n{CHUNK_SEPARATOR.join(texts)}\n\n"


def graph_section(graph_summary: str | None) -> str:
    if is_graph_sentinel(graph_summary):
        return NO_GRAPH_RESULTS
    return f"Knowledge Graph Data:\n{graph_summary}\n\n"


def truncate_to_budget(context: str, token_count: int, max_tokens: int) -> str:
    """
    Keep the leading floor(len * max_tokens / token_count) characters.

    Approximate: the cut is proportional in characters, not exact in tokens,
    and may fall mid-sentence. At least one character is always kept.
    """
    if token_count <= max_tokens:
        return context
    ratio = max_tokens / token_count
    return context[: max(1, math.floor(len(context) * ratio))]


def assemble_context(
    fused_chunks: list[dict],
    graph_summary: str | None,
    count_tokens: Callable[[str], int],
    max_tokens: int = CONTEXT_MAX_TOKENS,
    min_chars: int = MIN_CHUNK_CHARS,
) -> str:
    """Vector section followed by graph section, truncated when over the token budget."""
    context = vector_section(fused_chunks, min_chars) + graph_section(graph_summary)
    try:
        tokens = count_tokens(context)
    except Exception as e:
        # ~4 characters per token for English text
        logger.error(f"Token counting failed, estimating from length: {e}")
        tokens = math.ceil(len(context) / 4)
    if tokens > max_tokens:
        logger.warning("Context too large (%d tokens > %d), truncating", tokens, max_tokens)
        context = truncate_to_budget(context, tokens, max_tokens)
    logger.info("Context built: %d chars", len(context))
    return context
