"""Vector retrieval: one similarity search per query, fanned out concurrently."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from langchain_chroma import Chroma
from langchain_core.embeddings import Embeddings

from .fusion import UNKNOWN_SOURCE

logger = logging.getLogger(__name__)


class VectorSearch(Protocol):
    """Similarity search usable concurrently from many in-flight turns."""

    async def search(self, query: str, k: int) -> list[dict]: ...


def _doc_to_chunk(doc: Any, score: float | None = None) -> dict:
    """Convert LangChain Document to chunk dict {id, source, page, text, score}."""
    meta = doc.metadata or {}
    page = meta.get("page")
    return {
        "id": meta.get("chunk_id", meta.get("id", str(getattr(doc, "id", None) or "unknown"))),
        "source": meta.get("source") or UNKNOWN_SOURCE,
        "page": str(page) if page is not None else None,
        "text": getattr(doc, "page_content", ""),
        "score": score if isinstance(score, (int, float)) else None,
    }


class ChromaVectorSearch:
    """VectorSearch over a LangChain Chroma collection."""

    def __init__(self, client: Any, collection_name: str, embeddings: Embeddings):
        self.collection_name = collection_name
        self.vectorstore = Chroma(
            client=client,
            collection_name=collection_name,
            embedding_function=embeddings,
        )
        logger.info("LangChain Chroma using shared client, collection '%s'", collection_name)

    async def search(self, query: str, k: int) -> list[dict]:
        docs = await self.vectorstore.asimilarity_search_with_score(query, k=k)
        chunks = [_doc_to_chunk(doc, score) for doc, score in docs]
        logger.info("Retrieved %d chunks for query: %s...", len(chunks), query[:50])
        return chunks

    def count(self) -> int:
        return self.vectorstore._collection.count()


async def _search_slot(
    vector_search: VectorSearch,
    query: str,
    k: int,
    timeout: float | None,
) -> list[dict]:
    if timeout is None:
        return await vector_search.search(query, k)
    return await asyncio.wait_for(vector_search.search(query, k), timeout=timeout)


async def parallel_retrieve(
    vector_search: VectorSearch,
    queries: list[str],
    k: int = 5,
    timeout: float | None = None,
) -> list[list[dict]]:
    """
    Scatter one search per query, gather when all have finished or failed.

    Returns one ranked list per query in query order. A query that raises or
    exceeds `timeout` contributes an empty list and never cancels its siblings.
    """
    if not queries:
        return []
    tasks = [_search_slot(vector_search, query, k, timeout) for query in queries]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    ranked_lists: list[list[dict]] = []
    failed = 0
    for query, result in zip(queries, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            failed += 1
            logger.error(f"Error during vector retrieval for query {query[:50]!r}: {result!r}")
            ranked_lists.append([])
        else:
            ranked_lists.append(list(result))
    logger.info("Completed %d parallel retrievals (%d failed)", len(queries), failed)
    return ranked_lists
