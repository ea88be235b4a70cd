"""RAG module: prompts, fusion, retrieval, context assembly, generation and turn orchestration."""

# No langchain dependency: safe for tests that only need prompts or fusion
from .prompts import format_chat_history
from .fusion import RRF_K, chunk_identity, reciprocal_rank_fusion, rrf_scores

__all__ = [
    "format_chat_history",
    "RRF_K",
    "chunk_identity",
    "reciprocal_rank_fusion",
    "rrf_scores",
    "parallel_retrieve",
    "ChromaVectorSearch",
    "QueryTransformer",
    "GraphRetriever",
    "assemble_context",
    "GenerationInvoker",
    "Orchestrator",
]

_LAZY = {
    "parallel_retrieve": "retrieval",
    "ChromaVectorSearch": "retrieval",
    "QueryTransformer": "transform",
    "GraphRetriever": "graph_retrieval",
    "assemble_context": "context",
    "GenerationInvoker": "generation",
    "Orchestrator": "orchestrator",
}


def __getattr__(name: str):
    """Lazy load LangChain/LangGraph-dependent modules."""
    if name in _LAZY:
        from importlib import import_module
        module = import_module(f".{_LAZY[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
