"""LangGraph node functions for the conversational RAG turn.
Each node returns only the fields it changes; services are passed in explicitly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..classifier import QueryClassifier
from ..language import LanguageAdapter
from ..llm_service import LLMService
from ..rag.context import CONTEXT_MAX_TOKENS, MIN_CHUNK_CHARS, assemble_context
from ..rag.fusion import reciprocal_rank_fusion
from ..rag.generation import GenerationInvoker
from ..rag.graph_retrieval import GRAPH_UNAVAILABLE, GraphRetriever
from ..rag.retrieval import VectorSearch, parallel_retrieve
from ..rag.transform import QueryTransformer
from ..routing import DEFAULT_LANGUAGE, QueryLabel
from ..smalltalk import SimpleResponder
from ..speech import SpeechAdapter
from .state import TurnState

logger = logging.getLogger(__name__)


@dataclass
class TurnServices:
    """Handles shared by every turn; all must tolerate concurrent use."""

    llm_service: LLMService | None
    vector_search: VectorSearch | None
    classifier: QueryClassifier
    transformer: QueryTransformer
    responder: SimpleResponder
    generator: GenerationInvoker
    graph_retriever: GraphRetriever | None = None
    translator: LanguageAdapter | None = None
    speech: SpeechAdapter | None = None
    retrieval_top_k: int = 5
    retrieval_timeout: float | None = None
    context_max_tokens: int = CONTEXT_MAX_TOKENS
    context_min_chunk_chars: int = MIN_CHUNK_CHARS


def _language(state: TurnState) -> str:
    return state.get("target_language") or DEFAULT_LANGUAGE


async def translate_in_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    """Translate the question to English; keep the original on failure."""
    question = state.get("question", "")
    if services.translator is None:
        logger.warning("No translator configured, proceeding with untranslated question")
        return {}
    try:
        translated = await services.translator.to_english(question, _language(state))
    except Exception as e:
        logger.error(f"Error translating user input, proceeding with original: {e}")
        return {}
    return {"question": translated}


async def classify_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    label = await services.classifier.classify(state.get("question", ""))
    return {"query_label": label.value}


async def simple_response_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    """Greeting or scope redirect; retrieval is never touched."""
    label = QueryLabel(state.get("query_label") or QueryLabel.OTHER)
    logger.info("Simple response for label '%s', skipping retrieval", label.value)
    answer = await services.responder.respond(state.get("question", ""), label)
    return {"answer": answer}


async def transform_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    result = await services.transformer.transform(state.get("question", ""))
    return {
        "rewritten_queries": result.rewritten_queries,
        "hypothetical_document": result.hypothetical_document,
        "fan_out_queries": result.fan_out_queries,
    }


async def parallel_retrieval_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    queries = state.get("fan_out_queries") or [state.get("question", "")]
    if services.vector_search is None:
        logger.warning("Vector store not initialized, skipping vector retrieval")
        return {"raw_result_lists": [[] for _ in queries]}
    raw = await parallel_retrieve(
        services.vector_search,
        queries,
        k=services.retrieval_top_k,
        timeout=services.retrieval_timeout,
    )
    return {"raw_result_lists": raw}


async def graph_retrieval_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    if services.graph_retriever is None:
        return {"graph_summary": GRAPH_UNAVAILABLE}
    summary = await services.graph_retriever.retrieve(state.get("question", ""))
    return {"graph_summary": summary}


async def fuse_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    raw = state.get("raw_result_lists") or []
    fused = reciprocal_rank_fusion(raw)
    logger.info("Re-ranked %d documents from %d lists using RRF", len(fused), len(raw))
    return {"fused_documents": fused}


async def assemble_context_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    context = assemble_context(
        state.get("fused_documents") or [],
        state.get("graph_summary"),
        count_tokens=services.llm_service.count_tokens,
        max_tokens=services.context_max_tokens,
        min_chars=services.context_min_chunk_chars,
    )
    return {"assembled_context": context}


async def generate_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    answer = await services.generator.generate(
        question=state.get("question", ""),
        context=state.get("assembled_context", ""),
        chat_history=state.get("chat_history"),
        image=state.get("image"),
    )
    return {"answer": answer}


async def translate_out_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    """Translate the answer to the target language; keep English on failure."""
    answer = state.get("answer", "")
    if services.translator is None or not answer:
        return {}
    try:
        translated = await services.translator.to_target(answer, _language(state))
    except Exception as e:
        logger.error(f"Error translating answer, proceeding with English: {e}")
        return {}
    return {"answer": translated}


async def synthesize_audio_node(state: TurnState, services: TurnServices) -> dict[str, Any]:
    answer = state.get("answer", "")
    if services.speech is None or not answer:
        logger.warning("Audio requested but no speech synthesis available")
        return {"audio": None}
    try:
        audio = await services.speech.synthesize(answer, _language(state))
    except Exception as e:
        logger.error(f"Error generating speech: {e}")
        return {"audio": None}
    if not audio:
        logger.warning("TTS generated no audio data")
    return {"audio": audio or None}
