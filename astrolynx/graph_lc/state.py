"""Turn state for the LangGraph workflow.

Reducer table:
- chat_history: append (list concatenation); a ResetList value replaces instead,
  which is how each turn starts from its own window on a checkpointed thread.
- every other field: replace (last write wins). The concurrent retrieval
  branches write disjoint fields (raw_result_lists / graph_summary).
"""
from __future__ import annotations

from typing import Annotated, TypedDict


class ResetList(list):
    """List value that replaces an append-reduced field rather than extending it."""


def append_messages(left: list | None, right: list | None) -> list:
    if isinstance(right, ResetList):
        return list(right)
    return list(left or []) + list(right or [])


class TurnState(TypedDict, total=False):
    """Working record of one conversation turn."""

    # Inputs
    session_id: str
    question: str  # replaced by the English translation when target_language != "en"
    chat_history: Annotated[list[dict], append_messages]
    image: str | None
    target_language: str
    audio_requested: bool

    # Produced by the workflow
    query_label: str | None  # QueryLabel value
    rewritten_queries: list[str]
    hypothetical_document: str | None
    fan_out_queries: list[str]
    raw_result_lists: list[list[dict]]
    fused_documents: list[dict]
    graph_summary: str
    assembled_context: str
    answer: str
    audio: str | None


def initial_state(
    session_id: str,
    question: str,
    chat_history: list[dict],
    image: str | None = None,
    target_language: str = "en",
    audio_requested: bool = False,
) -> TurnState:
    """Every field set explicitly so nothing carries over from a previous checkpoint."""
    return TurnState(
        session_id=session_id,
        question=question,
        chat_history=ResetList(chat_history),
        image=image,
        target_language=target_language,
        audio_requested=audio_requested,
        query_label=None,
        rewritten_queries=[],
        hypothetical_document=None,
        fan_out_queries=[],
        raw_result_lists=[],
        fused_documents=[],
        graph_summary="",
        assembled_context="",
        answer="",
        audio=None,
    )
