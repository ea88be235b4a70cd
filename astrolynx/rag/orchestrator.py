"""Turn orchestration: preconditions, session window, graph run, log append."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver

from ..classifier import QueryClassifier
from ..config import Settings, get_settings
from ..errors import ServiceUnavailableError
from ..graph_lc import TurnServices, build_turn_graph, initial_state
from ..language import LanguageAdapter
from ..llm_service import LLMService
from ..memory import ConversationMemory, new_session_id
from ..models import TurnResult
from ..routing import DEFAULT_LANGUAGE
from ..smalltalk import SimpleResponder
from ..speech import SpeechAdapter
from .generation import GenerationInvoker
from .graph_retrieval import GraphRetriever
from .retrieval import VectorSearch
from .transform import QueryTransformer

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response generated."


class Orchestrator:
    """
    Runs one conversation turn end to end.

    All collaborators are injected. Only a missing model, vector store or
    session store escapes as ServiceUnavailableError; every other failure is
    absorbed inside the workflow and the caller still gets an answer.
    """

    def __init__(
        self,
        llm_service: LLMService | None,
        vector_search: VectorSearch | None,
        memory: ConversationMemory | None,
        graph_retriever: GraphRetriever | None = None,
        translator: LanguageAdapter | None = None,
        speech: SpeechAdapter | None = None,
        settings: Settings | None = None,
        checkpointer: BaseCheckpointSaver | None = None,
    ):
        settings = settings or get_settings()
        self.llm_service = llm_service
        self.vector_search = vector_search
        self.memory = memory
        name, domain = settings.assistant_name, settings.assistant_domain
        self.services = TurnServices(
            llm_service=llm_service,
            vector_search=vector_search,
            classifier=QueryClassifier(llm_service, name, domain),
            transformer=QueryTransformer(llm_service),
            responder=SimpleResponder(llm_service, name, domain),
            generator=GenerationInvoker(llm_service, name, domain),
            graph_retriever=graph_retriever,
            translator=translator,
            speech=speech,
            retrieval_top_k=settings.retrieval_top_k,
            retrieval_timeout=settings.retrieval_timeout_seconds,
            context_max_tokens=settings.context_max_tokens,
            context_min_chunk_chars=settings.context_min_chunk_chars,
        )
        self.checkpointer = checkpointer if checkpointer is not None else MemorySaver()
        self.graph = build_turn_graph(self.services, checkpointer=self.checkpointer)

    def missing_services(self) -> list[str]:
        missing = []
        if self.llm_service is None:
            missing.append("generative model")
        if self.vector_search is None:
            missing.append("vector store")
        if self.memory is None:
            missing.append("session store")
        return missing

    async def handle_turn(
        self,
        question: str,
        session_id: str | None = None,
        image: str | None = None,
        audio_requested: bool = False,
        target_language: str | None = DEFAULT_LANGUAGE,
    ) -> TurnResult:
        missing = self.missing_services()
        if missing:
            logger.error("Chat service not fully initialized, missing: %s", missing)
            raise ServiceUnavailableError(missing)
        if not question or not question.strip():
            raise ValueError("Question must not be empty")

        session_id = session_id or new_session_id()
        language = (target_language or DEFAULT_LANGUAGE).strip().lower()
        logger.info(f"Starting turn for session {session_id}: {question[:100]}")

        try:
            chat_history = await self.memory.load_window(session_id)
        except Exception as e:
            logger.error(f"Could not load chat history for session {session_id}, continuing without: {e}")
            chat_history = []

        state = initial_state(
            session_id=session_id,
            question=question,
            chat_history=chat_history,
            image=image,
            target_language=language,
            audio_requested=audio_requested,
        )
        final_state = await self.graph.ainvoke(state, config=self._config(session_id))
        answer = final_state.get("answer") or NO_RESPONSE

        try:
            await self.memory.append_turn(session_id, question, answer)
        except Exception as e:
            logger.error(f"Could not save turn for session {session_id}: {e}")

        label = final_state.get("query_label")
        return TurnResult(
            session_id=session_id,
            answer=answer,
            audio=final_state.get("audio"),
            label=getattr(label, "value", label),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def last_checkpoint(self, session_id: str) -> dict[str, Any]:
        """Values of the latest checkpoint for a session; empty when none exists."""
        snapshot = await self.graph.aget_state(self._config(session_id))
        return dict(snapshot.values or {})

    @staticmethod
    def _config(session_id: str) -> dict:
        return {"configurable": {"thread_id": session_id}}
