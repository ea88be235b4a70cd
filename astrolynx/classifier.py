"""LLM query classification into greeting / domain / other.
The label is a routing signal only; it is never persisted and never raises.
"""
from __future__ import annotations

import logging

from .llm_service import LLMService
from .rag.chains import build_text_chain
from .rag.prompts import CLASSIFY_TEMPLATE
from .routing import QueryLabel, parse_label

logger = logging.getLogger(__name__)


class QueryClassifier:
    """Closed-label classifier backed by one generative model call."""

    def __init__(self, llm_service: LLMService | None, assistant_name: str, domain: str):
        self._chain = None
        if llm_service is not None:
            self._chain = build_text_chain(
                llm_service.llm,
                CLASSIFY_TEMPLATE,
                assistant_name=assistant_name,
                domain=domain,
            )

    async def classify(self, question: str) -> QueryLabel:
        if self._chain is None:
            logger.warning("LLM not initialized for query classification, defaulting to 'other'")
            return QueryLabel.OTHER
        try:
            raw = await self._chain.ainvoke({"question": question})
        except Exception as e:
            logger.error(f"Error during query classification: {e}")
            return QueryLabel.OTHER
        label = parse_label(raw)
        if label is QueryLabel.OTHER and (raw or "").strip().lower() != QueryLabel.OTHER.value:
            logger.warning(f"Unexpected classification {raw!r}, forcing to 'other'")
        logger.info("Query classified as: %s", label.value)
        return label
