"""Simple responses for questions that skip retrieval: greetings and out-of-scope redirects.
Each reply comes from one model call with a scripted fallback when the model is unavailable.
"""
from __future__ import annotations

import logging

from .llm_service import LLMService
from .rag.chains import build_text_chain
from .rag.prompts import GREETING_TEMPLATE, REDIRECT_TEMPLATE
from .routing import QueryLabel

logger = logging.getLogger(__name__)

GREETING_FALLBACK = (
    "Hello! I'm {assistant_name}. I can help with questions about {domain}. "
    "What would you like to know?"
)

REDIRECT_FALLBACK = (
    "I'm sorry, but I can only help with questions about {domain}. "
    "Try asking about a satellite mission, an instrument or a data product."
)


class SimpleResponder:
    """Greeting and redirect replies; never touches retrieval."""

    def __init__(self, llm_service: LLMService | None, assistant_name: str, domain: str):
        self.assistant_name = assistant_name
        self.domain = domain
        self._greeting_chain = None
        self._redirect_chain = None
        if llm_service is not None:
            partials = {"assistant_name": assistant_name, "domain": domain}
            self._greeting_chain = build_text_chain(llm_service.llm, GREETING_TEMPLATE, **partials)
            self._redirect_chain = build_text_chain(llm_service.llm, REDIRECT_TEMPLATE, **partials)

    def fallback(self, label: QueryLabel) -> str:
        template = GREETING_FALLBACK if label == QueryLabel.GREETING else REDIRECT_FALLBACK
        return template.format(assistant_name=self.assistant_name, domain=self.domain)

    async def respond(self, question: str, label: QueryLabel) -> str:
        chain = self._greeting_chain if label == QueryLabel.GREETING else self._redirect_chain
        if chain is None:
            logger.warning("LLM not initialized for simple response, using scripted reply")
            return self.fallback(label)
        try:
            reply = (await chain.ainvoke({"question": question})).strip()
        except Exception as e:
            logger.error(f"Error generating {label.value} response: {e}")
            return self.fallback(label)
        return reply or self.fallback(label)
