"""Generative model handle via LangChain (inference layer only)."""
from __future__ import annotations

import logging
from typing import Callable

from langchain_core.language_models import BaseChatModel
from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]


class LLMService:
    """
    Shared, concurrency-safe handle to the chat model.

    `llm` is any LangChain runnable that accepts prompt values or message lists
    (a ChatOpenAI in production). `count_tokens` uses the model's tokenizer unless
    an explicit counter is supplied.
    """

    def __init__(
        self,
        llm: BaseChatModel | Runnable,
        model_name: str = "unknown",
        token_counter: TokenCounter | None = None,
        supports_images: bool = True,
    ):
        self.llm = llm
        self.model = model_name
        self.supports_images = supports_images
        self._token_counter = token_counter

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "LLMService":
        """Build the ChatOpenAI-backed service from configuration."""
        settings = settings or get_settings()
        llm = ChatOpenAI(
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
            api_key=settings.openai_api_key or None,
        )
        logger.info(f"LLM service initialized with model: {settings.openai_model}")
        return cls(
            llm=llm,
            model_name=settings.openai_model,
            supports_images=settings.llm_supports_images,
        )

    def count_tokens(self, text: str) -> int:
        """Number of model tokens in text."""
        if self._token_counter is not None:
            return self._token_counter(text)
        return self.llm.get_num_tokens(text)
