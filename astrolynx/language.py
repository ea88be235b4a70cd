"""Input/output translation through the generative model."""
from __future__ import annotations

import logging
from typing import Protocol

from .llm_service import LLMService
from .rag.chains import build_text_chain
from .rag.prompts import TO_ENGLISH_TEMPLATE, TO_HINGLISH_TEMPLATE, TO_TARGET_TEMPLATE
from .routing import needs_translation

logger = logging.getLogger(__name__)

HINGLISH = "hi-en"


class LanguageAdapter(Protocol):
    async def to_english(self, text: str, source_language: str) -> str: ...

    async def to_target(self, text: str, target_language: str) -> str: ...


class LLMTranslator:
    """
    LanguageAdapter backed by prompt | llm chains.
    Identity for English; on any failure the input text is returned unchanged.
    """

    def __init__(self, llm_service: LLMService | None):
        self._to_english = None
        self._to_target = None
        self._to_hinglish = None
        if llm_service is not None:
            self._to_english = build_text_chain(llm_service.llm, TO_ENGLISH_TEMPLATE)
            self._to_target = build_text_chain(llm_service.llm, TO_TARGET_TEMPLATE)
            self._to_hinglish = build_text_chain(llm_service.llm, TO_HINGLISH_TEMPLATE)

    async def to_english(self, text: str, source_language: str) -> str:
        if not needs_translation(source_language) or not text:
            return text
        if self._to_english is None:
            logger.error("LLM not initialized for translation to English")
            return text
        try:
            translated = await self._to_english.ainvoke(
                {"source_language": source_language, "text_to_translate": text}
            )
        except Exception as e:
            logger.error(f"Error during translation to English: {e}")
            return text
        logger.info(f"Translated to English: {translated[:50]!r}...")
        return translated.strip() or text

    async def to_target(self, text: str, target_language: str) -> str:
        if not needs_translation(target_language) or not text:
            return text
        chain = self._to_hinglish if target_language.strip().lower() == HINGLISH else self._to_target
        if chain is None:
            logger.error(f"LLM not initialized for translation to {target_language}")
            return text
        try:
            translated = await chain.ainvoke({"target_language": target_language, "text_to_translate": text})
        except Exception as e:
            logger.error(f"Error during translation to {target_language}: {e}")
            return text
        logger.info(f"Translated to {target_language}: {translated[:50]!r}...")
        return translated.strip() or text
