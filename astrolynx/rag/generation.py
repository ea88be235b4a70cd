"""Final answer generation from context, recent history, question and optional image."""
from __future__ import annotations

import logging

from langchain_core.messages import HumanMessage, SystemMessage

from ..llm_service import LLMService
from .prompts import ANSWER_HUMAN_TEMPLATE, ANSWER_SYSTEM_PROMPT, format_chat_history

logger = logging.getLogger(__name__)

GENERATION_FALLBACK = "I apologize, but I encountered an error while generating a response."
NO_CONTEXT = "No context provided."


def image_url(image: str) -> str:
    """Data URLs and http(s) URLs pass through; bare base64 is wrapped as a JPEG data URL."""
    if image.startswith(("data:", "http://", "https://")):
        return image
    return f"data:image/jpeg;base64,{image}"


def build_messages(
    question: str,
    context: str,
    chat_history: list[dict] | None,
    image: str | None,
    assistant_name: str,
    domain: str,
    include_image: bool = True,
) -> list:
    """System instructions plus one user turn; an image becomes a second content part of that turn."""
    text = ANSWER_HUMAN_TEMPLATE.format(
        context=context or NO_CONTEXT,
        chat_history=format_chat_history(chat_history),
        question=question,
    )
    if image and include_image:
        content = [
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": image_url(image)}},
        ]
    else:
        content = text
    return [
        SystemMessage(content=ANSWER_SYSTEM_PROMPT.format(assistant_name=assistant_name, domain=domain)),
        HumanMessage(content=content),
    ]


class GenerationInvoker:
    """One model call per turn; failures return GENERATION_FALLBACK instead of raising."""

    def __init__(self, llm_service: LLMService | None, assistant_name: str, domain: str):
        self.llm_service = llm_service
        self.assistant_name = assistant_name
        self.domain = domain

    async def generate(
        self,
        question: str,
        context: str,
        chat_history: list[dict] | None = None,
        image: str | None = None,
    ) -> str:
        if self.llm_service is None:
            logger.error("LLM not initialized for answer generation")
            return GENERATION_FALLBACK
        include_image = self.llm_service.supports_images
        if image and not include_image:
            logger.info("Model does not accept images, ignoring attached image")
        messages = build_messages(
            question,
            context,
            chat_history,
            image,
            self.assistant_name,
            self.domain,
            include_image=include_image,
        )
        logger.info(f"Generating answer for question: {question[:100]}...")
        try:
            response = await self.llm_service.llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"Error generating answer: {e}")
            return GENERATION_FALLBACK
        answer = response.content if hasattr(response, "content") else str(response)
        if not isinstance(answer, str):
            answer = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in answer
            )
        answer = answer.strip()
        logger.info(f"Generated answer of {len(answer)} chars")
        return answer
