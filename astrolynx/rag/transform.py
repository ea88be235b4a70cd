"""Query transformation: fan-out phrasings plus a hypothetical ideal answer (HyDE)."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..llm_service import LLMService
from .chains import build_json_chain
from .prompts import TRANSFORM_TEMPLATE

logger = logging.getLogger(__name__)

MAX_REWRITTEN_QUERIES = 5


class TransformationOutput(BaseModel):
    """Structured model output for query transformation."""
    rewritten_queries: list[str] = Field(default_factory=list)
    hypothetical_document: str = ""

    @field_validator("rewritten_queries", mode="before")
    @classmethod
    def _drop_null_queries(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [q for q in value if q is not None]
        return value

    @field_validator("hypothetical_document", mode="before")
    @classmethod
    def _null_document_is_empty(cls, value):
        return "" if value is None else value


@dataclass
class TransformResult:
    rewritten_queries: list[str] = field(default_factory=list)
    hypothetical_document: str = ""
    fan_out_queries: list[str] = field(default_factory=list)

    @classmethod
    def degraded(cls, question: str) -> "TransformResult":
        """Fallback: search with the original question only."""
        return cls(rewritten_queries=[], hypothetical_document=question, fan_out_queries=[question])


def build_fan_out(question: str, rewritten_queries: list[str], hypothetical_document: str) -> list[str]:
    """Original question, then the rewrites, then the hypothetical document when non-empty."""
    queries = [question, *rewritten_queries]
    if hypothetical_document:
        queries.append(hypothetical_document)
    return queries


class QueryTransformer:
    """Expands one question into the fan-out query set. Never raises."""

    def __init__(self, llm_service: LLMService | None):
        self._chain = None
        if llm_service is not None:
            self._chain = build_json_chain(llm_service.llm, TRANSFORM_TEMPLATE, TransformationOutput)

    async def transform(self, question: str) -> TransformResult:
        if self._chain is None:
            logger.warning("LLM not initialized for query transformation")
            return TransformResult.degraded(question)
        try:
            parsed = await self._chain.ainvoke({"question": question})
            output = TransformationOutput.model_validate(parsed)
        except ValidationError as e:
            logger.error(f"Malformed query transformation output: {e}")
            return TransformResult.degraded(question)
        except Exception as e:
            logger.error(f"Error during query transformation: {e}")
            return TransformResult.degraded(question)

        rewritten = [q.strip() for q in output.rewritten_queries if q and q.strip()]
        rewritten = rewritten[:MAX_REWRITTEN_QUERIES]
        hypothetical = output.hypothetical_document.strip()
        fan_out = build_fan_out(question, rewritten, hypothetical)
        logger.info("Generated %d queries for fan-out (hypothetical document: %s)", len(fan_out), bool(hypothetical))
        return TransformResult(
            rewritten_queries=rewritten,
            hypothetical_document=hypothetical,
            fan_out_queries=fan_out,
        )
