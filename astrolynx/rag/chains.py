"""LCEL Runnables: prompt | llm | parser builders shared by the turn components."""
from __future__ import annotations

from typing import Any

from langchain_core.output_parsers import JsonOutputParser, StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable


def build_text_chain(llm: Runnable, template: str, **partials: Any) -> Runnable:
    """Single human-message prompt piped into llm and parsed to a plain string."""
    prompt = ChatPromptTemplate.from_messages([("human", template)])
    if partials:
        prompt = prompt.partial(**partials)
    return prompt | llm | StrOutputParser()


def build_json_chain(llm: Runnable, template: str, pydantic_object: type | None = None, **partials: Any) -> Runnable:
    """Single human-message prompt piped into llm and parsed as JSON (fenced or bare)."""
    prompt = ChatPromptTemplate.from_messages([("human", template)])
    if partials:
        prompt = prompt.partial(**partials)
    return prompt | llm | JsonOutputParser(pydantic_object=pydantic_object)
