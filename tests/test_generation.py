"""Unit tests for answer generation."""
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_core.runnables import RunnableLambda

from astrolynx.llm_service import LLMService
from astrolynx.rag.generation import GENERATION_FALLBACK, NO_CONTEXT, GenerationInvoker, build_messages, image_url
from astrolynx.rag.prompts import NO_CHAT_HISTORY
from tests.fakes import ScriptedLLM, make_llm_service, word_count

NAME = "AstroLynx"
DOMAIN = "MOSDAC satellite data"
HISTORY = [
    {"role": "user", "content": "What is INSAT-3D?"},
    {"role": "assistant", "content": "A meteorological satellite."},
]


class TestImageUrl:
    def test_bare_base64_wrapped(self):
        assert image_url("iVBORw0KGgo=") == "data:image/jpeg;base64,iVBORw0KGgo="

    @pytest.mark.parametrize("url", ["data:image/png;base64,AAAA", "https://example.org/cloud.png"])
    def test_urls_pass_through(self, url):
        assert image_url(url) == url


class TestBuildMessages:
    def test_system_and_user_turn(self):
        messages = build_messages("Q?", "some context", HISTORY, None, NAME, DOMAIN)
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert NAME in messages[0].content and DOMAIN in messages[0].content
        text = messages[1].content
        assert "some context" in text
        assert "User: What is INSAT-3D?\nAssistant: A meteorological satellite." in text
        assert text.index("Context:") < text.index("Chat History:") < text.index("Question:\nQ?")

    def test_empty_history_and_context_placeholders(self):
        text = build_messages("Q?", "", [], None, NAME, DOMAIN)[1].content
        assert NO_CHAT_HISTORY in text
        assert NO_CONTEXT in text

    def test_image_attached_as_second_part(self):
        content = build_messages("What is this?", "ctx", None, "AAAA", NAME, DOMAIN)[1].content
        assert content[0]["type"] == "text"
        assert content[1] == {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,AAAA"}}

    def test_image_dropped_when_not_supported(self):
        content = build_messages("What is this?", "ctx", None, "AAAA", NAME, DOMAIN, include_image=False)[1].content
        assert isinstance(content, str)


class TestGenerationInvoker:
    """One model call; errors give the fallback text instead of raising."""

    @pytest.mark.asyncio
    async def test_answer_stripped(self):
        llm = ScriptedLLM(answer="  INSAT-3D is a weather satellite.\n")
        invoker = GenerationInvoker(make_llm_service(llm), NAME, DOMAIN)
        assert await invoker.generate("What is INSAT-3D?", "ctx", HISTORY) == "INSAT-3D is a weather satellite."
        assert llm.kinds() == ["answer"]

    @pytest.mark.asyncio
    async def test_image_reaches_model(self):
        llm = ScriptedLLM()
        invoker = GenerationInvoker(make_llm_service(llm), NAME, DOMAIN)
        await invoker.generate("What is this?", "ctx", image="data:image/png;base64,AAAA")
        human = llm.inputs[0][1]
        assert human.content[1]["image_url"]["url"] == "data:image/png;base64,AAAA"

    @pytest.mark.asyncio
    async def test_image_ignored_for_text_only_model(self):
        llm = ScriptedLLM()
        invoker = GenerationInvoker(make_llm_service(llm, supports_images=False), NAME, DOMAIN)
        await invoker.generate("What is this?", "ctx", image="AAAA")
        assert isinstance(llm.inputs[0][1].content, str)

    @pytest.mark.asyncio
    async def test_model_error_returns_fallback(self):
        llm = ScriptedLLM(fail={"answer"})
        invoker = GenerationInvoker(make_llm_service(llm), NAME, DOMAIN)
        assert await invoker.generate("Q?", "ctx") == GENERATION_FALLBACK

    @pytest.mark.asyncio
    async def test_no_model_returns_fallback(self):
        assert await GenerationInvoker(None, NAME, DOMAIN).generate("Q?", "ctx") == GENERATION_FALLBACK

    @pytest.mark.asyncio
    async def test_content_parts_joined(self):
        llm = RunnableLambda(lambda _: AIMessage(content=[{"type": "text", "text": "Part one. "}, "Part two."]))
        service = LLMService(llm, token_counter=word_count)
        assert await GenerationInvoker(service, NAME, DOMAIN).generate("Q?", "ctx") == "Part one. Part two."
