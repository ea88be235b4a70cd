"""End-to-end tests of the turn workflow through the Orchestrator (no network)."""
import asyncio

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from astrolynx.errors import ServiceUnavailableError
from astrolynx.language import LLMTranslator
from astrolynx.memory import ConversationMemory, InMemorySessionStore
from astrolynx.rag.context import NO_VECTOR_RESULTS, graph_section
from astrolynx.rag.graph_retrieval import GRAPH_UNAVAILABLE, GraphRetriever
from astrolynx.rag.orchestrator import Orchestrator
from tests.fakes import FakeGraphStore, FakeSpeech, FakeVectorSearch, ScriptedLLM, chunk, make_llm_service

DOC_TEXT = "INSAT-3D is a meteorological satellite carrying an imager and a sounder."
NODES = [{"nodeId": "4:x:1", "labels": ["Satellite"], "score": 0.9}]
RELATIONS = {"4:x:1": [{"relationType": "OPERATED_BY", "sourceName": "INSAT-3D", "targetName": "ISRO"}]}


def _question_of(prompt: str) -> str:
    return prompt.split("Question:\n", 1)[1].split("\n", 1)[0]


def _build(
    llm,
    settings,
    search=None,
    graph_store="default",
    speech=None,
    memory=None,
):
    service = make_llm_service(llm)
    if graph_store == "default":
        graph_store = FakeGraphStore(nodes=NODES, relations=RELATIONS)
    return Orchestrator(
        llm_service=service,
        vector_search=search if search is not None else FakeVectorSearch(default=[chunk(DOC_TEXT, "insat.pdf")]),
        memory=memory or ConversationMemory(InMemorySessionStore(), settings.memory_window_turns),
        graph_retriever=GraphRetriever(graph_store, DeterministicFakeEmbedding(size=8)),
        translator=LLMTranslator(service),
        speech=speech,
        settings=settings,
    )


class TestSimpleResponseBranch:
    """Greetings and out-of-scope questions never touch retrieval."""

    @pytest.mark.asyncio
    async def test_greeting_skips_retrieval(self, settings):
        llm = ScriptedLLM(label="greeting", greeting="Hello! I am AstroLynx.")
        search = FakeVectorSearch(default=[chunk(DOC_TEXT)])
        graph_store = FakeGraphStore(nodes=NODES, relations=RELATIONS)
        orchestrator = _build(llm, settings, search=search, graph_store=graph_store)

        result = await orchestrator.handle_turn("Hi", session_id="s-greet")

        assert result.answer == "Hello! I am AstroLynx."
        assert result.label == "greeting"
        assert result.audio is None
        assert search.queries == []
        assert graph_store.relation_calls == []
        assert llm.kinds() == ["classify", "greeting"]

    @pytest.mark.asyncio
    async def test_other_gets_redirect(self, settings):
        llm = ScriptedLLM(label="other", redirect="I only cover satellite data.")
        search = FakeVectorSearch()
        result = await _build(llm, settings, search=search).handle_turn("How do I bake a cake?")
        assert result.answer == "I only cover satellite data."
        assert result.label == "other"
        assert search.queries == []

    @pytest.mark.asyncio
    async def test_classifier_failure_routes_to_simple_response(self, settings):
        llm = ScriptedLLM(fail={"classify"}, redirect="Out of scope.")
        search = FakeVectorSearch()
        result = await _build(llm, settings, search=search).handle_turn("Tell me about INSAT-3D")
        assert result.label == "other"
        assert result.answer == "Out of scope."
        assert search.queries == []


class TestRetrievalBranch:
    """Domain questions: transform, parallel vector + graph retrieval, fuse, assemble, generate."""

    @pytest.mark.asyncio
    async def test_domain_question_full_branch(self, settings):
        llm = ScriptedLLM(rewrites=("INSAT-3D overview",), hypothetical="INSAT-3D is a weather satellite.")
        search = FakeVectorSearch(default=[chunk(DOC_TEXT, "insat.pdf")])
        orchestrator = _build(llm, settings, search=search)

        result = await orchestrator.handle_turn("What is INSAT-3D?", session_id="s-domain")

        assert result.label == "domain"
        assert result.answer == "INSAT-3D is a meteorological satellite operated by ISRO."
        assert llm.kinds() == ["classify", "transform", "answer"]
        assert sorted(search.queries) == sorted(
            ["What is INSAT-3D?", "INSAT-3D overview", "INSAT-3D is a weather satellite."]
        )
        answer_prompt = llm.prompts("answer")[0]
        assert DOC_TEXT in answer_prompt
        assert "INSAT-3D --> OPERATED_BY --> ISRO" in answer_prompt

        state = await orchestrator.last_checkpoint("s-domain")
        assert len(state["raw_result_lists"]) == 3
        assert len(state["fused_documents"]) == 1
        assert state["assembled_context"].startswith("Vector Search Results:")

    @pytest.mark.asyncio
    async def test_translation_and_audio(self, settings):
        """Input translated before classify; output translated after generate; audio spoken last."""
        llm = ScriptedLLM(english="What is INSAT-3D?", translated="INSAT-3D ek mausam satellite hai.")
        speech = FakeSpeech(audio="QVVESU8=")
        memory = ConversationMemory(InMemorySessionStore())
        orchestrator = _build(llm, settings, speech=speech, memory=memory)

        result = await orchestrator.handle_turn(
            "INSAT-3D kya hai?",
            session_id="s-hi",
            audio_requested=True,
            target_language="hi",
        )

        assert llm.kinds() == ["to_english", "classify", "transform", "answer", "to_target"]
        assert "Question: What is INSAT-3D?" in llm.prompts("classify")[0]
        assert result.answer == "INSAT-3D ek mausam satellite hai."
        assert speech.calls == [("INSAT-3D ek mausam satellite hai.", "hi")]
        assert result.audio == "QVVESU8="

        # The log keeps what the user typed and what the user was shown.
        history = await memory.history("s-hi")
        assert [m["content"] for m in history] == ["INSAT-3D kya hai?", "INSAT-3D ek mausam satellite hai."]

    @pytest.mark.asyncio
    async def test_audio_for_english_answer(self, settings):
        llm = ScriptedLLM()
        speech = FakeSpeech()
        result = await _build(llm, settings, speech=speech).handle_turn("What is INSAT-3D?", audio_requested=True)
        assert speech.calls == [(result.answer, "en")]
        assert "to_target" not in llm.kinds()

    @pytest.mark.asyncio
    async def test_audio_requested_without_speech_service(self, settings):
        result = await _build(ScriptedLLM(), settings).handle_turn("What is INSAT-3D?", audio_requested=True)
        assert result.audio is None
        assert result.answer

    @pytest.mark.asyncio
    async def test_vector_store_failure_degrades(self, settings):
        """Every fan-out query fails: context is the no-results placeholder plus the graph section."""
        llm = ScriptedLLM()
        search = FakeVectorSearch(fail_all=True)
        orchestrator = _build(llm, settings, search=search)

        result = await orchestrator.handle_turn("What is INSAT-3D?", session_id="s-degraded")

        state = await orchestrator.last_checkpoint("s-degraded")
        assert state["fused_documents"] == []
        assert "INSAT-3D --> OPERATED_BY --> ISRO" in state["graph_summary"]
        assert state["assembled_context"] == NO_VECTOR_RESULTS + graph_section(state["graph_summary"])
        assert result.answer == "INSAT-3D is a meteorological satellite operated by ISRO."

    @pytest.mark.asyncio
    async def test_graph_unavailable_still_answers(self, settings):
        llm = ScriptedLLM()
        orchestrator = _build(llm, settings, graph_store=None)
        result = await orchestrator.handle_turn("What is INSAT-3D?", session_id="s-nograph")
        state = await orchestrator.last_checkpoint("s-nograph")
        assert state["graph_summary"] == GRAPH_UNAVAILABLE
        assert DOC_TEXT in state["assembled_context"]
        assert result.answer

    @pytest.mark.asyncio
    async def test_generation_failure_returns_fallback(self, settings):
        llm = ScriptedLLM(fail={"answer"})
        result = await _build(llm, settings).handle_turn("What is INSAT-3D?")
        assert result.answer.startswith("I apologize")

    @pytest.mark.asyncio
    async def test_image_passed_to_generation(self, settings):
        llm = ScriptedLLM()
        await _build(llm, settings).handle_turn("What does this image show?", image="data:image/png;base64,AAAA")
        human = llm.inputs[-1][1]
        assert human.content[1]["image_url"]["url"] == "data:image/png;base64,AAAA"


class TestSessions:
    """Session id handling, history window and log append."""

    @pytest.mark.asyncio
    async def test_session_id_generated_when_missing(self, settings):
        result = await _build(ScriptedLLM(), settings).handle_turn("What is INSAT-3D?")
        assert result.session_id
        assert result.timestamp

    @pytest.mark.asyncio
    async def test_prior_turns_reach_the_prompt(self, settings):
        llm = ScriptedLLM()
        orchestrator = _build(llm, settings)
        await orchestrator.handle_turn("What is INSAT-3D?", session_id="s-multi")
        await orchestrator.handle_turn("Who operates it?", session_id="s-multi")

        second_prompt = llm.prompts("answer")[1]
        assert "User: What is INSAT-3D?" in second_prompt
        assert "Assistant: INSAT-3D is a meteorological satellite operated by ISRO." in second_prompt

    @pytest.mark.asyncio
    async def test_checkpoint_does_not_accumulate_history(self, settings):
        """Each turn starts from its own window, not the previous checkpoint's history."""
        orchestrator = _build(ScriptedLLM(), settings)
        for question in ["q one", "q two", "q three"]:
            await orchestrator.handle_turn(question, session_id="s-window")
        state = await orchestrator.last_checkpoint("s-window")
        assert [m["content"] for m in state["chat_history"]][::2] == ["q one", "q two"]

    @pytest.mark.asyncio
    async def test_fields_reset_between_turns(self, settings):
        llm = ScriptedLLM()
        orchestrator = _build(llm, settings)
        await orchestrator.handle_turn("What is INSAT-3D?", session_id="s-reset")
        llm.replies["classify"] = "greeting"
        await orchestrator.handle_turn("Thanks, bye!", session_id="s-reset")
        state = await orchestrator.last_checkpoint("s-reset")
        assert state["fused_documents"] == []
        assert state["assembled_context"] == ""

    @pytest.mark.asyncio
    async def test_concurrent_turns_same_session(self, settings):
        """Both turns are appended, each question next to its own answer."""
        llm = ScriptedLLM(answer=lambda prompt: f"Answer to {_question_of(prompt)}")
        memory = ConversationMemory(InMemorySessionStore())
        orchestrator = _build(llm, settings, memory=memory)

        await asyncio.gather(
            orchestrator.handle_turn("What is INSAT-3D?", session_id="s-concurrent"),
            orchestrator.handle_turn("What is OCEANSAT-2?", session_id="s-concurrent"),
        )

        history = await memory.history("s-concurrent")
        assert len(history) == 4
        pairs = {(history[i]["content"], history[i + 1]["content"]) for i in (0, 2)}
        assert pairs == {
            ("What is INSAT-3D?", "Answer to What is INSAT-3D?"),
            ("What is OCEANSAT-2?", "Answer to What is OCEANSAT-2?"),
        }

    @pytest.mark.asyncio
    async def test_history_load_failure_degrades(self, settings):
        class BrokenStore(InMemorySessionStore):
            async def load_window(self, session_id, n):
                raise ConnectionError("redis down")

        memory = ConversationMemory(BrokenStore())
        result = await _build(ScriptedLLM(), settings, memory=memory).handle_turn("What is INSAT-3D?", session_id="s1")
        assert result.answer
        assert len(await memory.history("s1")) == 2

    @pytest.mark.asyncio
    async def test_last_checkpoint_unknown_session(self, settings):
        assert await _build(ScriptedLLM(), settings).last_checkpoint("never-used") == {}


class TestPreconditions:
    @pytest.mark.asyncio
    async def test_missing_services_raise(self, settings):
        orchestrator = Orchestrator(None, None, None, settings=settings)
        with pytest.raises(ServiceUnavailableError) as exc:
            await orchestrator.handle_turn("What is INSAT-3D?")
        assert exc.value.missing == ["generative model", "vector store", "session store"]

    @pytest.mark.asyncio
    async def test_blank_question_rejected(self, settings):
        with pytest.raises(ValueError):
            await _build(ScriptedLLM(), settings).handle_turn("   ")
