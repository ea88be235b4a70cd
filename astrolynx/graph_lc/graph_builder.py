"""Build and compile the LangGraph StateGraph for one conversation turn."""
from __future__ import annotations

import logging
from typing import Any

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.graph import END, START, StateGraph

from ..routing import (
    Route,
    route_after_answer,
    route_after_classify,
    route_after_output_translation,
    route_after_start,
)
from . import nodes
from .nodes import TurnServices
from .state import TurnState

logger = logging.getLogger(__name__)

AFTER_ANSWER = {
    Route.TRANSLATE_OUT: "translate_out",
    Route.SYNTHESIZE_AUDIO: "synthesize_audio",
    Route.END: END,
}


def _logged(name: str, route_fn):
    def route(s: TurnState) -> Route:
        decision = route_fn(s)
        logger.info("[Graph Router] %s -> %s", name, decision.value)
        return decision
    return route


def build_turn_graph(
    services: TurnServices,
    checkpointer: BaseCheckpointSaver | None = None,
) -> Any:
    """
    Start -> [translate_in] -> classify -> {simple_response | transform ->
    {parallel_retrieval, graph_retrieval} -> fuse -> assemble_context -> generate}
    -> [translate_out] -> [synthesize_audio] -> END
    """

    async def translate_in(s: TurnState):
        return await nodes.translate_in_node(s, services)

    async def classify(s: TurnState):
        return await nodes.classify_node(s, services)

    async def simple_response(s: TurnState):
        return await nodes.simple_response_node(s, services)

    async def transform(s: TurnState):
        return await nodes.transform_node(s, services)

    async def parallel_retrieval(s: TurnState):
        return await nodes.parallel_retrieval_node(s, services)

    async def graph_retrieval(s: TurnState):
        return await nodes.graph_retrieval_node(s, services)

    async def fuse(s: TurnState):
        return await nodes.fuse_node(s, services)

    async def assemble_context(s: TurnState):
        return await nodes.assemble_context_node(s, services)

    async def generate(s: TurnState):
        return await nodes.generate_node(s, services)

    async def translate_out(s: TurnState):
        return await nodes.translate_out_node(s, services)

    async def synthesize_audio(s: TurnState):
        return await nodes.synthesize_audio_node(s, services)

    workflow = StateGraph(TurnState)
    workflow.add_node("translate_in", translate_in)
    workflow.add_node("classify", classify)
    workflow.add_node("simple_response", simple_response)
    workflow.add_node("transform", transform)
    workflow.add_node("parallel_retrieval", parallel_retrieval)
    workflow.add_node("graph_retrieval", graph_retrieval)
    workflow.add_node("fuse", fuse)
    workflow.add_node("assemble_context", assemble_context)
    workflow.add_node("generate", generate)
    workflow.add_node("translate_out", translate_out)
    workflow.add_node("synthesize_audio", synthesize_audio)

    workflow.add_conditional_edges(
        START,
        _logged("start", route_after_start),
        {Route.TRANSLATE_IN: "translate_in", Route.CLASSIFY: "classify"},
    )
    workflow.add_edge("translate_in", "classify")
    workflow.add_conditional_edges(
        "classify",
        _logged("classify", route_after_classify),
        {Route.SIMPLE_RESPONSE: "simple_response", Route.TRANSFORM: "transform"},
    )
    workflow.add_conditional_edges("simple_response", _logged("simple_response", route_after_answer), AFTER_ANSWER)

    # Fan out, then join: fuse waits for both retrieval branches.
    workflow.add_edge("transform", "parallel_retrieval")
    workflow.add_edge("transform", "graph_retrieval")
    workflow.add_edge(["parallel_retrieval", "graph_retrieval"], "fuse")
    workflow.add_edge("fuse", "assemble_context")
    workflow.add_edge("assemble_context", "generate")
    workflow.add_conditional_edges("generate", _logged("generate", route_after_answer), AFTER_ANSWER)

    workflow.add_conditional_edges(
        "translate_out",
        _logged("translate_out", route_after_output_translation),
        {Route.SYNTHESIZE_AUDIO: "synthesize_audio", Route.END: END},
    )
    workflow.add_edge("synthesize_audio", END)

    return workflow.compile(checkpointer=checkpointer)
