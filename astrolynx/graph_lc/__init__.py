"""LangGraph orchestration for the conversational RAG turn."""

from .state import TurnState, ResetList, initial_state
from .nodes import TurnServices
from .graph_builder import build_turn_graph

__all__ = ["TurnState", "ResetList", "initial_state", "TurnServices", "build_turn_graph"]
