"""Knowledge graph retrieval: semantic node search, one-hop expansion, text rendering.
The summary is always present; failures become one of the sentinels below.
"""
from __future__ import annotations

import logging
from typing import Any

from langchain_core.embeddings import Embeddings

from ..graph_store import GraphStore

logger = logging.getLogger(__name__)

GRAPH_UNAVAILABLE = "No knowledge graph data available: graph database or embeddings not initialized."
GRAPH_NO_MATCHES = "No relevant semantic nodes found in the knowledge graph."
GRAPH_ERROR_PREFIX = "Error retrieving semantic relations from the knowledge graph"

GRAPH_HEADER = "Knowledge Graph Semantic Relations Retrieved:"


def is_graph_sentinel(summary: str | None) -> bool:
    """True for the no-data outcomes of graph retrieval (including blank)."""
    if not summary or not summary.strip():
        return True
    return summary in (GRAPH_UNAVAILABLE, GRAPH_NO_MATCHES) or summary.startswith(GRAPH_ERROR_PREFIX)


def _format_labels(labels: Any) -> str:
    if isinstance(labels, (list, tuple)):
        return ", ".join(str(label) for label in labels) or "None"
    return str(labels) if labels else "None"


def render_graph_summary(nodes: list[dict], relations: list[list[dict]]) -> str:
    """Per node: rank, id, labels, score, then its triples as `source --> TYPE --> target`."""
    lines = [GRAPH_HEADER]
    for rank, (node, triples) in enumerate(zip(nodes, relations), start=1):
        lines.append("")
        lines.append(
            f"{rank}) Node ID: {node.get('nodeId')}, "
            f"Labels: {_format_labels(node.get('labels'))}, "
            f"Score: {node.get('score')}"
        )
        if not triples:
            lines.append("   No relations found.")
            continue
        for triple in triples:
            lines.append(
                f"   {triple.get('sourceName', 'Unknown')} --> "
                f"{triple.get('relationType', 'RELATED_TO')} --> "
                f"{triple.get('targetName', 'Unknown')}"
            )
    return "\n".join(lines) + "\n"


class GraphRetriever:
    """Embeds the question, finds nearest graph nodes and summarizes their relations."""

    def __init__(
        self,
        graph_store: GraphStore | None,
        embeddings: Embeddings | None,
        top_k: int = 5,
        relations_per_node: int = 10,
    ):
        self.graph_store = graph_store
        self.embeddings = embeddings
        self.top_k = top_k
        self.relations_per_node = relations_per_node

    @property
    def is_available(self) -> bool:
        return self.graph_store is not None and self.embeddings is not None

    async def retrieve(self, question: str) -> str:
        if not self.is_available:
            logger.warning("Graph store or embeddings not initialized, skipping graph retrieval")
            return GRAPH_UNAVAILABLE
        try:
            embedding = await self.embeddings.aembed_query(question)
            nodes = await self.graph_store.semantic_query(embedding, self.top_k)
            if not nodes:
                logger.info("No relevant nodes found in graph semantic search")
                return GRAPH_NO_MATCHES
            relations = []
            for node in nodes:
                triples = await self.graph_store.relations(node.get("nodeId"), limit=self.relations_per_node)
                relations.append(list(triples)[: self.relations_per_node])
        except Exception as e:
            logger.error(f"Error during graph semantic retrieval: {e}")
            return f"{GRAPH_ERROR_PREFIX}: {e}"
        summary = render_graph_summary(nodes, relations)
        logger.info("Graph retrieval rendered %d nodes", len(nodes))
        return summary
