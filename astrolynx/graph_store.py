"""Neo4j knowledge graph access: vector-index node search and one-hop relations."""
from __future__ import annotations

import logging
from typing import Any, Protocol

from neo4j import AsyncDriver, AsyncGraphDatabase

from .config import Settings

logger = logging.getLogger(__name__)

SEMANTIC_QUERY = """
CALL db.index.vector.queryNodes($index_name, $k, $embedding)
YIELD node, score
RETURN elementId(node) AS nodeId, labels(node) AS labels, score
"""

RELATIONS_QUERY = """
MATCH (n)-[r]-(m)
WHERE elementId(n) = $node_id
RETURN
  type(r) AS relationType,
  labels(n) AS sourceLabels,
  coalesce(n.name, n.title, n.id, "Unknown") AS sourceName,
  labels(m) AS targetLabels,
  coalesce(m.name, m.title, m.id, "Unknown") AS targetName
LIMIT $limit
"""


class GraphStore(Protocol):
    async def semantic_query(self, embedding: list[float], k: int) -> list[dict[str, Any]]: ...

    async def relations(self, node_id: str, limit: int = 10) -> list[dict[str, Any]]: ...


class Neo4jGraphStore:
    """GraphStore over an async Neo4j driver. The driver is safe to share across turns."""

    def __init__(self, driver: AsyncDriver, index_name: str):
        self.driver = driver
        self.index_name = index_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "Neo4jGraphStore":
        driver = AsyncGraphDatabase.driver(
            settings.neo4j_uri,
            auth=(settings.neo4j_username, settings.neo4j_password),
        )
        logger.info(f"Neo4j driver created for {settings.neo4j_uri}")
        return cls(driver, settings.neo4j_vector_index)

    async def semantic_query(self, embedding: list[float], k: int) -> list[dict[str, Any]]:
        """Top-k nodes nearest to embedding: [{nodeId, labels, score}]."""
        async with self.driver.session() as session:
            result = await session.run(
                SEMANTIC_QUERY,
                index_name=self.index_name,
                k=k,
                embedding=embedding,
            )
            return await result.data()

    async def relations(self, node_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Up to `limit` triples adjacent to node_id."""
        async with self.driver.session() as session:
            result = await session.run(RELATIONS_QUERY, node_id=node_id, limit=limit)
            return await result.data()

    async def verify(self) -> None:
        await self.driver.verify_connectivity()

    async def close(self) -> None:
        await self.driver.close()
