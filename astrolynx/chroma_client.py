"""Process-wide ChromaDB client backing the vector search handle.

The index is built outside this service; here the collection is only searched.
"""
from __future__ import annotations

import logging
from pathlib import Path

import chromadb
from chromadb.config import Settings as ChromaSettings

from .config import get_settings

logger = logging.getLogger(__name__)

_chroma_client: chromadb.ClientAPI | None = None


def get_chroma_client() -> chromadb.ClientAPI:
    """Open the persisted index once; every ChromaVectorSearch shares this client."""
    global _chroma_client
    if _chroma_client is None:
        persist_dir = Path(get_settings().chroma_persist_directory)
        persist_dir.mkdir(parents=True, exist_ok=True)
        _chroma_client = chromadb.PersistentClient(
            path=str(persist_dir),
            settings=ChromaSettings(anonymized_telemetry=False),
        )
        logger.info("Chroma index opened for search at %s", persist_dir)
    return _chroma_client
