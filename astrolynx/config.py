"""Assistant service configuration."""
from functools import lru_cache

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.7
    openai_max_tokens: int = 2000
    openai_embedding_model: str = "text-embedding-3-small"
    # Set False for text-only models; attached images are then dropped.
    llm_supports_images: bool = True

    # ChromaDB
    chroma_persist_directory: str = "/data/chroma"
    chroma_collection_name: str = "mosdac_documents"

    # Retrieval
    retrieval_top_k: int = 5
    retrieval_timeout_seconds: float = 15.0

    # Neo4j knowledge graph
    neo4j_uri: str = ""
    neo4j_username: str = "neo4j"
    neo4j_password: str = ""
    neo4j_vector_index: str = "content_vector_index_object"
    graph_top_k: int = 5
    graph_relations_per_node: int = 10

    # Context assembly
    context_max_tokens: int = 4000
    context_min_chunk_chars: int = 20

    # Redis conversation log
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    memory_window_turns: int = 10
    session_ttl_seconds: int | None = None

    # Sarvam text-to-speech
    sarvam_api_key: str = ""
    sarvam_tts_url: str = "https://api.sarvam.ai/text-to-speech"
    tts_speaker: str = "vidya"
    tts_max_chars: int = 1500
    tts_timeout_seconds: float = 30.0

    # Assistant persona
    assistant_name: str = "AstroLynx"
    assistant_domain: str = (
        "MOSDAC (Meteorological & Oceanographic Satellite Data Archival Centre): "
        "satellite data, space missions, ISRO, Earth observation, weather and ocean products"
    )

    model_config = ConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
