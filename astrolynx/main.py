"""Assistant service - FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from langchain_openai import OpenAIEmbeddings

from .chroma_client import get_chroma_client
from .config import get_settings
from .errors import ServiceUnavailableError
from .graph_store import Neo4jGraphStore
from .language import LLMTranslator
from .llm_service import LLMService
from .memory import ConversationMemory, RedisSessionStore, new_session_id
from .models import (
    ChatRequest, ChatResponse, HealthResponse, HistoryMessage, HistoryResponse,
    SessionCreateResponse, TTSRequest, TTSResponse,
)
from .rag.graph_retrieval import GraphRetriever
from .rag.orchestrator import Orchestrator
from .rag.retrieval import ChromaVectorSearch
from .speech import SarvamSpeechClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Global service instances
orchestrator: Orchestrator | None = None
memory: ConversationMemory | None = None
speech_client: SarvamSpeechClient | None = None
graph_store: Neo4jGraphStore | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global orchestrator, memory, speech_client, graph_store

    logger.info("Starting assistant service...")
    settings = get_settings()

    llm_service = None
    embeddings = None
    vector_search = None
    if settings.openai_api_key:
        llm_service = LLMService.from_settings(settings)
        embeddings = OpenAIEmbeddings(model=settings.openai_embedding_model, api_key=settings.openai_api_key)
        vector_search = ChromaVectorSearch(get_chroma_client(), settings.chroma_collection_name, embeddings)
    else:
        logger.error("OPENAI_API_KEY not set: model, embeddings and vector store unavailable")

    if settings.neo4j_uri:
        graph_store = Neo4jGraphStore.from_settings(settings)
        try:
            await graph_store.verify()
            logger.info("Neo4j driver connected successfully")
        except Exception as e:
            logger.error(f"Failed to connect to Neo4j, graph retrieval disabled: {e}")
            await graph_store.close()
            graph_store = None
    else:
        logger.warning("NEO4J_URI not set: graph retrieval disabled")

    memory = ConversationMemory(RedisSessionStore.from_settings(settings), settings.memory_window_turns)

    if settings.sarvam_api_key:
        speech_client = SarvamSpeechClient.from_settings(settings)
    else:
        logger.warning("SARVAM_API_KEY not set: speech synthesis disabled")

    orchestrator = Orchestrator(
        llm_service=llm_service,
        vector_search=vector_search,
        memory=memory,
        graph_retriever=GraphRetriever(
            graph_store,
            embeddings,
            top_k=settings.graph_top_k,
            relations_per_node=settings.graph_relations_per_node,
        ),
        translator=LLMTranslator(llm_service),
        speech=speech_client,
        settings=settings,
    )
    logger.info("Assistant service started")

    yield

    logger.info("Shutting down assistant service...")
    if speech_client is not None:
        await speech_client.aclose()
    if graph_store is not None:
        await graph_store.close()


# Create FastAPI app
app = FastAPI(
    title="AstroLynx Assistant Service",
    description="Conversational RAG over a vector index and a knowledge graph",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    missing = orchestrator.missing_services() if orchestrator else ["generative model", "vector store", "session store"]
    graph_ready = bool(
        orchestrator
        and orchestrator.services.graph_retriever
        and orchestrator.services.graph_retriever.is_available
    )
    return HealthResponse(
        status="healthy" if not missing else "degraded",
        llm_ready="generative model" not in missing,
        vector_store_ready="vector store" not in missing,
        graph_ready=graph_ready,
        session_store_ready="session store" not in missing,
        speech_ready=speech_client is not None,
    )


@app.post("/sessions", response_model=SessionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_session():
    """Create a new conversation id."""
    session_id = new_session_id()
    logger.info(f"New session ID generated: {session_id}")
    return SessionCreateResponse(session_id=session_id, message="New chat session created successfully.")


@app.get("/sessions/{session_id}/history", response_model=HistoryResponse)
async def get_chat_history(session_id: str):
    """Full conversation log of a session."""
    if not memory:
        raise HTTPException(status_code=503, detail="Session store not initialized")
    try:
        messages = await memory.history(session_id)
    except Exception as e:
        logger.error(f"Error retrieving chat history for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve chat history")
    return HistoryResponse(
        session_id=session_id,
        history=[HistoryMessage(**m) for m in messages],
    )


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """Answer one conversation turn."""
    if not orchestrator:
        raise HTTPException(status_code=503, detail="Services not initialized")
    if request.image_data:
        logger.info(f"Received image data (length: {len(request.image_data)}) in chat request")
    try:
        result = await orchestrator.handle_turn(
            question=request.message,
            session_id=request.session_id,
            image=request.image_data,
            audio_requested=request.audio_mode,
            target_language=request.target_language,
        )
    except ServiceUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error processing chat message: {e}")
        raise HTTPException(status_code=500, detail="Failed to process your request")
    return ChatResponse(reply=result, session_id=result.session_id)


@app.post("/tts", response_model=TTSResponse)
async def text_to_speech(request: TTSRequest):
    """Standalone text-to-speech conversion."""
    if not speech_client:
        raise HTTPException(status_code=503, detail="Text-to-Speech service is not configured")
    audio = await speech_client.synthesize(request.text, request.target_language, request.speaker)
    if not audio:
        raise HTTPException(status_code=502, detail="Failed to convert text to speech")
    return TTSResponse(audio_data=audio)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "AstroLynx Assistant Service",
        "version": "1.0.0",
        "status": "running",
        "endpoints": ["/health", "/sessions", "/sessions/{session_id}/history", "/chat", "/tts"],
    }
