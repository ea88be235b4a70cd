"""Pydantic models for the assistant service."""
from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One entry of a conversation log."""
    role: Literal["user", "assistant"]
    content: str


class HistoryMessage(ChatMessage):
    """A persisted conversation message as shown to the client."""
    id: str
    timestamp: str


class TurnResult(BaseModel):
    """Outcome of one conversation turn."""
    session_id: str
    answer: str
    audio: str | None = Field(default=None, description="Base64 encoded speech of the answer")
    label: str | None = Field(default=None, description="Query classification that drove routing")
    timestamp: str


class ChatRequest(BaseModel):
    """Request model for /chat endpoint."""
    message: str = Field(..., min_length=1, description="User question")
    session_id: str | None = Field(default=None, description="Conversation id; generated when absent")
    image_data: str | None = Field(default=None, description="Optional image as base64 or data URL")
    audio_mode: bool = Field(default=False, description="Synthesize speech for the answer")
    target_language: str = Field(default="en", description="Language code for input and output")


class ChatResponse(BaseModel):
    """Response model for /chat endpoint."""
    reply: TurnResult
    session_id: str


class SessionCreateResponse(BaseModel):
    """Response model for POST /sessions."""
    session_id: str
    message: str


class HistoryResponse(BaseModel):
    """Response model for GET /sessions/{session_id}/history."""
    session_id: str
    history: list[HistoryMessage] = Field(default_factory=list)


class TTSRequest(BaseModel):
    """Request model for /tts endpoint."""
    text: str = Field(..., min_length=1)
    target_language: str = "en"
    speaker: str | None = None


class TTSResponse(BaseModel):
    """Response model for /tts endpoint."""
    audio_data: str


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str
    llm_ready: bool
    vector_store_ready: bool
    graph_ready: bool
    session_store_ready: bool
    speech_ready: bool
