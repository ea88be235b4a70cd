"""Text-to-speech through the Sarvam AI HTTP API."""
from __future__ import annotations

import logging
from typing import Protocol

import httpx

from .config import Settings

logger = logging.getLogger(__name__)

# Map request language codes to Sarvam AI locale codes
SARVAM_LANGUAGE_MAP = {
    "en": "en-IN",
    "hi": "hi-IN",
    "hi-en": "hi-IN",
}
DEFAULT_LOCALE = "en-IN"


class SpeechAdapter(Protocol):
    async def synthesize(self, text: str, language: str, speaker: str | None = None) -> str | None: ...


def sarvam_locale(language: str | None) -> str:
    return SARVAM_LANGUAGE_MAP.get((language or "").strip().lower(), DEFAULT_LOCALE)


class SarvamSpeechClient:
    """SpeechAdapter returning base64 audio, or None when synthesis is not possible."""

    def __init__(
        self,
        api_key: str,
        url: str,
        speaker: str = "vidya",
        max_chars: int = 1500,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.speaker = speaker
        self.max_chars = max_chars
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SarvamSpeechClient":
        return cls(
            api_key=settings.sarvam_api_key,
            url=settings.sarvam_tts_url,
            speaker=settings.tts_speaker,
            max_chars=settings.tts_max_chars,
            timeout=settings.tts_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def synthesize(self, text: str, language: str, speaker: str | None = None) -> str | None:
        if not self.is_configured:
            logger.error("Sarvam AI API key is not configured")
            return None
        if not text:
            return None
        if len(text) > self.max_chars:
            logger.warning(f"Text exceeds {self.max_chars} character limit ({len(text)}), truncating for TTS")
            text = text[: self.max_chars]

        payload = {
            "text": text,
            "target_language_code": sarvam_locale(language),
            "speaker": speaker or self.speaker,
            "enable_preprocessing": True,
            "output_audio_codec": "mp3",
        }
        try:
            response = await self._client.post(
                self.url,
                json=payload,
                headers={"api-subscription-key": self.api_key},
            )
            response.raise_for_status()
            data = response.json()
            audios = (data.get("audios") if isinstance(data, dict) else None) or []
        except httpx.HTTPStatusError as e:
            logger.error(f"Sarvam AI TTS API error response {e.response.status_code}: {e.response.text[:200]}")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error converting text to speech: {e}")
            return None

        if not audios:
            logger.error("Sarvam AI TTS API did not return audio data")
            return None
        logger.info("Audio data generated successfully")
        return audios[0]

    async def aclose(self) -> None:
        await self._client.aclose()
