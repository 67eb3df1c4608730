"""FastAPI server for the parola word game."""

import logging
import os

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from core.game import GameSession, RoundEnded, Transition
from core.lexicon import default_lexicon
from core.speech import SpeechDelivery, SpeechCache
from core.config import UI_LANGUAGES, PRIMARY_LANGUAGE, SECONDARY_LANGUAGE

from server.audio import SoundDevicePlayer, SoundEffects
from server.file_storage import FileStorage
from server.gemini_provider import GeminiSpeechProvider
from server.local_speech import Pyttsx3SpeechEngine
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class GuessRequest(BaseModel):
    letter: str


class SpeakRequest(BaseModel):
    text: str
    language: str = PRIMARY_LANGUAGE


class SettingsUpdate(BaseModel):
    language: Optional[str] = None
    theme: Optional[str] = None
    sfx_enabled: Optional[bool] = None
    audio_enabled: Optional[bool] = None


class SettingsResponse(BaseModel):
    language: str
    theme: str
    sfx_enabled: bool
    audio_enabled: bool


class StatusResponse(BaseModel):
    round: dict
    progress: dict
    progress_display: str
    settings: SettingsResponse


class ActionResponse(StatusResponse):
    outcome: str
    stars: Optional[int] = None


class SpeakResponse(BaseModel):
    queued: bool


# Global state, filled in at startup
storage = None
speech: SpeechDelivery = None
session: GameSession = None


app = FastAPI(title="Parola API", description="Italian vocabulary guessing game API")


@app.on_event("startup")
async def startup():
    """Initialize storage, speech and the game session on startup."""
    global storage, speech, session

    # File storage by default, set PAROLA_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('PAROLA_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        print("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        print("Using file storage")

    # Get API key from environment variable first, then fall back to config file
    api_key = os.environ.get('GEMINI_API_KEY')
    if not api_key:
        try:
            config = storage.load_config()
            api_key = config.get('gemini_api_key')
        except FileNotFoundError:
            pass

    provider = None
    if api_key:
        provider = GeminiSpeechProvider(api_key)
        print(f"Speech provider initialized: {provider.model_name}")
    else:
        logger.warning(
            "GEMINI_API_KEY not set and no config file found, "
            "words will be spoken by the local engine only"
        )

    player = SoundDevicePlayer()
    if not player.is_available():
        player = None

    speech = SpeechDelivery(
        local_engine=Pyttsx3SpeechEngine(),
        player=player,
        provider=provider,
        cache=SpeechCache(storage)
    )
    effects = SoundEffects(player) if player is not None else None
    session = GameSession(default_lexicon(), storage=storage, speech=speech, effects=effects)


def get_session() -> GameSession:
    if session is None:
        raise HTTPException(status_code=503, detail="Game session not initialized")
    return session


def action_response(result: Transition) -> ActionResponse:
    stars = None
    for event in result.events:
        if isinstance(event, RoundEnded):
            stars = event.stars
    return ActionResponse(
        **get_session().status(),
        outcome=result.outcome.value,
        stars=stars
    )


@app.get("/")
async def root():
    """Health check."""
    return {"service": "parola", "status": "ok"}


@app.get("/api/status", response_model=StatusResponse)
async def get_status():
    """Get the current round, progress and settings."""
    return StatusResponse(**get_session().status())


@app.post("/api/round", response_model=ActionResponse)
async def start_round():
    """Start the next round, abandoning any unresolved one."""
    return action_response(get_session().start_round())


@app.post("/api/guess", response_model=ActionResponse)
async def guess_letter(request: GuessRequest):
    """Guess one letter. Invalid input leaves the state unchanged."""
    return action_response(get_session().guess(request.letter))


@app.post("/api/hint", response_model=ActionResponse)
async def use_hint():
    """Use the next hint level."""
    return action_response(get_session().hint())


@app.post("/api/reset", response_model=ActionResponse)
async def reset_progress():
    """Wipe progress and return to an idle round."""
    return action_response(get_session().reset())


@app.get("/api/settings", response_model=SettingsResponse)
async def get_settings():
    return SettingsResponse(**get_session().settings.to_dict())


@app.put("/api/settings", response_model=SettingsResponse)
async def update_settings(request: SettingsUpdate):
    """Update settings. Unknown languages or themes are rejected."""
    if request.language is not None and request.language not in UI_LANGUAGES:
        raise HTTPException(status_code=400, detail=f"Unsupported language: {request.language}")
    if request.theme is not None and request.theme not in ('light', 'dark'):
        raise HTTPException(status_code=400, detail=f"Unsupported theme: {request.theme}")
    settings = get_session().update_settings(**request.model_dump(exclude_none=True))
    return SettingsResponse(**settings.to_dict())


@app.post("/api/speak", response_model=SpeakResponse)
async def speak(request: SpeakRequest):
    """Queue a one-off utterance in either language."""
    if request.language not in (PRIMARY_LANGUAGE, SECONDARY_LANGUAGE):
        raise HTTPException(status_code=400, detail=f"Unsupported language: {request.language}")
    get_session().say(request.text, request.language)
    return SpeakResponse(queued=True)


@app.get("/api/stats")
async def get_speech_stats():
    """Remote speech usage and cache statistics."""
    current = get_session().speech
    if current is None:
        return {"speech": None}
    provider = current.provider
    return {
        "speech": {
            "remote_calls": current.remote_calls,
            "quota_exhausted": current.breaker.is_open,
            "memory_cache_entries": len(current.cache),
            "provider": provider.get_stats() if provider is not None else None
        }
    }


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
