"""
HTTP API adapter for the VoiceSketch engine.

Architectural role:
- Expose transcript parsing and artwork generation over HTTP.
- Enforce adapter-level input validation.
- Delegate parsing/generation to `voicesketch.nlp` and `voicesketch.core.engine`.
- Map the core error taxonomy to HTTP status codes.

Endpoint responsibilities:
- `GET /v1/styles`: list the art style catalog.
- `POST /v1/commands/parse`: classify a transcript without side effects.
- `POST /v1/artworks`: generate from a transcript, or from prompt + style.
- `GET /v1/artworks`: list stored artworks, newest first.

Input validation behavior:
- Neither `transcript` nor `prompt` -> HTTP 400.
- Unknown `style` or `quality` -> HTTP 400.

Error handling strategy:
- `VoiceSketchError` is rendered as `{"error": {kind, message, recovery_suggestion}}`
  with a status from `ERROR_STATUS_CODES`.
- Other exceptions follow FastAPI default handling.

Side effects:
- The runtime (cache directory, store document) is built lazily on the first
  request that needs it, unless one is passed to `create_app`.
"""

from dotenv import load_dotenv

load_dotenv()

import base64
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from voicesketch.api.runtime import Runtime, build_runtime
from voicesketch.core.errors import ErrorKind, VoiceSketchError
from voicesketch.core.models import Artwork, ImageQuality
from voicesketch.core.styles import ArtStyle
from voicesketch.image import provider_config
from voicesketch.nlp.intent_parser import parse


logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.VOICE_PERMISSION_DENIED: 400,
    ErrorKind.VOICE_RECOGNITION_FAILED: 400,
    ErrorKind.INVALID_PROMPT: 400,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.NETWORK_TIMEOUT: 504,
    ErrorKind.API_ERROR: 502,
    ErrorKind.IMAGE_PROCESSING_FAILED: 502,
    ErrorKind.SAVE_FAILED: 500,
}


# ============================================================
# Request Schemas
# ============================================================

class ParseRequest(BaseModel):
    transcript: str


class GenerateRequest(BaseModel):
    """
    Generation payload.

    Either `transcript` (voice flow) or `prompt` (typed flow) is required.
    `style` applies to the typed flow only; the voice flow extracts its own.
    """
    transcript: str | None = None
    prompt: str | None = None
    style: str | None = None
    quality: str | None = None


# ============================================================
# Serialization Helpers
# ============================================================

def serialize_artwork(artwork: Artwork) -> dict:
    """Artwork as JSON; thumbnail bytes are base64-encoded."""
    metadata = artwork.metadata
    return {
        "id": artwork.id,
        "prompt": artwork.prompt,
        "original_prompt": artwork.original_prompt,
        "image_url": artwork.image_url,
        "style": artwork.style.value,
        "created_at": artwork.created_at.isoformat(),
        "modified_at": artwork.modified_at.isoformat(),
        "is_favorite": artwork.is_favorite,
        "tags": artwork.tags,
        "edit_history": [record.to_dict() for record in artwork.edit_history],
        "thumbnail": (
            base64.b64encode(artwork.thumbnail_data).decode("ascii")
            if artwork.thumbnail_data
            else None
        ),
        "metadata": {
            "provider": metadata.provider.value,
            "model": metadata.model,
            "seed": metadata.seed,
            "generation_time_ms": metadata.generation_time_ms,
            "cost": str(metadata.cost) if metadata.cost is not None else None,
        } if metadata else None,
    }


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": {"kind": "bad_request", "message": message}})


# ============================================================
# Application Factory
# ============================================================

def create_app(runtime: Runtime | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        runtime: Pre-built runtime (tests, embedding). Built on first use when
            omitted.
    """
    api = FastAPI(title="VoiceSketch")
    state: dict[str, Runtime] = {}
    if runtime is not None:
        state["runtime"] = runtime

    def get_runtime() -> Runtime:
        if "runtime" not in state:
            state["runtime"] = build_runtime()
        return state["runtime"]

    @api.exception_handler(VoiceSketchError)
    async def handle_voicesketch_error(request: Request, exc: VoiceSketchError):
        logger.warning("Request failed: %s (%s)", exc.kind.value, exc)
        return JSONResponse(
            status_code=ERROR_STATUS_CODES.get(exc.kind, 500),
            content={"error": exc.to_dict()},
        )

    @api.get("/v1/styles")
    def list_styles():
        return {
            "object": "list",
            "data": [
                {
                    "id": style.name.lower(),
                    "label": style.label,
                    "description": style.description,
                    "icon": style.icon,
                    "accent_color": style.accent_color,
                    "prompt_suffix": style.prompt_suffix,
                }
                for style in ArtStyle
            ],
        }

    @api.post("/v1/commands/parse")
    def parse_command(body: ParseRequest):
        return parse(body.transcript).to_dict()

    @api.post("/v1/artworks")
    async def create_artwork(body: GenerateRequest, runtime: Runtime = Depends(get_runtime)):
        quality = None
        if body.quality:
            try:
                quality = ImageQuality(body.quality.lower())
            except ValueError:
                return _bad_request(f"Unknown quality: {body.quality}")

        orchestrator = runtime.orchestrator

        if body.transcript:
            artwork = await orchestrator.generate_from_transcript(body.transcript, quality=quality)
            return serialize_artwork(artwork)

        if body.prompt:
            try:
                style = ArtStyle.from_label(body.style) if body.style else provider_config.DEFAULT_STYLE
            except ValueError:
                return _bad_request(f"Unknown style: {body.style}")
            artwork = await orchestrator.generate_from_prompt(body.prompt, style, quality=quality)
            return serialize_artwork(artwork)

        return _bad_request("Either transcript or prompt is required")

    @api.get("/v1/artworks")
    def list_artworks(runtime: Runtime = Depends(get_runtime)):
        return {
            "object": "list",
            "data": [serialize_artwork(artwork) for artwork in runtime.store.all()],
        }

    return api


app = create_app()
