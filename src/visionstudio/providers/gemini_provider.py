"""Gemini image generation backend."""

import base64
from typing import Any, Optional

from google import genai
from google.genai import errors, types

from visionstudio.models.requests import BackendRequest, InlinePart, TextPart
from visionstudio.models.responses import BackendResponse, Candidate, ResponsePart
from visionstudio.services.response_interpreter import classify_transport_error


class GeminiImageBackend:
    """Image backend using the Gemini ``generate_content`` API."""

    def __init__(self, response_modalities: tuple[str, ...] = ("TEXT", "IMAGE")):
        """
        Initialize Gemini backend.

        Args:
            response_modalities: Output modalities requested from the model
        """
        self.response_modalities = list(response_modalities)

    def build_contents(self, request: BackendRequest) -> list[types.Content]:
        """Convert descriptor parts into SDK content, keeping their order."""
        parts: list[types.Part] = []
        for part in request.parts:
            if isinstance(part, InlinePart):
                parts.append(
                    types.Part.from_bytes(
                        data=part.inline_data.decode(),
                        mime_type=part.inline_data.mime_type,
                    )
                )
            elif isinstance(part, TextPart):
                parts.append(types.Part.from_text(text=part.text))
        return [types.Content(role="user", parts=parts)]

    def build_config(self, request: BackendRequest) -> types.GenerateContentConfig:
        """Convert descriptor settings into an SDK generation config."""
        config = request.config
        image_config_kwargs: dict[str, Any] = {"aspect_ratio": config.aspect_ratio.value}
        if config.image_size is not None:
            image_config_kwargs["image_size"] = config.image_size.value

        config_kwargs: dict[str, Any] = {
            "response_modalities": self.response_modalities,
            "image_config": types.ImageConfig(**image_config_kwargs),
            "safety_settings": [
                types.SafetySetting(category=setting.category, threshold=setting.threshold)
                for setting in config.safety_settings
            ],
        }
        if config.seed is not None:
            config_kwargs["seed"] = config.seed
        if config.enable_search:
            config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]

        return types.GenerateContentConfig(**config_kwargs)

    async def generate(self, request: BackendRequest, api_key: str) -> BackendResponse:
        """
        Generate an image with Gemini.

        A new client is created for every call so that a credential changed
        between attempts takes effect immediately.

        Args:
            request: Backend-agnostic request descriptor
            api_key: Gemini API key for this attempt

        Returns:
            BackendResponse with the model's candidates

        Raises:
            GenerationFailure: Classified transport failure
        """
        try:
            client = genai.Client(api_key=api_key)
            result = await client.aio.models.generate_content(
                model=request.model.value,
                contents=self.build_contents(request),
                config=self.build_config(request),
            )
        except errors.APIError as e:
            raise classify_transport_error(
                e.code,
                e.status,
                e.message or str(e),
                tier=request.model.label,
                details=e.details,
                original_exception=e,
            )
        except Exception as e:
            raise classify_transport_error(
                None,
                None,
                str(e),
                tier=request.model.label,
                original_exception=e,
            )

        return to_backend_response(result)


def to_backend_response(result: Any) -> BackendResponse:
    """Reduce an SDK response to the fields the interpreter needs."""
    raw_candidates = getattr(result, "candidates", None)
    candidates: Optional[list[Candidate]] = None
    if raw_candidates is not None:
        candidates = [_to_candidate(candidate) for candidate in raw_candidates]

    block_reason = None
    prompt_feedback = getattr(result, "prompt_feedback", None)
    if prompt_feedback is not None:
        block_reason = _enum_text(getattr(prompt_feedback, "block_reason", None))

    return BackendResponse(candidates=candidates, prompt_block_reason=block_reason)


def _to_candidate(candidate: Any) -> Candidate:
    content = getattr(candidate, "content", None)
    raw_parts = getattr(content, "parts", None) if content is not None else None
    parts: Optional[list[ResponsePart]] = None
    if raw_parts is not None:
        parts = [_to_part(part) for part in raw_parts]
    return Candidate(parts=parts, finish_reason=_enum_text(getattr(candidate, "finish_reason", None)))


def _to_part(part: Any) -> ResponsePart:
    inline = getattr(part, "inline_data", None)
    if inline is not None and getattr(inline, "data", None):
        data = inline.data
        if isinstance(data, bytes):
            data = base64.b64encode(data).decode("ascii")
        return ResponsePart(
            inline_data={"mime_type": getattr(inline, "mime_type", None) or "image/png", "data": data}
        )
    return ResponsePart(text=getattr(part, "text", None))


def _enum_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))
