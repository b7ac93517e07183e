"""Turns user input into validated requests and backend descriptors."""

from pydantic import ValidationError

from visionstudio.models.errors import InputValidationError
from visionstudio.models.requests import (
    BackendConfig,
    BackendRequest,
    ContentPart,
    GenerationRequest,
    InlineData,
    InlinePart,
    ModelTier,
    SafetySetting,
    TextPart,
    UserInput,
)

# Sent to the backend when only reference images are supplied
FALLBACK_INSTRUCTION = (
    "Transform the provided reference images into a new, cohesive, high-quality image."
)

# Prompt recorded on artifacts made from images alone
IMAGE_ONLY_LABEL = "Visual Transformation"

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_CIVIC_INTEGRITY",
)

DEFAULT_SAFETY_SETTINGS = [
    SafetySetting(category=category, threshold="BLOCK_NONE") for category in HARM_CATEGORIES
]


class RequestBuilder:
    """Validates user input and assembles backend request descriptors."""

    def __init__(
        self,
        safety_settings: list[SafetySetting] | None = None,
        fallback_instruction: str = FALLBACK_INSTRUCTION,
    ):
        self.safety_settings = (
            list(safety_settings) if safety_settings is not None else list(DEFAULT_SAFETY_SETTINGS)
        )
        self.fallback_instruction = fallback_instruction

    def build(self, user_input: UserInput) -> GenerationRequest:
        """
        Validate and normalize user input.

        Raises:
            InputValidationError: Neither prompt text nor reference images given
        """
        prompt = user_input.prompt.strip()
        images = list(user_input.reference_images)
        if not prompt and not images:
            raise InputValidationError()

        try:
            return GenerationRequest(
                prompt=prompt or self.fallback_instruction,
                source_prompt=prompt or IMAGE_ONLY_LABEL,
                aspect_ratio=user_input.aspect_ratio,
                model=user_input.model,
                image_size=user_input.image_size if user_input.model is ModelTier.PRO else None,
                reference_images=images,
                seed=user_input.seed,
            )
        except ValidationError as e:
            raise InputValidationError(f"Invalid generation request: {e}") from e

    def descriptor(self, request: GenerationRequest) -> BackendRequest:
        """Build the backend descriptor: images in user order, then the text."""
        parts: list[ContentPart] = [
            InlinePart(inline_data=InlineData(mime_type=image.mime_type, data=image.data))
            for image in request.reference_images
        ]
        parts.append(TextPart(text=request.prompt))

        return BackendRequest(
            model=request.model,
            parts=parts,
            config=BackendConfig(
                aspect_ratio=request.aspect_ratio,
                image_size=request.image_size,
                seed=request.seed,
                safety_settings=self.safety_settings,
                enable_search=request.model is ModelTier.PRO,
            ),
        )
