"""Vision classifier capability and its OpenAI implementation."""

import base64
import time
from typing import Protocol

import structlog
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from screensift.config import settings
from screensift.core.classification.judgement import Judgement
from screensift.core.classification.prompts import CLASSIFICATION_PROMPT
from screensift.utils.exceptions import ClassificationError

logger = structlog.get_logger(__name__)


class VisionClassifier(Protocol):
    """Anything that turns image bytes into a Judgement."""

    async def classify(self, image_bytes: bytes, mime_type: str) -> Judgement:
        """Classify one image. Raises ClassificationError on failure."""
        ...


class OpenAIVisionClassifier:
    """
    Classify screenshots with an OpenAI vision model.

    The image is sent inline as a base64 data URL together with the
    classification prompt, and the JSON reply is validated into a Judgement.
    Any failure (HTTP error, timeout, empty or malformed reply) is raised as
    ClassificationError; callers decide whether to fall back.
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        detail: str | None = None,
    ) -> None:
        """
        Initialize classifier.

        Args:
            client: OpenAI async client (built from settings when omitted)
            model: Vision model name (defaults to settings.vision_model)
            detail: Image detail level (defaults to settings.vision_detail_level)
        """
        # One attempt per call; failures go to the fallback judgement
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key.get_secret_value(),
            timeout=settings.classifier_timeout,
            max_retries=0,
        )
        self.model = model or settings.vision_model
        self.detail = detail or settings.vision_detail_level

    async def classify(self, image_bytes: bytes, mime_type: str) -> Judgement:
        """
        Classify a screenshot.

        Args:
            image_bytes: Raw image bytes
            mime_type: MIME type used for the data URL

        Returns:
            Validated Judgement

        Raises:
            ClassificationError: If the API call fails or the reply is unusable
        """
        start_time = time.time()
        image_b64 = base64.b64encode(image_bytes).decode("ascii")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": CLASSIFICATION_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image_url",
                                "image_url": {
                                    "url": f"data:{mime_type};base64,{image_b64}",
                                    "detail": self.detail,
                                },
                            },
                            {"type": "text", "text": "Classify this screenshot."},
                        ],
                    },
                ],
                response_format={"type": "json_object"},
                temperature=0.2,
            )
        except Exception as e:
            raise ClassificationError(f"Vision API call failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ClassificationError("Vision API returned an empty response")

        try:
            judgement = Judgement.model_validate_json(content)
        except PydanticValidationError as e:
            raise ClassificationError(f"Malformed classification response: {e}") from e

        logger.info(
            "screenshot_classified",
            model=self.model,
            is_important=judgement.is_important,
            confidence=judgement.confidence,
            categories=judgement.categories,
            prompt_tokens=response.usage.prompt_tokens if response.usage else None,
            processing_time_ms=int((time.time() - start_time) * 1000),
        )
        return judgement
