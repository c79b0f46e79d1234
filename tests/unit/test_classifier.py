"""Unit tests for the OpenAI vision classifier."""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai.types import CompletionUsage
from openai.types.chat import ChatCompletion, ChatCompletionMessage
from openai.types.chat.chat_completion import Choice

from screensift.core.classification.classifier import OpenAIVisionClassifier
from screensift.core.classification.judgement import RetentionPolicy
from screensift.utils.exceptions import ClassificationError


def _completion(content: str | None) -> ChatCompletion:
    return ChatCompletion(
        id="chatcmpl-test",
        object="chat.completion",
        created=1700000000,
        model="gpt-4o-mini",
        choices=[
            Choice(
                index=0,
                finish_reason="stop",
                message=ChatCompletionMessage(role="assistant", content=content),
            )
        ],
        usage=CompletionUsage(prompt_tokens=120, completion_tokens=40, total_tokens=160),
    )


def _client(result=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=result, side_effect=side_effect)
    return client


VALID_REPLY = json.dumps(
    {
        "is_important": False,
        "confidence": 0.93,
        "categories": ["meme"],
        "description": "A cat picture",
        "extracted_text": "",
        "content_type": "social",
        "folder_category": "Social",
        "retention_policy": "delete_after_7_days",
        "importance_level": "low",
    }
)


@pytest.mark.asyncio
async def test_classify_success():
    client = _client(_completion(VALID_REPLY))
    classifier = OpenAIVisionClassifier(client=client, model="gpt-4o", detail="high")

    judgement = await classifier.classify(b"\x89PNG-bytes", "image/png")

    assert judgement.is_important is False
    assert judgement.confidence == 0.93
    assert judgement.retention_policy is RetentionPolicy.DELETE_AFTER_7_DAYS


@pytest.mark.asyncio
async def test_request_carries_inline_image():
    client = _client(_completion(VALID_REPLY))
    classifier = OpenAIVisionClassifier(client=client, model="gpt-4o", detail="high")

    await classifier.classify(b"\x89PNG-bytes", "image/png")

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["response_format"] == {"type": "json_object"}

    image_part = kwargs["messages"][1]["content"][0]
    expected = base64.b64encode(b"\x89PNG-bytes").decode("ascii")
    assert image_part["type"] == "image_url"
    assert image_part["image_url"]["url"] == f"data:image/png;base64,{expected}"
    assert image_part["image_url"]["detail"] == "high"


@pytest.mark.asyncio
async def test_api_error_raises_classification_error():
    client = _client(side_effect=RuntimeError("connection reset"))
    classifier = OpenAIVisionClassifier(client=client)

    with pytest.raises(ClassificationError, match="connection reset"):
        await classifier.classify(b"data", "image/png")


@pytest.mark.asyncio
async def test_empty_reply_raises_classification_error():
    classifier = OpenAIVisionClassifier(client=_client(_completion(None)))

    with pytest.raises(ClassificationError, match="empty response"):
        await classifier.classify(b"data", "image/png")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        "not json at all",
        json.dumps({"is_important": True}),
        json.dumps({"is_important": True, "confidence": 3}),
    ],
)
async def test_malformed_reply_raises_classification_error(reply: str):
    classifier = OpenAIVisionClassifier(client=_client(_completion(reply)))

    with pytest.raises(ClassificationError, match="Malformed"):
        await classifier.classify(b"data", "image/png")
