"""
Tests for the fortune reading request
"""
from unittest.mock import AsyncMock

import pytest

from conftest import make_openai_client, make_response
from models.coffee_record import MaterializedAsset
from services.openai.fortune_reader import FortuneGenerationError, FortuneReader
from services.openai.response_parser import extract_text

ASSETS = [
    MaterializedAsset(reference="coffee/cup1.jpg", local_path="/tmp/a", file_id="file-1", mime_type="image/jpeg"),
    MaterializedAsset(reference="coffee/cup2.jpg", local_path="/tmp/b", file_id="file-2", mime_type="image/jpeg"),
]


@pytest.mark.asyncio
async def test_photos_first_prompt_last():
    client = make_openai_client("falın çok güzel")
    reader = FortuneReader(client, model="gpt-5")

    text = await reader.read_fortune(ASSETS, "Kahve falımı yorumla.")

    assert text == "falın çok güzel"
    kwargs = client.responses.create.await_args.kwargs
    assert kwargs["model"] == "gpt-5"
    [message] = kwargs["input"]
    assert message["role"] == "user"
    assert message["content"] == [
        {"type": "input_image", "file_id": "file-1", "detail": "auto"},
        {"type": "input_image", "file_id": "file-2", "detail": "auto"},
        {"type": "input_text", "text": "Kahve falımı yorumla."},
    ]


@pytest.mark.asyncio
async def test_text_only_request_without_photos():
    client = make_openai_client()
    reader = FortuneReader(client)

    await reader.read_fortune([], "Kahve falımı yorumla.")

    [message] = client.responses.create.await_args.kwargs["input"]
    assert message["content"] == [{"type": "input_text", "text": "Kahve falımı yorumla."}]


@pytest.mark.asyncio
async def test_api_error_propagates_without_retry():
    client = make_openai_client()
    client.responses.create = AsyncMock(side_effect=RuntimeError("quota exceeded"))
    reader = FortuneReader(client)

    with pytest.raises(RuntimeError, match="quota exceeded"):
        await reader.read_fortune(ASSETS, "prompt")
    assert client.responses.create.await_count == 1


@pytest.mark.asyncio
async def test_empty_output_raises():
    client = make_openai_client()
    client.responses.create = AsyncMock(return_value=make_response(""))
    reader = FortuneReader(client)

    with pytest.raises(FortuneGenerationError):
        await reader.read_fortune([], "prompt")


def test_requires_client():
    with pytest.raises(ValueError):
        FortuneReader(None)


def test_extract_text_from_output_items():
    response = make_response("")
    response.output = [
        {"type": "reasoning", "content": []},
        {"type": "message", "content": [{"type": "output_text", "text": "bir "}, {"type": "output_text", "text": "yol"}]},
    ]

    assert extract_text(response) == "bir yol"
