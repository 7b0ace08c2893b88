"""Response parsing for the Gemini backends and image loading."""

from pathlib import Path
import sys
from types import SimpleNamespace

import pytest
import requests

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.errors import GenerationError, InvalidInputError
from models.image import ImageData
from tools import image_loader
from tools.image_generator import MockImageGenerator, extract_image
from tools.outfit_suggester import MockOutfitSuggester, parse_suggestion


def _response(parts, finish_reason="STOP", block_reason=None):
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts), finish_reason=finish_reason)
    return SimpleNamespace(
        prompt_feedback=SimpleNamespace(block_reason=block_reason),
        candidates=[candidate],
    )


def test_extract_image_returns_first_inline_image() -> None:
    parts = [
        SimpleNamespace(inline_data=None, text="Here you go"),
        SimpleNamespace(inline_data=SimpleNamespace(mime_type="image/jpeg", data=b"jpeg-bytes"), text=None),
    ]

    image = extract_image(_response(parts))

    assert image == ImageData("image/jpeg", b"jpeg-bytes")
    assert image.to_data_url().startswith("data:image/jpeg;base64,")


def test_extract_image_reports_blocked_prompt() -> None:
    with pytest.raises(GenerationError) as excinfo:
        extract_image(_response([], block_reason=SimpleNamespace(name="SAFETY")))

    assert excinfo.value.kind == "blocked"
    assert "SAFETY" in str(excinfo.value)
    assert not excinfo.value.retriable


def test_extract_image_reports_unexpected_finish_reason() -> None:
    with pytest.raises(GenerationError) as excinfo:
        extract_image(_response([], finish_reason="IMAGE_SAFETY"))

    assert excinfo.value.kind == "blocked"
    assert "IMAGE_SAFETY" in str(excinfo.value)


def test_extract_image_text_only_answer_is_no_image() -> None:
    parts = [SimpleNamespace(inline_data=None, text="I cannot edit this photo.")]

    with pytest.raises(GenerationError) as excinfo:
        extract_image(_response(parts))

    assert excinfo.value.kind == "no_image"
    assert "I cannot edit this photo." in str(excinfo.value)


def test_extract_image_without_candidates() -> None:
    response = SimpleNamespace(prompt_feedback=None, candidates=[])

    with pytest.raises(GenerationError) as excinfo:
        extract_image(response)

    assert excinfo.value.kind == "no_image"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('{"outfitIds": ["gemini-tee", "beanie-hat"]}', ["gemini-tee", "beanie-hat"]),
        ('```json\n{"outfitIds": []}\n```', []),
        ("{}", []),
    ],
)
def test_parse_suggestion(raw, expected) -> None:
    assert parse_suggestion(raw) == expected


@pytest.mark.parametrize("raw", ["not json", '{"outfitIds": "gemini-tee"}'])
def test_parse_suggestion_rejects_malformed_answers(raw) -> None:
    with pytest.raises(GenerationError) as excinfo:
        parse_suggestion(raw)
    assert excinfo.value.kind == "malformed"


def test_mock_services_are_deterministic_per_call() -> None:
    generator = MockImageGenerator()
    image = ImageData("image/png", b"base")

    first = generator.generate([image], "pose A")
    second = generator.generate([image], "pose A")

    assert first.mime_type == "image/png"
    assert first != second
    assert len(generator.calls) == 2

    items = [
        {"id": "tee", "name": "Tee", "category": "clothing"},
        {"id": "cap", "name": "Cap", "category": "accessory"},
        {"id": "sweat", "name": "Sweat", "category": "clothing"},
    ]
    assert MockOutfitSuggester().suggest(items, "casual") == ["tee", "cap"]


def test_load_image_decodes_data_urls() -> None:
    url = ImageData("image/webp", b"webp").to_data_url()

    assert image_loader.load_image(url) == ImageData("image/webp", b"webp")


@pytest.mark.parametrize(
    "url",
    ["data:image/png;base64,", "data:image/png;base64,%%%", "ftp://example.com/a.png", "not a url"],
)
def test_load_image_rejects_bad_input(url) -> None:
    with pytest.raises(InvalidInputError):
        image_loader.load_image(url)


def test_fetch_image_uses_response_content_type(monkeypatch) -> None:
    def fake_get(url, timeout):
        return SimpleNamespace(status_code=200, headers={"content-type": "image/jpeg; charset=binary"}, content=b"jp")

    monkeypatch.setattr(image_loader.requests, "get", fake_get)

    assert image_loader.load_image("https://example.com/a.jpg") == ImageData("image/jpeg", b"jp")


def test_fetch_image_maps_http_and_network_failures(monkeypatch) -> None:
    monkeypatch.setattr(
        image_loader.requests,
        "get",
        lambda url, timeout: SimpleNamespace(status_code=404, headers={}, content=b""),
    )
    with pytest.raises(GenerationError) as excinfo:
        image_loader.fetch_image("https://example.com/missing.png")
    assert excinfo.value.kind == "transport"
    assert excinfo.value.retriable

    def boom(url, timeout):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(image_loader.requests, "get", boom)
    with pytest.raises(GenerationError) as excinfo:
        image_loader.fetch_image("https://example.com/a.png")
    assert excinfo.value.kind == "transport"
