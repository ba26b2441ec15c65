"""Tests for content-kind classification."""
import pytest

from snapvault.backend.enum import ContentKind
from snapvault.backend.runtime.content import (
    AudioContent,
    DocumentContent,
    ImageContent,
    TextContent,
    UnhandledContent,
    VideoContent,
    classify,
)


@pytest.mark.parametrize("content", [None, {}, {"messageContextInfo": {}}, {"imageMessage": None}])
def test_empty_envelopes(content):
    assert classify(content) is None


def test_plain_text():
    assert classify({"conversation": "hi"}) == TextContent(text="hi")


def test_extended_text():
    assert classify({"extendedTextMessage": {"text": "a link"}}) == TextContent(text="a link")


def test_image_with_caption():
    content = classify({"imageMessage": {"mimetype": "image/webp", "caption": "sunset"}})
    assert content == ImageContent(mimetype="image/webp", caption="sunset")
    assert content.kind == ContentKind.IMAGE


def test_image_without_metadata():
    assert classify({"imageMessage": {}}) == ImageContent()


@pytest.mark.parametrize("content, expected", [
    ({"videoMessage": {"mimetype": "video/mp4"}}, VideoContent(mimetype="video/mp4")),
    ({"audioMessage": {"seconds": 4}}, AudioContent(seconds=4)),
    ({"documentMessage": {"fileName": "cv.pdf"}}, DocumentContent(file_name="cv.pdf")),
])
def test_other_media_kinds(content, expected):
    assert classify(content) == expected


def test_unknown_keys_are_unhandled():
    content = classify({"stickerMessage": {}, "messageContextInfo": {}})
    assert content == UnhandledContent(keys=["stickerMessage"])


@pytest.mark.parametrize("wrapper", ["ephemeralMessage", "viewOnceMessage", "viewOnceMessageV2"])
def test_wrapped_image_is_unwrapped(wrapper):
    content = classify({wrapper: {"message": {"imageMessage": {"caption": "secret"}}}})
    assert content == ImageContent(caption="secret")


def test_nested_wrappers():
    content = classify({
        "ephemeralMessage": {"message": {"viewOnceMessageV2": {"message": {"imageMessage": {}}}}}
    })
    assert isinstance(content, ImageContent)
