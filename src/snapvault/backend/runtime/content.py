"""Content-kind classification for inbound messages

Every non-empty payload maps to exactly one variant. Payload keys the
runtime does not know become UnhandledContent instead of an error.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..enum import ContentKind

# Envelopes that wrap the real payload one level down
WRAPPER_KEYS = (
    "ephemeralMessage",
    "viewOnceMessage",
    "viewOnceMessageV2",
    "documentWithCaptionMessage",
)

# Keys that carry no user content
IGNORED_KEYS = {"messageContextInfo", "senderKeyDistributionMessage"}


@dataclass
class TextContent:
    text: str
    kind: ContentKind = ContentKind.TEXT


@dataclass
class ImageContent:
    mimetype: Optional[str] = None
    caption: Optional[str] = None
    kind: ContentKind = ContentKind.IMAGE


@dataclass
class VideoContent:
    mimetype: Optional[str] = None
    caption: Optional[str] = None
    kind: ContentKind = ContentKind.VIDEO


@dataclass
class AudioContent:
    mimetype: Optional[str] = None
    seconds: Optional[int] = None
    kind: ContentKind = ContentKind.AUDIO


@dataclass
class DocumentContent:
    mimetype: Optional[str] = None
    file_name: Optional[str] = None
    kind: ContentKind = ContentKind.DOCUMENT


@dataclass
class UnhandledContent:
    keys: List[str] = field(default_factory=list)
    kind: ContentKind = ContentKind.UNHANDLED


MessageContent = Union[
    TextContent,
    ImageContent,
    VideoContent,
    AudioContent,
    DocumentContent,
    UnhandledContent,
]


def _unwrap(content: Dict[str, Any]) -> Dict[str, Any]:
    for _ in range(3):
        for key in WRAPPER_KEYS:
            inner = content.get(key)
            if isinstance(inner, dict) and isinstance(inner.get("message"), dict):
                content = inner["message"]
                break
        else:
            return content
    return content


def classify(content: Optional[Dict[str, Any]]) -> Optional[MessageContent]:
    """
    Classify a content-kind-keyed payload.

    Returns:
        None for an empty envelope, otherwise exactly one MessageContent variant
    """
    if not content:
        return None

    content = _unwrap(content)
    keys = [k for k in content if k not in IGNORED_KEYS and content[k] is not None]
    if not keys:
        return None

    if "conversation" in content and isinstance(content["conversation"], str):
        return TextContent(text=content["conversation"])

    if "extendedTextMessage" in content:
        body = content["extendedTextMessage"] or {}
        return TextContent(text=body.get("text", ""))

    if "imageMessage" in content:
        body = content["imageMessage"] or {}
        return ImageContent(mimetype=body.get("mimetype"), caption=body.get("caption"))

    if "videoMessage" in content:
        body = content["videoMessage"] or {}
        return VideoContent(mimetype=body.get("mimetype"), caption=body.get("caption"))

    if "audioMessage" in content:
        body = content["audioMessage"] or {}
        return AudioContent(mimetype=body.get("mimetype"), seconds=body.get("seconds"))

    if "documentMessage" in content:
        body = content["documentMessage"] or {}
        return DocumentContent(mimetype=body.get("mimetype"), file_name=body.get("fileName"))

    return UnhandledContent(keys=sorted(keys))
