"""Content classification for proxied URLs.

The kind is derived from the extension of the URL *path* before any request
is made, because it selects the ``Accept`` header. Once the upstream answers,
its declared ``Content-Type`` refines that kind, and the refined kind decides
whether the body is handled as binary or as text. Generic types such as
``application/octet-stream`` (object stores serve playlists with them) say
nothing about the payload and are treated as undeclared.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import urlsplit

from moviedeck.domain.entities.proxy import ContentKind

VIDEO_EXTENSIONS = frozenset({"ts", "m4s", "mp4"})
MANIFEST_EXTENSIONS = frozenset({"m3u8", "mpd"})
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})

HLS_CONTENT_TYPE = "application/vnd.apple.mpegurl"
DASH_CONTENT_TYPE = "application/dash+xml"

_ACCEPT_HEADERS: dict[ContentKind, str] = {
    ContentKind.VIDEO_SEGMENT: "video/MP2T, video/MP4, */*",
    ContentKind.IMAGE: "image/jpeg, image/png, image/gif, image/webp, */*",
    ContentKind.MANIFEST: "application/vnd.apple.mpegurl, application/x-mpegURL, */*",
    ContentKind.OTHER: "application/vnd.apple.mpegurl, application/x-mpegURL, */*",
}

_GENERIC_TYPES = frozenset(
    {"application/octet-stream", "binary/octet-stream", "application/binary"}
)
_MANIFEST_TYPE_MARKERS = ("mpegurl", "m3u8", "dash+xml")


def url_extension(url: str) -> str:
    """Lowercased extension of the URL path, without the dot.

    Query string and fragment are ignored.

    >>> url_extension("https://cdn.x/v/seg0.TS?token=a.m3u8")
    'ts'
    """
    path = urlsplit(url).path
    return PurePosixPath(path).suffix.lstrip(".").lower()


def classify_url(url: str) -> ContentKind:
    ext = url_extension(url)
    if ext in VIDEO_EXTENSIONS:
        return ContentKind.VIDEO_SEGMENT
    if ext in MANIFEST_EXTENSIONS:
        return ContentKind.MANIFEST
    if ext in IMAGE_EXTENSIONS:
        return ContentKind.IMAGE
    return ContentKind.OTHER


def accept_header(kind: ContentKind) -> str:
    return _ACCEPT_HEADERS[kind]


def default_content_type(url: str, kind: ContentKind) -> str:
    """Content type to use when upstream does not declare one."""
    ext = url_extension(url)
    if kind is ContentKind.VIDEO_SEGMENT:
        return "video/mp4" if ext == "mp4" else "video/MP2T"
    if kind is ContentKind.IMAGE:
        return f"image/{'jpeg' if ext == 'jpg' else ext}"
    if ext == "mpd":
        return DASH_CONTENT_TYPE
    # Manifests and unknown extensions: playlist variants dominate.
    return HLS_CONTENT_TYPE


def _media_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_generic_content_type(content_type: str | None) -> bool:
    """True for a missing type or one that does not describe the payload."""
    media_type = _media_type(content_type)
    return not media_type or media_type in _GENERIC_TYPES


def refine_kind(kind: ContentKind, content_type: str | None) -> ContentKind:
    """Refine the extension-derived *kind* with the upstream-declared type.

    Missing, generic and unrecognised types keep the extension kind.
    """
    if is_generic_content_type(content_type):
        return kind
    media_type = _media_type(content_type)
    # audio/x-mpegurl is a playlist despite the audio/ prefix
    if any(marker in media_type for marker in _MANIFEST_TYPE_MARKERS):
        return ContentKind.MANIFEST
    if media_type.startswith("image/"):
        return ContentKind.IMAGE
    if media_type.startswith(("video/", "audio/")) or media_type == "application/mp4":
        return ContentKind.VIDEO_SEGMENT
    if media_type.startswith("text/") or "xml" in media_type or "json" in media_type:
        return kind if kind is ContentKind.MANIFEST else ContentKind.OTHER
    return kind


def is_binary_payload(kind: ContentKind, content_type: str | None) -> bool:
    return refine_kind(kind, content_type).is_binary


def response_content_type(url: str, kind: ContentKind, declared: str | None) -> str:
    """Content-Type sent downstream: upstream's unless missing or generic."""
    if declared and not is_generic_content_type(declared):
        return declared
    return default_content_type(url, kind)


def is_hls_playlist(url: str, content_type: str | None, body: str) -> bool:
    """True when a text body is an HLS playlist that must be rewritten."""
    if url_extension(url) == "m3u8":
        return True
    media_type = _media_type(content_type)
    if "mpegurl" in media_type or "m3u8" in media_type:
        return True
    for line in body.splitlines():
        if line.strip():
            return line.strip().startswith("#EXTM3U")
    return False
