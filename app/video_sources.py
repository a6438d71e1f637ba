"""Resolution of stored video references into renderable sources.

A title or episode stores its ``videoUrl`` in one of several shapes that grew
over time in the admin panel:

* a plain URL pointing at a playable file (``/temp-uploads/videos/ep1.mp4``);
* pasted iframe markup copied from a video host;
* a JSON descriptor, either ``{"type": "embed", "provider": ...}`` for hosted
  embeds or ``{"type": "file", "fileInfo": {...}}`` for uploads that were too
  large to keep.

:func:`resolve_video` turns any of them into exactly one :data:`VideoSource`
variant so the player never has to inspect the raw value again.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Union

from .models import Title, VideoRef
from .utils import format_mebibytes, parse_int

logger = logging.getLogger(__name__)

BIGCOMMAND_EMBED_BASE = "https://adilo.bigcommand.com/watch/"
DEFAULT_ADMIN_PATH = "/admin"


class MalformedVideoRef(ValueError):
    """The reference is not a structured descriptor."""


class UnresolvedDescriptorType(ValueError):
    """A structured descriptor declared a ``type`` we cannot render."""


@dataclass(frozen=True, slots=True)
class IframeEmbed:
    """Responsive 16:9 iframe pointed at ``src``."""

    kind: ClassVar[str] = "iframe"

    src: str

    def to_payload(self) -> dict[str, Any]:
        return {"kind": self.kind, "src": self.src}


@dataclass(frozen=True, slots=True)
class RawEmbedMarkup:
    """Embed markup rendered verbatim; the admin panel is trusted input."""

    kind: ClassVar[str] = "markup"

    markup: str

    def to_payload(self) -> dict[str, Any]:
        return {"kind": self.kind, "markup": self.markup}


@dataclass(frozen=True, slots=True)
class ProviderEmbed:
    """Hosted player whose iframe source is built from a provider id."""

    kind: ClassVar[str] = "provider"

    provider: str
    data_id: str
    base_url: str = BIGCOMMAND_EMBED_BASE

    @property
    def src(self) -> str:
        return f"{self.base_url}{self.data_id}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "provider": self.provider,
            "dataId": self.data_id,
            "src": self.src,
        }


@dataclass(frozen=True, slots=True)
class LargeFilePlaceholder:
    """An upload that exists but cannot be streamed."""

    kind: ClassVar[str] = "large-file"

    name: str
    size_bytes: int
    admin_path: str = DEFAULT_ADMIN_PATH

    @property
    def size_label(self) -> str:
        return format_mebibytes(self.size_bytes)

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "sizeBytes": self.size_bytes,
            "sizeLabel": self.size_label,
            "adminUrl": self.admin_path,
        }


@dataclass(frozen=True, slots=True)
class DirectVideo:
    """Natively playable file; the player reports progress while it plays."""

    kind: ClassVar[str] = "video"
    container: ClassVar[str] = "mp4"

    url: str

    @property
    def mime_type(self) -> str:
        return f"video/{self.container}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "url": self.url,
            "mimeType": self.mime_type,
            "reportsProgress": True,
        }


@dataclass(frozen=True, slots=True)
class NoVideo:
    """Nothing playable is configured."""

    kind: ClassVar[str] = "none"

    def to_payload(self) -> dict[str, Any]:
        return {"kind": self.kind}


VideoSource = Union[
    IframeEmbed,
    RawEmbedMarkup,
    ProviderEmbed,
    LargeFilePlaceholder,
    DirectVideo,
    NoVideo,
]


def _is_blank(ref: VideoRef | None) -> bool:
    if ref is None:
        return True
    if isinstance(ref, str):
        return not ref.strip()
    return not ref


def select_reference(title: Title, episode_number: object = None) -> VideoRef | None:
    """Pick the episode's own reference, falling back to the title default."""

    episode = title.find_episode(parse_int(episode_number))
    if episode is not None and not _is_blank(episode.video_url):
        return episode.video_url
    if not _is_blank(title.video_url):
        return title.video_url
    return None


def parse_descriptor(ref: VideoRef) -> Mapping[str, Any]:
    """Return ``ref`` as a structured descriptor.

    Raises :class:`MalformedVideoRef` when ``ref`` is not a JSON object.
    """

    if isinstance(ref, Mapping):
        return ref
    try:
        data = json.loads(ref)
    except (TypeError, ValueError) as exc:
        raise MalformedVideoRef("Video reference is not JSON") from exc
    if not isinstance(data, dict):
        raise MalformedVideoRef("Video reference JSON is not an object")
    return data


def classify_descriptor(
    descriptor: Mapping[str, Any],
    *,
    bigcommand_base: str = BIGCOMMAND_EMBED_BASE,
    admin_path: str = DEFAULT_ADMIN_PATH,
) -> VideoSource:
    """Map a structured descriptor onto its source variant."""

    descriptor_type = descriptor.get("type")
    if descriptor_type == "embed":
        provider = descriptor.get("provider")
        if provider == "iframe":
            iframe_src = descriptor.get("iframeSrc")
            if iframe_src:
                return IframeEmbed(src=str(iframe_src))
            return RawEmbedMarkup(markup=str(descriptor.get("embedCode") or ""))
        if provider == "bigcommand":
            return ProviderEmbed(
                provider="bigcommand",
                data_id=str(descriptor.get("dataId") or ""),
                base_url=bigcommand_base,
            )
        return RawEmbedMarkup(markup=str(descriptor.get("embedCode") or ""))

    if descriptor_type == "file":
        file_info = descriptor.get("fileInfo")
        if not isinstance(file_info, Mapping):
            file_info = {}
        size = parse_int(file_info.get("size"))
        return LargeFilePlaceholder(
            name=str(file_info.get("name") or "Unknown file"),
            size_bytes=size if size is not None and size > 0 else 0,
            admin_path=admin_path,
        )

    raise UnresolvedDescriptorType(f"Unsupported descriptor type: {descriptor_type!r}")


def looks_like_iframe(value: str) -> bool:
    lowered = value.lower()
    return "<iframe" in lowered and "</iframe>" in lowered


def resolve_reference(
    ref: VideoRef | None,
    *,
    bigcommand_base: str = BIGCOMMAND_EMBED_BASE,
    admin_path: str = DEFAULT_ADMIN_PATH,
) -> VideoSource:
    """Resolve a single stored reference."""

    if ref is None or _is_blank(ref):
        return NoVideo()

    try:
        descriptor = parse_descriptor(ref)
    except MalformedVideoRef:
        descriptor = None

    if descriptor is not None:
        try:
            return classify_descriptor(
                descriptor, bigcommand_base=bigcommand_base, admin_path=admin_path
            )
        except UnresolvedDescriptorType as exc:
            logger.debug("Treating video reference as missing: %s", exc)
            return NoVideo()

    raw = str(ref)
    if looks_like_iframe(raw):
        return RawEmbedMarkup(markup=raw)
    return DirectVideo(url=raw)


def resolve_video(
    title: Title,
    episode_number: object = None,
    *,
    bigcommand_base: str = BIGCOMMAND_EMBED_BASE,
    admin_path: str = DEFAULT_ADMIN_PATH,
) -> VideoSource:
    """Resolve what the player should show for ``title`` at ``episode_number``."""

    return resolve_reference(
        select_reference(title, episode_number),
        bigcommand_base=bigcommand_base,
        admin_path=admin_path,
    )
