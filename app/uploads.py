"""Local-disk storage for uploaded images and videos."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import UploadFile

from .config import Settings
from .models import MediaKind, StoredFile, UploadResult
from .utils import detect_episode_number, unique_filename

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
MEDIA_DIRECTORIES: dict[MediaKind, str] = {"image": "images", "video": "videos"}


class UploadError(Exception):
    """Base class for rejected uploads."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedMediaType(UploadError):
    status_code = 415


class PayloadTooLarge(UploadError):
    status_code = 413


class StorageWriteFailed(UploadError):
    status_code = 500


def media_kind_for(content_type: str | None) -> MediaKind | None:
    """Return the storage bucket for a MIME type, ``None`` when not accepted."""

    if not content_type:
        return None
    lowered = content_type.lower()
    if lowered.startswith("image/"):
        return "image"
    if lowered.startswith("video/"):
        return "video"
    return None


class UploadStorage:
    """Stores uploads under ``images/`` and ``videos/`` below a root directory."""

    def __init__(self, root: Path, *, url_prefix: str, max_bytes: int):
        self._root = Path(root)
        self._url_prefix = url_prefix.rstrip("/")
        self._max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadStorage":
        return cls(
            settings.upload_dir,
            url_prefix=settings.upload_url_prefix,
            max_bytes=settings.max_upload_bytes,
        )

    @property
    def root(self) -> Path:
        return self._root

    def directory_for(self, kind: MediaKind) -> Path:
        return self._root / MEDIA_DIRECTORIES[kind]

    def ensure_directories(self) -> None:
        """Create the upload root and its per-type directories."""

        for path in (self._root, *(self.directory_for(kind) for kind in MEDIA_DIRECTORIES)):
            if path.is_dir():
                continue
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("Failed to create upload directory %s: %s", path, exc)
                continue
            logger.info("Created upload directory %s", path)

    def url_for(self, kind: MediaKind, filename: str) -> str:
        return f"{self._url_prefix}/{MEDIA_DIRECTORIES[kind]}/{filename}"

    async def store(self, upload: UploadFile, requested: MediaKind) -> UploadResult:
        """Write ``upload`` to disk.

        The storage bucket follows the file's MIME type; ``requested`` only
        decides whether an episode number is inferred from the filename.
        """

        kind = media_kind_for(upload.content_type)
        if kind is None:
            raise UnsupportedMediaType("Only image and video files are allowed")

        original_name = upload.filename or "upload"
        directory = self.directory_for(kind)
        target = directory / unique_filename(original_name)
        written = 0
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as handle:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self._max_bytes:
                        raise PayloadTooLarge(
                            f"File too large, the limit is {self._max_bytes} bytes"
                        )
                    handle.write(chunk)
        except PayloadTooLarge:
            target.unlink(missing_ok=True)
            raise
        except OSError as exc:
            target.unlink(missing_ok=True)
            logger.error("Failed to store upload %s: %s", original_name, exc)
            raise StorageWriteFailed(f"Failed to store file: {exc}") from exc
        finally:
            await upload.close()

        episode = detect_episode_number(original_name) if requested == "video" else None
        logger.info("Stored %s upload %s (%d bytes) as %s", kind, original_name, written, target.name)
        return UploadResult(
            url=self.url_for(kind, target.name),
            original_name=original_name,
            size_bytes=written,
            detected_episode_number=episode,
        )

    def list_files(self) -> dict[str, list[StoredFile]]:
        """Return stored files grouped as ``images`` and ``videos``."""

        listing: dict[str, list[StoredFile]] = {}
        for kind, dirname in MEDIA_DIRECTORIES.items():
            directory = self.directory_for(kind)
            files: list[StoredFile] = []
            if directory.is_dir():
                for path in sorted(directory.iterdir()):
                    if not path.is_file():
                        continue
                    files.append(
                        StoredFile(
                            url=self.url_for(kind, path.name),
                            name=path.name,
                            type=kind,
                            size=path.stat().st_size,
                        )
                    )
            listing[dirname] = files
        return listing
