"""
Durable storage for uploaded resume files.

A staged blob is addressed by an opaque handle of the form
``resumes/resume-<millis>-<random>.<ext>``; the handle is what gets stored on
the application row and is resolved back to a path under the upload root.
"""
from dataclasses import dataclass
import logging
import os
from pathlib import Path, PurePosixPath
import secrets
import time
from typing import BinaryIO, Iterator

from ..utils.error_handlers import (
    BlobStorageError,
    FileTooLargeError,
    FileUploadError,
    UnsupportedFileTypeError,
)

logger = logging.getLogger(__name__)

ALLOWED_RESUME_CONTENT_TYPES = {
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}
MAX_RESUME_BYTES = 5 * 1024 * 1024  # 5MB
CHUNK_SIZE = 1024 * 1024  # 1MB
PARTIAL_SUFFIX = ".part"


@dataclass(frozen=True)
class StagedBlob:
    handle: str
    size_bytes: int
    content_type: str
    original_filename: str | None = None


class BlobStager:
    def __init__(self, root: str | Path, *, max_bytes: int = MAX_RESUME_BYTES, namespace: str = "resumes"):
        self.root = Path(root)
        self.max_bytes = int(max_bytes)
        self.namespace = namespace

    @property
    def directory(self) -> Path:
        return self.root / self.namespace

    def _too_large(self) -> FileTooLargeError:
        limit_mb = self.max_bytes / (1024 * 1024)
        return FileTooLargeError(f"File too large. Maximum size is {limit_mb:g}MB.")

    def _new_handle(self, ext: str) -> str:
        # Millisecond timestamp plus 64 random bits; "xb" mode below refuses to reuse a name anyway.
        return f"{self.namespace}/resume-{int(time.time() * 1000)}-{secrets.token_hex(8)}{ext}"

    def resolve(self, handle: str) -> Path:
        """Map a handle back to its file path, refusing anything outside the namespace."""
        parts = PurePosixPath(handle or "").parts
        if (
            len(parts) != 2
            or parts[0] != self.namespace
            or parts[1] in {".", ".."}
            or "\\" in handle
        ):
            raise BlobStorageError(f"Invalid blob handle: {handle!r}")
        return self.directory / parts[1]

    def exists(self, handle: str) -> bool:
        return self.resolve(handle).is_file()

    def stage(
        self,
        payload: BinaryIO,
        content_type: str | None,
        size_bytes: int | None = None,
        original_filename: str | None = None,
    ) -> StagedBlob:
        """Write `payload` to durable storage and return its handle.

        Rejects unsupported MIME types and anything larger than ``max_bytes``
        before the final file exists. The data is fsynced before returning.
        """
        mime = (content_type or "").split(";", 1)[0].strip().lower()
        ext = ALLOWED_RESUME_CONTENT_TYPES.get(mime)
        if ext is None:
            raise UnsupportedFileTypeError()

        if size_bytes is not None and size_bytes > self.max_bytes:
            raise self._too_large()

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create upload directory {self.directory}: {e}")
            raise BlobStorageError("Failed to prepare storage") from e

        handle = self._new_handle(ext)
        dest = self.resolve(handle)
        partial = dest.with_name(dest.name + PARTIAL_SUFFIX)

        written = 0
        try:
            with open(partial, "xb") as out:
                while True:
                    chunk = payload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise self._too_large()
                    out.write(chunk)
                out.flush()
                os.fsync(out.fileno())
            os.replace(partial, dest)
        except FileUploadError:
            self._remove_partial(partial)
            raise
        except OSError as e:
            self._remove_partial(partial)
            logger.error(f"File save error for {handle}: {e}")
            raise BlobStorageError("Failed to store file") from e

        logger.debug("Staged blob %s (%s bytes, %s)", handle, written, mime)
        return StagedBlob(
            handle=handle,
            size_bytes=written,
            content_type=mime,
            original_filename=original_filename,
        )

    def discard(self, handle: str) -> None:
        """Delete a staged blob. A blob that is already gone is not an error."""
        path = self.resolve(handle)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Blob %s was already removed", handle)
            return
        except OSError as e:
            raise BlobStorageError(f"Failed to delete blob {handle}") from e
        logger.debug("Discarded blob %s", handle)

    def iter_handles(self) -> Iterator[tuple[str, float]]:
        """Yield (handle, mtime) for every file in the namespace, partial writes included."""
        if not self.directory.is_dir():
            return
        for entry in self.directory.iterdir():
            if entry.is_file():
                yield f"{self.namespace}/{entry.name}", entry.stat().st_mtime

    def sweep_unreferenced(self, referenced: set[str], *, min_age_s: float, now: float | None = None) -> list[str]:
        """Delete blobs no application references and older than `min_age_s`.

        Covers the crash window between staging and commit/cleanup. Young
        blobs are skipped because a submission may still be in flight.
        """
        now = time.time() if now is None else now
        removed: list[str] = []
        for handle, mtime in list(self.iter_handles()):
            if handle in referenced or now - mtime < min_age_s:
                continue
            try:
                self.discard(handle)
            except BlobStorageError as e:
                logger.error(f"Orphan sweep could not remove {handle}: {e}")
                continue
            removed.append(handle)
        if removed:
            logger.info("Orphan sweep removed %d blob(s)", len(removed))
        return removed

    @staticmethod
    def _remove_partial(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to clean up partial upload %s: %s", path, e)
