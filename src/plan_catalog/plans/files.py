"""On-disk storage for plan PDFs.

Uploads are written under a single upload root with generated names. The
stored ``filePath`` is relative to the working directory, and lookups go
through a short fallback list so rows written by older deployments (absolute
container paths, a ``server/uploads`` layout) still resolve until they are
relinked.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from starlette.concurrency import run_in_threadpool

from ..exceptions import UploadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
PDF_MAGIC = b"%PDF"


@dataclass(frozen=True)
class StoredFile:
    path: Path
    file_path: str  # value persisted on the plan
    size: int


@dataclass(frozen=True)
class ResolvedFile:
    path: Path
    direct: bool  # found at the stored path without a fallback


def _basename(stored: str) -> str:
    return stored.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


class PlanFileStore:
    def __init__(self, upload_dir: Path | str, *, max_bytes: int, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or Path.cwd()).resolve()
        root = Path(upload_dir)
        self.upload_dir = root if root.is_absolute() else self.base_dir / root
        self.max_bytes = max_bytes

    def generate_name(self, original_name: Optional[str]) -> str:
        ext = Path(original_name or "").suffix.lower() or ".pdf"
        return f"{int(time.time() * 1000)}-{secrets.randbelow(1_000_000_000):09d}{ext}"

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.base_dir).as_posix()
        except ValueError:
            return str(path)

    async def save(self, source: BinaryIO, original_name: Optional[str]) -> StoredFile:
        """Copy ``source`` into the upload root, enforcing ``max_bytes``.

        A partial file is removed before :class:`UploadTooLargeError` propagates.
        """
        target = self.upload_dir / self.generate_name(original_name)
        size = await run_in_threadpool(self._copy, source, target)
        logger.debug("Stored upload %s (%d bytes)", target, size)
        return StoredFile(path=target, file_path=self.relative(target), size=size)

    def _copy(self, source: BinaryIO, target: Path) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        try:
            with open(target, "xb") as out:
                while chunk := source.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise UploadTooLargeError()
                    out.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise
        return written

    def candidates(self, stored: Optional[str]) -> list[Path]:
        """Ordered lookup locations for a stored ``filePath``."""
        if not stored:
            return []
        name = _basename(stored)
        raw = Path(stored)
        paths = [raw] if raw.is_absolute() else [self.base_dir / raw, self.base_dir.parent / raw]
        paths.append(self.upload_dir / name)
        paths.append(self.base_dir / "server" / "uploads" / name)
        return list(dict.fromkeys(paths))

    def resolve(self, stored: Optional[str]) -> Optional[ResolvedFile]:
        for index, path in enumerate(self.candidates(stored)):
            if path.is_file():
                return ResolvedFile(path=path, direct=(index == 0))
        return None

    async def locate(self, stored: Optional[str]) -> Optional[ResolvedFile]:
        return await run_in_threadpool(self.resolve, stored)

    def canonical_path(self, stored: str) -> str:
        return self.relative(self.upload_dir / _basename(stored))

    def remove(self, path: Path) -> bool:
        """Best-effort delete. Returns True when a file was removed."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Could not remove %s: %s", path, exc)
            return False
        return True

    async def discard(self, path: Path) -> bool:
        return await run_in_threadpool(self.remove, path)

    async def is_intact(self, path: Path) -> bool:
        """False for an empty file or one without the PDF header."""
        return await run_in_threadpool(self._intact, path)

    def _intact(self, path: Path) -> bool:
        return path.stat().st_size > 0 and self.looks_like_pdf(path)

    @staticmethod
    def looks_like_pdf(path: Path) -> bool:
        with open(path, "rb") as fh:
            return fh.read(len(PDF_MAGIC)) == PDF_MAGIC
