"""Turn ZIP bytes into candidate skill folders."""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from dataclasses import dataclass

from skillstore.config import settings
from skillstore.errors import ValidationError
from skillstore.schemas.upload import ExtractedFile, SkillFolder
from skillstore.utils.file_types import BINARY_SAMPLE_SIZE, is_binary
from skillstore.utils.validation import FILE_CONTENT_MAX

logger = logging.getLogger(__name__)

_IGNORED_ROOTS = {"__MACOSX"}


@dataclass
class ArchiveEntry:
    path: str
    content: bytes
    is_directory: bool
    size: int = 0
    truncated: bool = False  # only a leading sample was read


def _read_entry(zf: zipfile.ZipFile, info: zipfile.ZipInfo, max_entry_bytes: int) -> ArchiveEntry:
    if info.is_dir():
        return ArchiveEntry(path=info.filename, content=b"", is_directory=True)
    if info.file_size > max_entry_bytes:
        # Too big to import anyway: keep enough to tell text from binary
        with zf.open(info) as fh:
            sample = fh.read(BINARY_SAMPLE_SIZE)
        return ArchiveEntry(
            path=info.filename,
            content=sample,
            is_directory=False,
            size=info.file_size,
            truncated=True,
        )
    return ArchiveEntry(
        path=info.filename, content=zf.read(info), is_directory=False, size=info.file_size
    )


def read_zip(
    data: bytes,
    max_uncompressed_bytes: int | None = None,
    max_entry_bytes: int = FILE_CONTENT_MAX,
) -> list[ArchiveEntry]:
    """Flatten a ZIP archive into its entries, in archive order.

    Declared entry sizes are checked before anything is decompressed, and
    zipfile never yields more than an entry's declared size.
    """
    limit = max_uncompressed_bytes or settings.max_uncompressed_bytes
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            infos = zf.infolist()
            total = sum(info.file_size for info in infos)
            if total > limit:
                raise ValidationError(
                    f"ZIP contents exceed maximum uncompressed size of {limit // (1024 * 1024)}MB"
                )
            return [_read_entry(zf, info, max_entry_bytes) for info in infos]
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error) as exc:
        raise ValidationError(f"Invalid ZIP archive: {exc}") from exc


def extract_skill_folders(entries: list[ArchiveEntry]) -> list[SkillFolder]:
    """Group entries by their top-level directory.

    Files at the archive root belong to no folder and are dropped. Binary
    files are kept as markers (``is_binary=True``, empty content), as are
    oversized text files, whose ``size`` still fails folder validation.
    """
    folders: dict[str, list[ExtractedFile]] = {}

    for entry in entries:
        root, sep, relative = entry.path.replace("\\", "/").partition("/")
        if root in _IGNORED_ROOTS or not root:
            continue

        if entry.is_directory:
            # An empty top-level directory is still a candidate (and an invalid one)
            folders.setdefault(root, [])
            continue
        if not sep or not relative:
            logger.debug("Skipping root-level archive entry %s", entry.path)
            continue

        binary = is_binary(entry.content)
        if binary or entry.truncated:
            content = ""
        else:
            content = entry.content.decode("utf-8", errors="replace")
        folders.setdefault(root, []).append(
            ExtractedFile(path=relative, content=content, is_binary=binary, size=entry.size)
        )

    return [SkillFolder(name=name, files=files) for name, files in folders.items()]
