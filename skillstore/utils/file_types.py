"""Binary sniffing and script-language detection."""

from __future__ import annotations

from pathlib import PurePosixPath

SCRIPT_LANGUAGES: dict[str, str] = {
    ".py": "python",
    ".sh": "bash",
    ".js": "javascript",
    ".ts": "typescript",
}

BINARY_SAMPLE_SIZE = 8192
NON_PRINTABLE_RATIO = 0.1

_TEXT_CONTROL_BYTES = {9, 10, 13}  # tab, newline, carriage return


def script_language(path: str) -> str | None:
    """Return the script language implied by ``path``'s extension, if any."""
    return SCRIPT_LANGUAGES.get(PurePosixPath(path.replace("\\", "/")).suffix.lower())


def is_executable(path: str) -> bool:
    return script_language(path) is not None


def is_binary(content: bytes) -> bool:
    """Heuristic: a null byte, or >10% non-printable bytes, in the first 8KB.

    Empty content is text. Bytes 0x80-0x9F count as non-printable, which
    includes some UTF-8 continuation bytes: dense non-Latin text (e.g. CJK)
    can be misread as binary.
    """
    sample = content[:BINARY_SAMPLE_SIZE]
    if not sample:
        return False
    if 0 in sample:
        return True

    non_printable = sum(
        1 for b in sample if (b < 32 and b not in _TEXT_CONTROL_BYTES) or 126 < b < 160
    )
    return non_printable / len(sample) > NON_PRINTABLE_RATIO
