"""
edd/errors.py

Fatal parser exceptions and user-facing error classification.
"""

from __future__ import annotations

_MAX_RAW_DIAGNOSTIC_CHARS = 800


class EDDParseError(Exception):
    """Base exception for fatal EDD parsing failures."""


class EDDFormatError(EDDParseError):
    """Raised when the file does not match the EDD column contract."""


class EDDResourceLimitError(EDDParseError):
    """Raised when the file exceeds the configured size or row limits."""


# Ordered (keywords, message) rules. A rule matches when any keyword group
# matches; a group is a tuple of substrings that must all be present.
_CLASSIFICATION_RULES: tuple[tuple[tuple[tuple[str, ...], ...], str], ...] = (
    (
        (("header", "mismatch"), ("header", "expected")),
        "File does not match the expected 26-column EDD format. "
        "Check that this is a standard lab data Electronic Data Deliverable.",
    ),
    (
        (("no data rows",), ("no rows",)),
        "File contains no data rows. Only headers were found.",
    ),
    (
        (("no worksheet",), ("no sheet",)),
        "Could not find a valid worksheet in this Excel file.",
    ),
    (
        (("row limit",), ("too many rows",), ("50,000",), ("50000",)),
        "Lab data file exceeds the 50,000 row limit. Please split into smaller files.",
    ),
    (
        (("file is too large",), ("size limit",)),
        "Lab data file exceeds the 50 MB size limit. Please split into smaller files.",
    ),
    (
        (("unsupported format",), ("not supported",)),
        "File format not supported. Expected .xlsx, .xls, or .csv.",
    ),
    (
        (("password",), ("encrypted",)),
        "File is password protected. Please upload an unlocked version.",
    ),
    (
        (("corrupt",), ("malformed",), ("invalid",)),
        "File could not be read. It may be corrupted or in an unsupported format.",
    ),
    (
        (("worker",), ("compute",), ("resource",), ("memory",)),
        "Parser ran out of compute resources. The file may be too large.",
    ),
    (
        (("timeout",), ("timed out",), ("abort",)),
        "Processing timed out. The file may be too large.",
    ),
)


def truncate_diagnostic(message: str) -> str:
    if len(message) > _MAX_RAW_DIAGNOSTIC_CHARS:
        return message[:_MAX_RAW_DIAGNOSTIC_CHARS] + "..."
    return message


def classify_parse_error(exc: BaseException | str) -> list[str]:
    """
    Convert a parse failure into ``[user_message, raw_diagnostic]``.

    Unrecognized failures return only the truncated raw diagnostic.
    """

    message = str(exc)
    lowered = message.lower()
    raw = truncate_diagnostic(message)

    for keyword_groups, user_message in _CLASSIFICATION_RULES:
        if any(all(keyword in lowered for keyword in group) for group in keyword_groups):
            return [user_message, raw]
    return [raw]
