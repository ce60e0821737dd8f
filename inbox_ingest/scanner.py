"""Line- and token-oriented scanners over raw message text.

Each function is pure and linear in the size of its input.  Keyword matching
is ASCII case-insensitive; lowering goes through a translation table so
offsets in the lowered copy line up with the original text.
"""

from __future__ import annotations

import base64
import binascii
import string

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

BOUNDARY_PARAM = 'boundary="'
DISPOSITION_KEYWORD = "content-disposition: attachment;"
FILENAME_PARAM = 'filename="'


def lower_ascii(text: str) -> str:
    """Lower-case ASCII letters only, preserving length."""
    return text.translate(_ASCII_LOWER)


# ------------------------------------------------------------------
# Header block
# ------------------------------------------------------------------


def find_separator(text: str) -> tuple[int, int] | None:
    """Locate the first blank line in *text*.

    Accepts ``\\n\\n`` with an optional ``\\r`` before either newline.
    Returns ``(start, end)`` where ``text[start:end]`` is the separator, or
    ``None`` when the text has no blank line.
    """
    pos = text.find("\n")
    while pos != -1:
        after = pos + 1
        if text.startswith("\n", after):
            end = after + 1
        elif text.startswith("\r\n", after):
            end = after + 2
        else:
            pos = text.find("\n", after)
            continue
        start = pos - 1 if pos > 0 and text[pos - 1] == "\r" else pos
        return start, end
    return None


def split_header_block(text: str) -> tuple[str, str]:
    """Split *text* into ``(header_block, body)`` at the first blank line.

    Without a blank line the header block is empty and the whole text is body.
    """
    found = find_separator(text)
    if found is None:
        return "", text
    start, end = found
    return text[:start], text[end:]


def extract_header(header_block: str, name: str) -> str | None:
    """Return the trimmed value of the first ``name:`` line in *header_block*.

    Matching is per physical line and case-insensitive on the name; folded
    continuation lines are not joined.  Lines with an empty value do not
    count as a match.
    """
    prefix = lower_ascii(name) + ":"
    for line in header_block.split("\n"):
        line = line.removesuffix("\r")
        if lower_ascii(line[: len(prefix)]) != prefix:
            continue
        value = line[len(prefix) :].strip()
        if value:
            return value
    return None


# ------------------------------------------------------------------
# Preview
# ------------------------------------------------------------------


def strip_tags(text: str) -> str:
    """Replace every ``<...>`` span with a single space.

    A ``<`` with no closing ``>`` after it is left in place.
    """
    pieces: list[str] = []
    pos = 0
    while True:
        open_at = text.find("<", pos)
        if open_at == -1:
            break
        close_at = text.find(">", open_at + 1)
        if close_at == -1:
            break
        pieces.append(text[pos:open_at])
        pieces.append(" ")
        pos = close_at + 1
    pieces.append(text[pos:])
    return "".join(pieces)


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to one space and trim both ends."""
    return " ".join(text.split())


def derive_preview(body: str, limit: int = 100) -> str:
    """Tag-stripped, whitespace-collapsed excerpt of at most *limit* characters."""
    if not body:
        return ""
    return collapse_whitespace(strip_tags(body))[:limit]


# ------------------------------------------------------------------
# Multipart
# ------------------------------------------------------------------


def find_boundary(text: str) -> str | None:
    """Return the first non-empty ``boundary="TOKEN"`` value in *text*."""
    lowered = lower_ascii(text)
    pos = lowered.find(BOUNDARY_PARAM)
    while pos != -1:
        start = pos + len(BOUNDARY_PARAM)
        end = text.find('"', start)
        if end == -1:
            return None
        if end > start:
            return text[start:end]
        pos = lowered.find(BOUNDARY_PARAM, pos + 1)
    return None


def split_parts(body: str, boundary: str) -> list[str]:
    """Split *body* on the literal ``--boundary`` delimiter."""
    return body.split(f"--{boundary}")


def find_attachment_filename(part: str) -> str | None:
    """Filename from ``Content-Disposition: attachment; filename="NAME"``.

    The keyword match is case-insensitive, at least one whitespace character
    must follow the semicolon and the name must be double-quoted.
    """
    lowered = lower_ascii(part)
    pos = lowered.find(DISPOSITION_KEYWORD)
    while pos != -1:
        cursor = pos + len(DISPOSITION_KEYWORD)
        name_at = cursor
        while name_at < len(part) and part[name_at].isspace():
            name_at += 1
        if name_at > cursor and lowered.startswith(FILENAME_PARAM, name_at):
            start = name_at + len(FILENAME_PARAM)
            end = part.find('"', start)
            if end > start:
                return part[start:end]
        pos = lowered.find(DISPOSITION_KEYWORD, pos + 1)
    return None


def find_header_value(part: str, name: str, stops: str = "\r\n") -> str | None:
    """First ``Name: value`` occurrence anywhere in *part*.

    The value runs up to the first character in *stops* and is trimmed.
    """
    keyword = lower_ascii(name) + ": "
    lowered = lower_ascii(part)
    pos = lowered.find(keyword)
    while pos != -1:
        start = pos + len(keyword)
        end = start
        while end < len(part) and part[end] not in stops:
            end += 1
        value = part[start:end].strip()
        if value:
            return value
        pos = lowered.find(keyword, pos + 1)
    return None


def payload_offset(part: str) -> int | None:
    """Offset of the payload after the part's own header lines.

    ``None`` when the part has no blank line or begins with one.
    """
    found = find_separator(part)
    if found is None or found[0] == 0:
        return None
    return found[1]


def decode_base64(payload: str) -> bytes:
    """Decode a line-wrapped base64 payload with ``atob``-style leniency.

    Whitespace is dropped and missing ``=`` padding is tolerated.  Raises
    :class:`ValueError` (usually :class:`binascii.Error`) when the length
    leaves a single dangling character, when ``=`` appears before the end,
    or on characters outside the alphabet.
    """
    compact = "".join(payload.split())
    if len(compact) % 4 == 0:
        if compact.endswith("=="):
            compact = compact[:-2]
        elif compact.endswith("="):
            compact = compact[:-1]
    if len(compact) % 4 == 1:
        raise binascii.Error("truncated base64 payload")
    if "=" in compact:
        raise binascii.Error("misplaced base64 padding")
    return base64.b64decode(compact + "=" * (-len(compact) % 4), validate=True)
