"""Text helpers: wrapping, byte-limited names, block joining and small formatters."""

from __future__ import annotations

import math
import re

from wcwidth import wcwidth

BASE_CHARS = (
    "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
    "ｱｲｳｴｵｶｷｸｹｺｻｼｽｾｿﾀﾁﾂﾃﾄﾅﾆﾇﾈﾉﾊﾋﾌﾍﾎﾏﾐﾑﾒﾓﾔﾕﾖﾗﾘﾙﾚﾛﾜﾝ"
    "!@#$%^&*(){}[]:;'\\/é¥"
)

WRAP_MARK = "⏎"
_NBSP = "\u00a0"
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _cells(text: str) -> int:
    """Terminal cell width of ``text``; non-printing characters count as zero."""
    return sum(max(wcwidth(char), 0) for char in text)


def char_wrap(text: str, limit: int) -> str:
    """Hard-wrap every line to about ``limit`` cells, marking each break with ⏎.

    The number of characters per line is scaled by the average cell width of
    what remains of the line, so wide characters wrap earlier.  Every line of
    the result ends with a newline.
    """
    pieces: list[str] = []
    fit = 0
    for line in text.split("\n"):
        rest = line
        while True:
            if rest:
                ratio = _cells(rest) / len(rest)
                if ratio > 0:
                    fit = math.floor(limit / ratio)
            if len(rest) <= fit:
                pieces.append(rest + "\n")
                break
            if fit < 2:
                raise ValueError(f"line cannot be wrapped to a width of {limit}")
            pieces.append(rest[: fit - 1] + WRAP_MARK + "\n")
            rest = rest[fit - 1 :]
    return "".join(pieces)


def word_wrap(text: str, limit: int) -> str:
    """Wrap ``text`` at word boundaries so lines stay within ``limit`` characters.

    Words longer than the limit are left whole; existing newlines are kept.
    """
    out: list[str] = []
    word: list[str] = []
    spaces: list[str] = []
    current = 0

    def flush() -> None:
        nonlocal current
        current += len(spaces) + len(word)
        out.extend(spaces)
        out.extend(word)
        spaces.clear()
        word.clear()

    for char in text:
        if char == "\n":
            if not word:
                if current + len(spaces) <= limit:
                    out.extend(spaces)
                spaces.clear()
            else:
                flush()
            out.append(char)
            current = 0
        elif char.isspace() and char != _NBSP:
            if not spaces or word:
                flush()
            spaces.append(char)
        else:
            word.append(char)
            if current + len(spaces) + len(word) > limit and len(word) < limit:
                out.append("\n")
                current = 0
                spaces.clear()

    if not word:
        if current + len(spaces) <= limit:
            out.extend(spaces)
    else:
        out.extend(spaces)
        out.extend(word)
    return "".join(out)


def limit_string_to_bytes(text: str, max_bytes: int) -> str:
    """Cut ``text`` so its UTF-8 form fits in ``max_bytes`` without splitting a character."""
    if max_bytes <= 0:
        return ""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def add_ext(name: str, ext: str, limit: int) -> str:
    """Append ``ext`` to ``name``, shortening ``name`` so the whole fits in ``limit`` bytes."""
    return limit_string_to_bytes(name, limit - len(ext.encode("utf-8"))) + ext


def blocks_fmt(blocks: list[str]) -> str:
    """Join non-empty blocks, with a blank line between a block and a non-empty next one."""
    parts: list[str] = []
    last = len(blocks) - 1
    for index, block in enumerate(blocks):
        if not block:
            continue
        parts.append(block)
        if blocks[min(index + 1, last)] and index < last:
            parts.append("\n")
    return "".join(parts)


def int_to_base(n: int, base: int) -> str:
    """Write ``n`` in ``base`` using :data:`BASE_CHARS`; the base is capped at its length.

    Zero and negative numbers give an empty string.
    """
    base = min(base, len(BASE_CHARS))
    if base < 2:
        raise ValueError(f"base must be at least 2, got {base}")
    digits: list[str] = []
    while n > 0:
        n, remainder = divmod(n, base)
        digits.append(BASE_CHARS[remainder])
    return "".join(reversed(digits))


def string_number_to_bool(value: str) -> bool:
    """Read an environment flag: a non-zero integer is true, anything else false."""
    if not value or not _INTEGER.fullmatch(value):
        return False
    return int(value) != 0


def geometry(width: int, height: int) -> str:
    """Format a size as ``WIDTHxHEIGHT``."""
    return f"{width}x{height}"