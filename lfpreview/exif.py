"""Metadata extraction through exiftool and its formatting into info blocks."""

from __future__ import annotations

import json
import os
import re
import subprocess
from collections.abc import Mapping, Sequence
from typing import Any

from .hashing import CACHE_BYTE_LIMIT
from .textfmt import add_ext, blocks_fmt


def _tag_groups(*groups: str) -> list[list[str]]:
    """Build tag groups from whitespace-separated tag names."""
    return [group.split() for group in groups]


VIDEO_TAGS = _tag_groups(
    "Duration FileSize",
    "ImageSize VideoFrameRate",
    "VideoCodecID MIMEType",
    "Megapixels",
)

MUSIC_TAGS = _tag_groups(
    "Title Duration",
    "Genre Album Artist Composer Date",
    "SampleRate Channels MIMEType",
)

IMAGE_TAGS = _tag_groups(
    "ImageSize Megapixels FileSize",
    "MIMEType ColorSpace ColorPrimaries Compression",
    "BitDepth BitsPerSample YCbCrSubSampling ChromaFormat",
)

# Tags whose label is their CamelCase name split into words.
_SPACED_TAGS = frozenset(
    """
    Title Genre Composer PictureBitsPerPixel FileModifyDate FileAccessDate
    PictureDescription Directory TrackNumber Duration Date FileTypeExtension
    FileSize SampleRate FileName FileType Album Artist Comment ImageSize
    YCbCrSubSampling BitsPerSample ColorSpace BitDepth ChromaFormat
    ColorPrimaries
    """.split()
)

# Tags whose label is chosen by hand.
_LABEL_OVERRIDES = {"MIMEType": "Media Type"}

_WORD = re.compile(r"[A-Z][a-z]*|[a-z]+|\d+")


def display_name(tag: str) -> str:
    """Human-readable label for an exiftool tag."""
    if tag in _LABEL_OVERRIDES:
        return _LABEL_OVERRIDES[tag]
    if tag in _SPACED_TAGS:
        return " ".join(_WORD.findall(tag))
    return tag


def run_exiftool(path: str | os.PathLike[str]) -> list[dict[str, Any]]:
    """Run exiftool on ``path`` and return its per-file field mappings."""
    try:
        result = subprocess.run(
            ["exiftool", "-j", os.fspath(path)], capture_output=True, check=False
        )
    except OSError as exc:
        raise RuntimeError(f"cannot run exiftool: {exc}") from exc
    if not result.stdout.strip():
        message = result.stderr.decode("utf-8", "replace").strip()
        raise RuntimeError(f"exiftool gave no output: {message}")
    return json.loads(result.stdout)


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + " ".join(map(_render_value, value)) + "]"
    return str(value)


def _render_block(
    file_infos: Sequence[Mapping[str, Any]], block: Sequence[str]
) -> str:
    lines = []
    for tag in block:
        label = display_name(tag)
        lines.extend(
            f"{label}: {_render_value(info[tag])}\n"
            for info in file_infos
            if tag in info
        )
    return "".join(lines)


def format_exif(
    file_infos: Sequence[Mapping[str, Any]], tags: Sequence[Sequence[str]]
) -> str:
    """Render the requested tags, one block per tag group."""
    return blocks_fmt([_render_block(file_infos, block) for block in tags])


def get_metadata(
    path: str | os.PathLike[str],
    tags: Sequence[Sequence[str]],
    cache_dir: str | os.PathLike[str],
    cache_key: str,
) -> str:
    """Formatted metadata for ``path``, read from or stored in the JSON cache."""
    cache = os.path.join(cache_dir, add_ext(cache_key, ".json", CACHE_BYTE_LIMIT))
    if os.path.exists(cache):
        with open(cache, encoding="utf-8") as handle:
            infos = json.load(handle)
    else:
        infos = run_exiftool(path)
        fd = os.open(cache, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(infos, handle)
    return format_exif(infos, tags)


def info_section(
    path: str | os.PathLike[str],
    tags: Sequence[Sequence[str]],
    separator: str,
    cache_dir: str | os.PathLike[str],
    cache_key: str,
) -> str:
    """Metadata framed by separator lines."""
    body = get_metadata(path, tags, cache_dir, cache_key)
    return f"{separator}\n{body}{separator}\n"