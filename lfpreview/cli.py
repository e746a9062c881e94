"""Command entry point: pick a preview for a file and print it."""

from __future__ import annotations

import os
import sys
import time
from collections.abc import Sequence

from wcwidth import wcswidth

from .config import Settings, file_size_mb, hw_test, load_settings
from .exif import IMAGE_TAGS, MUSIC_TAGS, VIDEO_TAGS
from .hashing import file_key
from .preview import _mime_for, image_with_info
from .textfmt import char_wrap, word_wrap

IGNORED_FOLDERS = (".ssh", "ssh")
IMAGE_LIMIT_MB = 100
TEXT_LIMIT_MB = 0.1
TOO_BIG = "file to big to preview"

_TAGS = {"image": IMAGE_TAGS, "audio": MUSIC_TAGS, "video": VIDEO_TAGS}


def media_category(path: str | os.PathLike[str]) -> str:
    """Top-level media type of a file by its extension, e.g. ``image``; empty if unknown."""
    return _mime_for(path).split(";")[0].split("/")[0]


def text_preview(path: str | os.PathLike[str], width: int, wrap: bool = True) -> str:
    """Text shown for a non-media file: its contents, or a notice why they are withheld."""
    size = file_size_mb(path)
    if size > TEXT_LIMIT_MB:
        return f"{TOO_BIG}\n{size} mb"

    folder = os.path.basename(os.path.dirname(os.fspath(path)))
    if folder in IGNORED_FOLDERS:
        listing = "".join(f'"{name}" ' for name in IGNORED_FOLDERS)
        text = f"file in ignored folders list: {listing}\n"
    else:
        with open(path, "rb") as handle:
            text = handle.read().decode("utf-8", errors="replace")

    if wrap:
        text = char_wrap(word_wrap(text, width), width)
    return text


def build_preview(settings: Settings) -> str:
    """The full preview text for the file named in ``settings``."""
    start = time.perf_counter()
    category = media_category(settings.file)

    if category in _TAGS:
        if category == "image" and file_size_mb(settings.file) > IMAGE_LIMIT_MB:
            output = TOO_BIG
        else:
            output = image_with_info(
                settings.file,
                settings.width,
                settings.height,
                _TAGS[category],
                category,
                settings,
                file_key(settings.file),
            )
    else:
        output = text_preview(settings.file, settings.width, not settings.disable_wordwrap)

    if settings.debug_time:
        elapsed = time.perf_counter() - start
        mime_parts = _mime_for(settings.file).split(";")[0].split("/")
        output += f"{settings.separator}\ntotal time:  {elapsed:.6f}s\n[{' '.join(mime_parts)}]"
    return output


def _len_test() -> str:
    sample = "にっぽん"
    return f"{sample}\n12345678\nLength of the string: {wcswidth(sample)}\n"


def main(argv: Sequence[str] | None = None) -> int:
    """Run the previewer on ``FILE [WIDTH [HEIGHT]]``; returns the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    settings = load_settings(args)

    if settings.debug_hw_test:
        sys.stdout.write(hw_test(settings.width, settings.height))
        return 0
    if settings.debug_len_test:
        sys.stdout.write(_len_test())
        return 0

    try:
        output = build_preview(settings)
    except (OSError, ValueError, RuntimeError) as exc:
        print(f"lfpreview: {exc}", file=sys.stderr)
        return 1

    if settings.print_output:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())