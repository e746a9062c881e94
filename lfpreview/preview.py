"""Thumbnail rendering and the combined thumbnail-plus-metadata preview."""

from __future__ import annotations

import io
import mimetypes
import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from PIL import Image, UnidentifiedImageError

from .config import Settings, find_executable, metadata_cache_dir, thumbnail_cache_dir
from .exif import info_section
from .external import INKSCAPE, THUMBNAILER, Converter, chafa_render, is_svgz, svgz_to_svg
from .hashing import CACHE_BYTE_LIMIT
from .music import embedded_picture
from .textfmt import geometry, limit_string_to_bytes

COMPAT_TYPES = frozenset({"image/avif", "image/jxl"})
_PNG_MODES = frozenset({"1", "L", "LA", "P", "RGB", "RGBA"})


class DecodeError(ValueError):
    """An image could not be decoded into something chafa can show."""


def _build_mime_types() -> mimetypes.MimeTypes:
    types = mimetypes.MimeTypes()
    for ext, mime in (
        (".webp", "image/webp"),
        (".avif", "image/avif"),
        (".avifs", "image/avif"),
        (".jxl", "image/jxl"),
        (".svgz", "image/svg+xml"),
    ):
        types.add_type(mime, ext)
    return types


MIME_TYPES = _build_mime_types()


def _mime_for(path: str | os.PathLike[str]) -> str:
    """Media type guessed from the extension of ``path``, or an empty string."""
    base = os.fspath(path).rsplit("/", 1)[-1]
    dot = base.rfind(".")
    if dot < 0:
        return ""
    ext = base[dot:]
    table = MIME_TYPES.types_map[True]
    return table.get(ext) or table.get(ext.lower(), "")


def _reencode(data: bytes) -> bytes:
    """Decode an image with Pillow and re-encode it as PNG."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode not in _PNG_MODES:
                img = img.convert("RGBA")
            buffer = io.BytesIO()
            img.save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise DecodeError(f"cannot decode image: {exc}") from exc
    return buffer.getvalue()


def thumbnail_source(
    path: str | os.PathLike[str], kind: str, disable_compat: bool = False
) -> bytes:
    """Image bytes to hand to chafa for a file of the given kind.

    ``kind`` is ``"image"``, ``"audio"`` or ``"video"``.
    """
    if kind == "audio":
        picture = embedded_picture(path)
        if not picture:
            raise DecodeError(f"no embedded picture in {os.fspath(path)!r}")
        return picture
    if kind == "video":
        return Converter(find_executable(THUMBNAILER, THUMBNAILER)).video_thumbnail(path)
    if kind == "image":
        mime = _mime_for(path)
        with open(path, "rb") as handle:
            data = handle.read()
        if mime in COMPAT_TYPES and not disable_compat:
            return _reencode(data)
        if mime == "image/svg+xml":
            if is_svgz(os.fspath(path)):
                data = svgz_to_svg(data)
            return Converter(find_executable("inkscape", INKSCAPE)).svg_to_png(data)
        return data
    raise ValueError(f"unknown thumbnail kind {kind!r}")


def render_thumbnail(
    path: str | os.PathLike[str],
    width: int,
    height: int,
    kind: str,
    settings: Settings,
    cache_key: str,
) -> str:
    """Chafa rendering of the file's thumbnail, served from the cache when present."""
    directory = os.path.join(
        thumbnail_cache_dir(),
        settings.preview_format,
        settings.file_font_ratio,
        geometry(width, height),
    )
    os.makedirs(directory, mode=0o700, exist_ok=True)
    os.chmod(directory, 0o700)
    cache = os.path.join(directory, limit_string_to_bytes(cache_key, CACHE_BYTE_LIMIT))

    if os.path.exists(cache):
        with open(cache, encoding="utf-8", errors="replace", newline="") as handle:
            return handle.read()

    image = thumbnail_source(path, kind, settings.disable_compat)
    rendered = chafa_render(image, settings, width, height)
    fd = os.open(cache, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
        handle.write(rendered)
    return rendered


def image_with_info(
    path: str | os.PathLike[str],
    width: int,
    height: int,
    tags: Sequence[Sequence[str]],
    kind: str,
    settings: Settings,
    cache_key: str,
) -> str:
    """Thumbnail followed by the metadata section, fitted into ``height`` lines.

    When both together are too tall, the thumbnail is rendered again in the
    space the metadata leaves, or dropped if fewer than two lines remain.
    """

    def thumbnail(rows: int) -> str:
        try:
            return render_thumbnail(path, width, rows, kind, settings, cache_key)
        except DecodeError:
            return ""

    def details() -> str:
        if settings.no_info:
            return ""
        return info_section(path, tags, settings.separator, metadata_cache_dir(), cache_key)

    with ThreadPoolExecutor(max_workers=2) as pool:
        image_job = pool.submit(thumbnail, height)
        info_job = pool.submit(details)
        image = image_job.result()
        info = info_job.result()

    info_lines = info.count("\n")
    if image.count("\n") + info_lines > height:
        new_height = height - info_lines
        image = thumbnail(new_height) if new_height >= 2 else ""

    return image + info