"""Wrappers around the external converters: inkscape, ffmpegthumbnailer and chafa."""

from __future__ import annotations

import gzip
import os
import subprocess

from .config import Settings
from .textfmt import geometry

INKSCAPE = "/usr/bin/inkscape"
THUMBNAILER = "ffmpegthumbnailer"
CHAFA = "chafa"


class ConversionError(RuntimeError):
    """An external converter failed or produced nothing."""


class Converter:
    """Runs a converter binary over input data or files."""

    def __init__(self, binary: str = INKSCAPE) -> None:
        if not binary:
            raise ValueError("empty binary path")
        self.binary = binary

    def svg_to_png(self, data: bytes) -> bytes:
        """Render SVG data to PNG bytes through inkscape."""
        result = subprocess.run(
            [self.binary, "--export-type=png", "--export-filename=-", "--pipe"],
            input=data,
            capture_output=True,
            check=False,
        )
        if result.returncode != 0:
            raise ConversionError(
                f"exit status {result.returncode}\nSTDERR:\n"
                f"{result.stderr.decode('utf-8', 'replace')}"
            )
        if not result.stdout:
            raise ConversionError("got no data from inkscape")
        return result.stdout

    def video_thumbnail(self, path: str | os.PathLike[str]) -> bytes:
        """Grab a thumbnail frame of a video through ffmpegthumbnailer."""
        result = subprocess.run(
            [self.binary, "-s", "1080", "-q", "10", "-i", os.fspath(path), "-o", "/dev/stdout"],
            capture_output=True,
            check=False,
        )
        if result.returncode != 0:
            raise ConversionError(
                f"exit status {result.returncode}: "
                f"{result.stderr.decode('utf-8', 'replace').strip()}"
            )
        return result.stdout


def is_svgz(filename: str) -> bool:
    """Whether the name has a compressed-SVG extension."""
    return os.path.splitext(filename)[1].lower() == ".svgz"


def svgz_to_svg(data: bytes) -> bytes:
    """Decompress SVGZ data."""
    return gzip.decompress(data)


def chafa_command(settings: Settings, width: int, height: int) -> list[str]:
    """The chafa command line for a preview of the given size."""
    return [
        CHAFA,
        f"--font-ratio={settings.font_ratio}",
        *settings.chafa_fmt,
        *settings.chafa_dither,
        *settings.chafa_colors,
        "--color-space=din99d", "--scale=max", "-w", "9", "-O", "9",
        "-s", geometry(width, height), "--animate", "false",
        "--symbols", "block+border+space-wide+inverted+quad+extra+half+hhalf+vhalf",
        "--polite", "on", "--color-extractor=median",
    ]


def chafa_render(image: bytes, settings: Settings, width: int, height: int) -> str:
    """Render image bytes to terminal text with chafa."""
    result = subprocess.run(
        chafa_command(settings, width, height),
        input=image,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        check=False,
    )
    output = result.stdout.decode("utf-8", "replace")
    if result.returncode != 0:
        raise ConversionError(f"chafa failed ({result.returncode}): {output}")
    return output