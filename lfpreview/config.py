"""Run-time settings, cache locations and small filesystem helpers."""

from __future__ import annotations

import argparse
import os
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .textfmt import int_to_base, string_number_to_bool

HW_TEST_BASE = 99964


@dataclass
class Settings:
    """Everything the previewer needs to know about one run."""

    file: str
    ext: str
    width: int
    height: int
    font_ratio: str = "1/2"
    file_font_ratio: str = "1x2"
    preview_format: str = ""
    chafa_fmt: list[str] = field(default_factory=list)
    chafa_dither: list[str] = field(default_factory=list)
    chafa_colors: list[str] = field(default_factory=lambda: ["--colors=full"])
    no_info: bool = False
    debug_time: bool = False
    disable_compat: bool = False
    debug_print_exif: bool = False
    disable_wordwrap: bool = False
    print_output: bool = True
    debug_hw_test: bool = False
    debug_len_test: bool = False

    @property
    def separator(self) -> str:
        """A rule of ``=`` as wide as the preview."""
        return "=" * self.width


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _extension(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def chafa_font_ratio(environ: Mapping[str, str]) -> str:
    """The font ratio handed to chafa, from FONT_RATIO or the preview format's default."""
    preview_format = environ.get("LF_CHAFA_PREVIEW_FORMAT", "")
    default = "1/2"
    if preview_format == "sixel":
        default = "1/1"
    if preview_format == "kitty" and environ.get(
        "LF_CHAFA_PREVIEW_FORMAT_OVERRIDE_KITTY_RATIO", ""
    ) != "1":
        default = "100/225"
    return environ.get("FONT_RATIO", "") or default


def load_settings(
    argv: Sequence[str],
    environ: Mapping[str, str] | None = None,
    terminal_size: tuple[int, int] | None = None,
) -> Settings:
    """Build settings from ``FILE [WIDTH [HEIGHT]]`` arguments and the environment.

    ``terminal_size`` is ``(columns, lines)``; it is asked for only when a
    dimension is not given on the command line.
    """
    env = os.environ if environ is None else environ
    parser = argparse.ArgumentParser(prog="lfpreview")
    parser.add_argument("-n", "--no_info", action="store_true", help="no info section")
    parser.add_argument("file")
    parser.add_argument("width", nargs="?")
    parser.add_argument("height", nargs="?")
    parser.add_argument("rest", nargs="*")
    args = parser.parse_args(list(argv))

    def term() -> tuple[int, int]:
        if terminal_size is not None:
            return terminal_size
        size = shutil.get_terminal_size()
        return size.columns, size.lines

    arg_width = _parse_int(args.width)
    if arg_width is not None and arg_width - 2 > 0:
        width = arg_width - 2
    else:
        width = term()[0]

    arg_height = _parse_int(args.height)
    if arg_height is not None and arg_height - 2 > 0:
        height = arg_height
    else:
        height = term()[1] - 2

    preview_format = env.get("LF_CHAFA_PREVIEW_FORMAT", "")
    ratio = chafa_font_ratio(env)
    dither = env.get("LF_CHAFA_PREVIEW_DITHER", "")
    colors = env.get("LF_CHAFA_PREVIEW_COLORS", "")

    return Settings(
        file=args.file,
        ext=_extension(args.file),
        width=width,
        height=height,
        font_ratio=ratio,
        file_font_ratio=ratio.replace("/", "x"),
        preview_format=preview_format,
        chafa_fmt=["-f", preview_format] if preview_format else [],
        chafa_dither=[f"--dither={dither}"] if dither else [],
        chafa_colors=[f"--colors={colors}" if colors else "--colors=full"],
        no_info=args.no_info,
        debug_time=string_number_to_bool(env.get("LF_CHAFA_PREVIEW_DEBUG_TIME", "")),
        disable_compat=string_number_to_bool(env.get("LF_CHAFA_PREVIEW_DISABLE_COMPAT", "")),
        debug_print_exif=string_number_to_bool(
            env.get("LF_CHAFA_PREVIEW_DEBUG_EXIF_PRINT", "")
        ),
        disable_wordwrap=env.get("LF_CHAFA_PREVIEW_DISABLE_WORDWRAP", "") == "1",
        print_output=env.get("LF_CHAFA_PREVIEW_PRINT_OUTPUT", "") != "0",
        debug_hw_test=env.get("LF_CHAFA_PREVIEW_DEBUG_HW_TEST", "") == "1",
        debug_len_test=env.get("LF_CHAFA_PREVIEW_DEBUG_LEN_TEST", "") == "1",
    )


def _home(environ: Mapping[str, str]) -> str:
    return environ.get("HOME") or os.path.expanduser("~")


def _ensure(path: str, mode: int = 0o777) -> str:
    os.makedirs(path, mode=mode, exist_ok=True)
    return path


def lf_cache_dir(environ: Mapping[str, str] | None = None) -> str:
    """The previewer's cache root, created if missing."""
    env = os.environ if environ is None else environ
    base = env.get("XDG_CACHE_HOME", os.path.join(_home(env), ".cache"))
    return _ensure(os.path.join(base, "lf-preview"))


def thumbnail_cache_dir(environ: Mapping[str, str] | None = None) -> str:
    """Directory for rendered thumbnails, created if missing."""
    return _ensure(os.path.join(lf_cache_dir(environ), "thumbnails"))


def metadata_cache_dir(environ: Mapping[str, str] | None = None) -> str:
    """Directory for cached metadata, created private if missing."""
    return _ensure(os.path.join(lf_cache_dir(environ), "metadata", "v2"), 0o700)


def config_dir(environ: Mapping[str, str] | None = None) -> str:
    """The user's configuration base directory."""
    env = os.environ if environ is None else environ
    return env.get("XDG_CONFIG_HOME", os.path.join(_home(env), ".config"))


def find_executable(executable: str, default: str) -> str:
    """Full path of ``executable`` in PATH, or ``default`` when it is not found."""
    for directory in os.environ.get("PATH", "").split(os.pathsep):
        candidate = directory + os.sep + executable
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return default


def file_size_mb(path: str | os.PathLike[str]) -> float:
    """File size in decimal megabytes."""
    return os.stat(path).st_size * 1e-6


def hw_test(width: int, height: int) -> str:
    """A ruler pattern that shows how much of the preview area is visible."""
    parts = [int_to_base(i, HW_TEST_BASE) for i in range(1, width + 1)]
    parts += [int_to_base(i - width, HW_TEST_BASE) for i in range(width, width + 51)]
    parts.append("\n")
    for i in range(2, height + 1):
        parts.append(f"{int_to_base(i, HW_TEST_BASE)}   |   width: {width} hight: {height}\n")
    for i in range(height, height + 51):
        parts.append(int_to_base(i + 1 - height, HW_TEST_BASE) + "\n")
    return "".join(parts)