import io
import os
import subprocess

import pytest
from PIL import Image

from lfpreview.cli import build_preview, main, media_category, text_preview
from lfpreview.config import Settings, hw_test
from lfpreview.textfmt import WRAP_MARK

_ENV_VARS = (
    "LF_CHAFA_PREVIEW_PRINT_OUTPUT",
    "LF_CHAFA_PREVIEW_DEBUG_TIME",
    "LF_CHAFA_PREVIEW_DEBUG_HW_TEST",
    "LF_CHAFA_PREVIEW_DEBUG_LEN_TEST",
    "LF_CHAFA_PREVIEW_DISABLE_WORDWRAP",
    "LF_CHAFA_PREVIEW_DISABLE_COMPAT",
    "LF_CHAFA_PREVIEW_FORMAT",
    "FONT_RATIO",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))


def _settings(path, width=20, height=10, **extra):
    path = str(path)
    return Settings(
        file=path, ext=os.path.splitext(path)[1], width=width, height=height, **extra
    )


@pytest.mark.parametrize(
    "name, category",
    [
        ("photo.png", "image"),
        ("PHOTO.PNG", "image"),
        ("pic.avif", "image"),
        ("pic.jxl", "image"),
        ("song.mp3", "audio"),
        ("clip.mp4", "video"),
        ("notes.txt", "text"),
        ("README", ""),
    ],
)
def test_media_category(name, category):
    assert media_category(name) == category


def test_text_preview_without_wrap_is_verbatim(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("first line\nsecond line\n", encoding="utf-8")
    assert text_preview(path, 40, wrap=False) == "first line\nsecond line\n"


def test_text_preview_refuses_large_files(tmp_path):
    path = tmp_path / "big.txt"
    path.write_bytes(b"x" * 100_001)
    out = text_preview(path, 40)
    assert out.startswith("file to big to preview\n")
    assert out.endswith(" mb")


def test_text_preview_hides_ignored_folders(tmp_path):
    folder = tmp_path / ".ssh"
    folder.mkdir()
    path = folder / "keyfile"
    path.write_text("private data", encoding="utf-8")
    out = text_preview(path, 80, wrap=False)
    assert out.startswith("file in ignored folders list:")
    assert '".ssh"' in out
    assert "private data" not in out


def test_text_preview_wraps_words_within_width(tmp_path):
    text = "word " * 30
    path = tmp_path / "words.txt"
    path.write_text(text, encoding="utf-8")
    out = text_preview(path, 20)
    assert all(len(line) <= 20 for line in out.split("\n"))
    assert out.replace("\n", "").replace(" ", "") == text.replace(" ", "")


def test_text_preview_breaks_long_words(tmp_path):
    path = tmp_path / "long.txt"
    path.write_text("a" * 50, encoding="utf-8")
    out = text_preview(path, 10)
    assert WRAP_MARK in out
    assert all(len(line) <= 10 for line in out.split("\n"))
    assert out.replace(WRAP_MARK, "").replace("\n", "") == "a" * 50


def test_build_preview_text_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("abc", encoding="utf-8")
    assert build_preview(_settings(path, disable_wordwrap=True)) == "abc"


def test_build_preview_debug_time_appends_report(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("abc", encoding="utf-8")
    out = build_preview(_settings(path, disable_wordwrap=True, debug_time=True))
    assert out.startswith("abc" + "=" * 20 + "\n")
    assert out.endswith("[text plain]")


def test_build_preview_image_uses_chafa(tmp_path, monkeypatch):
    path = tmp_path / "pic.png"
    buffer = io.BytesIO()
    Image.new("RGB", (2, 2)).save(buffer, format="PNG")
    path.write_bytes(buffer.getvalue())
    calls = []

    def fake_run(cmd, input=None, **kwargs):
        calls.append(list(cmd))
        return subprocess.CompletedProcess(cmd, 0, stdout=b"ART\n", stderr=b"")

    monkeypatch.setattr(subprocess, "run", fake_run)
    out = build_preview(_settings(path, no_info=True))
    assert out == "ART\n"
    assert [cmd[0] for cmd in calls] == ["chafa"]


def test_main_prints_text_preview(tmp_path, capsys):
    path = tmp_path / "hello.txt"
    path.write_text("hello world", encoding="utf-8")
    assert main([str(path), "42", "10"]) == 0
    assert capsys.readouterr().out == "hello world\n"


def test_main_respects_print_output_off(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("LF_CHAFA_PREVIEW_PRINT_OUTPUT", "0")
    path = tmp_path / "hello.txt"
    path.write_text("hello world", encoding="utf-8")
    assert main([str(path), "42", "10"]) == 0
    assert capsys.readouterr().out == ""


def test_main_hw_test(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("LF_CHAFA_PREVIEW_DEBUG_HW_TEST", "1")
    path = tmp_path / "hello.txt"
    path.write_text("x", encoding="utf-8")
    assert main([str(path), "42", "10"]) == 0
    assert capsys.readouterr().out == hw_test(40, 10)


def test_main_len_test(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("LF_CHAFA_PREVIEW_DEBUG_LEN_TEST", "1")
    path = tmp_path / "hello.txt"
    path.write_text("x", encoding="utf-8")
    assert main([str(path), "42", "10"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "にっぽん"
    assert lines[-1] == "Length of the string: 8"


def test_main_missing_file_fails(tmp_path, capsys):
    assert main([str(tmp_path / "absent.txt"), "42", "10"]) == 1
    assert "lfpreview" in capsys.readouterr().err