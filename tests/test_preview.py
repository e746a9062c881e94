import gzip
import io
import json
import os
import subprocess

import pytest
from PIL import Image

from lfpreview.config import Settings
from lfpreview.preview import (
    DecodeError,
    image_with_info,
    render_thumbnail,
    thumbnail_source,
)


def _png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (200, 10, 10)).save(buffer, format="PNG")
    return buffer.getvalue()


def _settings(path, width=20, height=10, **extra):
    path = str(path)
    return Settings(
        file=path, ext=os.path.splitext(path)[1], width=width, height=height, **extra
    )


def _id3_with_picture(picture):
    body = b"\x00" + b"image/png\x00" + b"\x03" + b"\x00" + picture
    frame = b"APIC" + len(body).to_bytes(4, "big") + b"\x00\x00" + body
    return b"ID3\x03\x00\x00" + bytes([0, 0, 0, len(frame)]) + frame


class FakeRun:
    def __init__(self, exif=None):
        self.calls = []
        self.exif = exif or [{}]

    def __call__(self, cmd, input=None, **kwargs):
        cmd = list(cmd)
        self.calls.append((cmd, input))
        name = os.path.basename(cmd[0])
        if name == "chafa":
            rows = int(cmd[cmd.index("-s") + 1].split("x")[1])
            out = "".join(f"row{i}\n" for i in range(rows)).encode()
        elif name == "exiftool":
            out = json.dumps(self.exif).encode()
        elif name == "inkscape":
            out = b"PNGDATA"
        else:
            out = b"frame"
        return subprocess.CompletedProcess(cmd, 0, stdout=out, stderr=b"")

    def names(self):
        return [os.path.basename(cmd[0]) for cmd, _ in self.calls]

    def geometries(self):
        return [cmd[cmd.index("-s") + 1] for cmd, _ in self.calls if cmd[0] == "chafa"]


@pytest.fixture
def fake_run(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    fake = FakeRun(exif=[{"FileSize": "1 kB"}])
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def test_plain_image_passes_through(tmp_path):
    data = _png_bytes()
    path = tmp_path / "pic.png"
    path.write_bytes(data)
    assert thumbnail_source(path, "image") == data


def test_undecodable_avif_raises_decode_error(tmp_path):
    path = tmp_path / "pic.avif"
    path.write_bytes(b"not an image")
    with pytest.raises(DecodeError):
        thumbnail_source(path, "image")


def test_avif_with_compat_disabled_is_raw(tmp_path):
    path = tmp_path / "pic.avif"
    path.write_bytes(b"raw avif bytes")
    assert thumbnail_source(path, "image", disable_compat=True) == b"raw avif bytes"


def test_svgz_is_decompressed_before_inkscape(fake_run, tmp_path):
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"/>'
    path = tmp_path / "icon.svgz"
    path.write_bytes(gzip.compress(svg))
    assert thumbnail_source(path, "image") == b"PNGDATA"
    cmd, sent = fake_run.calls[0]
    assert sent == svg
    assert "--pipe" in cmd


def test_audio_cover_is_extracted(tmp_path):
    picture = b"\x89PNGcover"
    path = tmp_path / "song.mp3"
    path.write_bytes(_id3_with_picture(picture))
    assert thumbnail_source(path, "audio") == picture


def test_audio_without_cover_raises_decode_error(tmp_path):
    path = tmp_path / "song.mp3"
    path.write_bytes(b"ID3\x03\x00\x00\x00\x00\x00\x00")
    with pytest.raises(DecodeError):
        thumbnail_source(path, "audio")


def test_video_uses_thumbnailer(fake_run, tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"video")
    assert thumbnail_source(path, "video") == b"frame"
    cmd, _ = fake_run.calls[0]
    assert cmd[cmd.index("-i") + 1] == str(path)


def test_unknown_kind_is_rejected(tmp_path):
    path = tmp_path / "x.bin"
    path.write_bytes(b"x")
    with pytest.raises(ValueError):
        thumbnail_source(path, "document")


def test_render_thumbnail_is_cached(fake_run, tmp_path, monkeypatch):
    path = tmp_path / "pic.png"
    path.write_bytes(_png_bytes())
    settings = _settings(path)
    first = render_thumbnail(path, 20, 3, "image", settings, "key123")
    assert first == "row0\nrow1\nrow2\n"
    cache = tmp_path / "cache" / "lf-preview" / "thumbnails" / "1x2" / "20x3" / "key123"
    assert cache.read_text(encoding="utf-8") == first

    def refuse(*args, **kwargs):
        raise AssertionError("chafa should not run again")

    monkeypatch.setattr(subprocess, "run", refuse)
    assert render_thumbnail(path, 20, 3, "image", settings, "key123") == first


def test_image_with_info_without_info(fake_run, tmp_path):
    path = tmp_path / "pic.png"
    path.write_bytes(_png_bytes())
    settings = _settings(path, no_info=True)
    out = image_with_info(path, 20, 10, [["FileSize"]], "image", settings, "k1")
    assert out.count("\n") == 10
    assert "exiftool" not in fake_run.names()


def test_image_with_info_shrinks_thumbnail_to_fit(fake_run, tmp_path):
    path = tmp_path / "pic.png"
    path.write_bytes(_png_bytes())
    settings = _settings(path, width=20, height=10)
    out = image_with_info(path, 20, 10, [["FileSize"]], "image", settings, "k2")
    assert out.count("\n") == 10
    assert out.endswith("=" * 20 + "\nFile Size: 1 kB\n" + "=" * 20 + "\n")
    assert len(fake_run.geometries()) == 2
    assert fake_run.geometries()[0] == "20x10"


def test_image_with_info_drops_thumbnail_when_too_short(fake_run, tmp_path):
    path = tmp_path / "pic.png"
    path.write_bytes(_png_bytes())
    settings = _settings(path, width=20, height=3)
    out = image_with_info(path, 20, 3, [["FileSize"]], "image", settings, "k3")
    assert out == "=" * 20 + "\nFile Size: 1 kB\n" + "=" * 20 + "\n"