"""Extraction of embedded cover art from ID3, FLAC and MP4 audio files."""

from __future__ import annotations

import os
import struct

_CONTAINERS = {b"moov", b"udta", b"ilst", b"meta", b"covr"}


def _synchsafe(raw: bytes) -> int:
    value = 0
    for byte in raw:
        value = (value << 7) | (byte & 0x7F)
    return value


def _skip_text(data: bytes, pos: int, encoding: int) -> int:
    if encoding in (1, 2):
        while pos + 1 < len(data):
            if data[pos] == 0 and data[pos + 1] == 0:
                return pos + 2
            pos += 2
        return len(data)
    end = data.find(b"\x00", pos)
    return len(data) if end < 0 else end + 1


def _id3_picture(data: bytes) -> bytes | None:
    major, flags = data[3], data[5]
    size = _synchsafe(data[6:10])
    tag = data[10 : 10 + size]
    pos = 0
    if flags & 0x40 and major >= 3:
        ext = tag[:4]
        pos = _synchsafe(ext) if major == 4 else struct.unpack(">I", ext)[0] + 4
    id_len, head_len = (3, 6) if major == 2 else (4, 10)
    while pos + head_len <= len(tag):
        frame_id = tag[pos : pos + id_len]
        if frame_id.strip(b"\x00") == b"":
            break
        raw_size = tag[pos + id_len : pos + id_len + (3 if major == 2 else 4)]
        if major == 2:
            frame_size = int.from_bytes(raw_size, "big")
        elif major == 4:
            frame_size = _synchsafe(raw_size)
        else:
            frame_size = int.from_bytes(raw_size, "big")
        body = tag[pos + head_len : pos + head_len + frame_size]
        pos += head_len + frame_size
        if frame_id == b"APIC" and body:
            encoding = body[0]
            mime_end = body.find(b"\x00", 1)
            start = _skip_text(body, mime_end + 2, encoding)
            return body[start:]
        if frame_id == b"PIC" and body:
            encoding = body[0]
            start = _skip_text(body, 5, encoding)
            return body[start:]
    return None


def _flac_picture(data: bytes) -> bytes | None:
    pos = 4
    while pos + 4 <= len(data):
        header = data[pos]
        length = int.from_bytes(data[pos + 1 : pos + 4], "big")
        block = data[pos + 4 : pos + 4 + length]
        pos += 4 + length
        if header & 0x7F == 6:
            at = 4
            mime_len = struct.unpack_from(">I", block, at)[0]
            at += 4 + mime_len
            desc_len = struct.unpack_from(">I", block, at)[0]
            at += 4 + desc_len + 16
            data_len = struct.unpack_from(">I", block, at)[0]
            return block[at + 4 : at + 4 + data_len]
        if header & 0x80:
            break
    return None


def _mp4_find(data: bytes, start: int, end: int, path: list[bytes]) -> bytes | None:
    pos = start
    while pos + 8 <= end:
        size, kind = struct.unpack_from(">I4s", data, pos)
        header = 8
        if size == 1:
            size = struct.unpack_from(">Q", data, pos + 8)[0]
            header = 16
        elif size == 0:
            size = end - pos
        if size < header:
            return None
        if kind == path[0]:
            body = pos + header
            if kind == b"meta":
                body += 4
            if len(path) == 1:
                return data[body + 8 : pos + size]
            found = _mp4_find(data, body, pos + size, path[1:])
            if found is not None:
                return found
        pos += size
    return None


def embedded_picture(path: str | os.PathLike[str]) -> bytes | None:
    """Return the cover picture embedded in an audio file, or None if it has none.

    Raises ValueError when the file is not in a supported tag format.
    """
    with open(path, "rb") as handle:
        data = handle.read()
    if data[:3] == b"ID3" and len(data) >= 10:
        return _id3_picture(data)
    if data[:4] == b"fLaC":
        return _flac_picture(data)
    if data[4:8] == b"ftyp":
        return _mp4_find(data, 0, len(data), [b"moov", b"udta", b"meta", b"ilst", b"covr", b"data"])
    raise ValueError(f"no supported tags found in {os.fspath(path)!r}")