"""Pytest configuration and shared fixtures for loudtag tests."""

from __future__ import annotations

import struct
from collections.abc import Callable
from pathlib import Path

import pytest

from loudtag.models import ReplayGain, Scan

# =============================================================================
# Minimal audio files
# =============================================================================

# MPEG-1 Layer III, 128 kbps, 44.1 kHz, no padding: 417-byte frames
MPEG_FRAME = b"\xff\xfb\x90\x00" + b"\x00" * 413


def create_minimal_mp3(path: Path, frames: int = 8) -> None:
    """Create an MP3 file with no tags and a few silent MPEG frames."""
    path.write_bytes(MPEG_FRAME * frames)


def create_minimal_flac(path: Path) -> None:
    """Create a FLAC file holding only a STREAMINFO block."""
    # Block header: last-block flag, type 0 (STREAMINFO), 24-bit length 34
    block_header = bytes([0x80, 0x00, 0x00, 0x22])
    # sample rate (20 bits), channels-1 (3), bits/sample-1 (5), total samples (36)
    packed = (44100 << 44) | ((2 - 1) << 41) | ((16 - 1) << 36) | 0
    streaminfo = (
        struct.pack(">HH", 4096, 4096)  # min/max block size
        + b"\x00" * 6  # min/max frame size (unknown)
        + struct.pack(">Q", packed)
        + b"\x00" * 16  # MD5
    )
    path.write_bytes(b"fLaC" + block_header + streaminfo)


def create_minimal_wav(path: Path) -> None:
    """Create a RIFF/WAVE file with a PCM fmt chunk and two samples."""
    fmt = struct.pack("<HHIIHH", 1, 1, 44100, 88200, 2, 16)
    data = b"\x00" * 4
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt
    body += b"data" + struct.pack("<I", len(data)) + data
    path.write_bytes(b"RIFF" + struct.pack("<I", len(body)) + body)


def create_minimal_aiff(path: Path) -> None:
    """Create an AIFF file with a COMM chunk and two samples."""
    # 44100 as an 80-bit IEEE extended float
    sample_rate = bytes.fromhex("400EAC44000000000000")
    comm = struct.pack(">hLh", 1, 2, 16) + sample_rate
    ssnd = struct.pack(">LL", 0, 0) + b"\x00" * 4
    body = b"AIFF" + b"COMM" + struct.pack(">L", len(comm)) + comm
    body += b"SSND" + struct.pack(">L", len(ssnd)) + ssnd
    path.write_bytes(b"FORM" + struct.pack(">L", len(body)) + body)


def create_minimal_wavpack(path: Path) -> None:
    """Create a WavPack file made of a single 32-byte block header."""
    # 16-bit stereo, sample rate index 9 (44100 Hz)
    flags = (9 << 23) | 1
    header = struct.pack("<IHBBIIIII", 24, 0x410, 0, 0, 44100, 0, 44100, flags, 0)
    path.write_bytes(b"wvpk" + header)


def _ogg_page(packet: bytes, sequence: int, position: int, first=False, last=False) -> bytes:
    from mutagen.ogg import OggPage

    page = OggPage()
    page.packets = [packet]
    page.serial = 1
    page.sequence = sequence
    page.position = position
    page.first = first
    page.last = last
    return page.write()


def create_minimal_opus(path: Path) -> None:
    """Create an Ogg Opus stream: ID header, empty comment header, one audio page."""
    head = b"OpusHead" + struct.pack("<BBHIhB", 1, 2, 312, 48000, 0, 0)
    tags = b"OpusTags" + struct.pack("<I", 7) + b"loudtag" + struct.pack("<I", 0)
    audio = b"\xfc" + b"\x00" * 16
    path.write_bytes(
        _ogg_page(head, 0, 0, first=True)
        + _ogg_page(tags, 1, 0)
        + _ogg_page(audio, 2, 48000 + 312, last=True)
    )


def _atom(name: bytes, payload: bytes) -> bytes:
    return struct.pack(">I", len(payload) + 8) + name + payload


def create_minimal_mp4(path: Path) -> None:
    """Create an MP4 file with ftyp and a moov holding only mvhd."""
    ftyp = _atom(b"ftyp", b"M4A " + struct.pack(">I", 0) + b"M4A isom")
    # version/flags, created, modified, timescale, duration, then the rest zeroed
    mvhd = _atom(b"mvhd", struct.pack(">IIIII", 0, 0, 0, 1000, 1000) + b"\x00" * 80)
    path.write_bytes(ftyp + _atom(b"moov", mvhd))


AUDIO_FACTORIES: dict[str, Callable[[Path], None]] = {
    "mp3": create_minimal_mp3,
    "flac": create_minimal_flac,
    "wav": create_minimal_wav,
    "aiff": create_minimal_aiff,
    "wv": create_minimal_wavpack,
    "opus": create_minimal_opus,
    "m4a": create_minimal_mp4,
}


@pytest.fixture
def make_audio(tmp_path: Path) -> Callable[[str], Path]:
    """Create a minimal audio file of the given extension in tmp_path."""

    def _make(ext: str, name: str = "track") -> Path:
        path = tmp_path / f"{name}.{ext}"
        AUDIO_FACTORIES[ext](path)
        return path

    return _make


# =============================================================================
# Scan fixtures
# =============================================================================


TRACK = ReplayGain(gain=-6.5, peak=0.988, loudness_range=7.25, loudness=-11.5)
ALBUM = ReplayGain(gain=-7.0, peak=1.0, loudness_range=9.5, loudness=-11.0)


@pytest.fixture
def track_scan() -> Callable[[Path], Scan]:
    """Build a track-only scan for a file."""

    def _scan(file_path: Path) -> Scan:
        return Scan(file=file_path, track=TRACK)

    return _scan


@pytest.fixture
def album_scan() -> Callable[[Path], Scan]:
    """Build a scan with album aggregates for a file."""

    def _scan(file_path: Path) -> Scan:
        return Scan(file=file_path, track=TRACK, album=ALBUM)

    return _scan
