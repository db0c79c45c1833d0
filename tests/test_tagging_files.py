"""File round trips for the ID3, Vorbis, Opus, APEv2 and MP4 writers."""

from __future__ import annotations

from pathlib import Path

import pytest
from mutagen.aiff import AIFF
from mutagen.apev2 import APENoHeaderError, APEv2
from mutagen.flac import FLAC
from mutagen.id3 import ID3, TIT2, TXXX, ID3NoHeaderError
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.wave import WAVE
from mutagen.wavpack import WavPack

from loudtag.errors import ContainerOpenFailed, ErrorKind, InvalidId3Version, MissingAlbumData
from loudtag.models import WriteOptions
from loudtag.tagging import (
    AIFFTagWriter,
    FLACTagWriter,
    MP3TagWriter,
    MP4TagWriter,
    OpusNonStandardTagWriter,
    OpusTagWriter,
    WAVTagWriter,
    WavPackTagWriter,
)


def add_title(path: Path, title: str = "Song") -> None:
    tags = ID3()
    tags.add(TIT2(encoding=3, text=[title]))
    tags.save(path)


# MP3


def test_mp3_write_and_read(make_audio, album_scan):
    mp3_path = make_audio("mp3")
    writer = MP3TagWriter()

    report = writer.write(album_scan(mp3_path), WriteOptions(do_album=True))

    assert report.keys_written == [
        "REPLAYGAIN_TRACK_GAIN",
        "REPLAYGAIN_TRACK_PEAK",
        "REPLAYGAIN_ALBUM_GAIN",
        "REPLAYGAIN_ALBUM_PEAK",
    ]
    assert writer.read_tags(mp3_path) == {
        "REPLAYGAIN_TRACK_GAIN": ["-6.50 dB"],
        "REPLAYGAIN_TRACK_PEAK": ["0.988000"],
        "REPLAYGAIN_ALBUM_GAIN": ["-7.00 dB"],
        "REPLAYGAIN_ALBUM_PEAK": ["1.000000"],
    }
    assert ID3(mp3_path).version == (2, 4, 0)


@pytest.mark.parametrize("requested", [2, 3])
def test_mp3_write_id3v23(make_audio, track_scan, requested: int):
    mp3_path = make_audio("mp3")

    MP3TagWriter().write(track_scan(mp3_path), WriteOptions(id3v2version=requested))

    tags = ID3(mp3_path)
    assert tags.version == (2, 3, 0)
    assert tags.getall("TXXX:REPLAYGAIN_TRACK_GAIN")[0].text == ["-6.50 dB"]


def test_mp3_write_is_idempotent(make_audio, album_scan):
    mp3_path = make_audio("mp3")
    add_title(mp3_path)
    writer = MP3TagWriter()
    options = WriteOptions(do_album=True, extended=True)

    writer.write(album_scan(mp3_path), options)
    first = sorted(ID3(mp3_path).keys())
    report = writer.write(album_scan(mp3_path), options)

    assert sorted(ID3(mp3_path).keys()) == first
    assert len(report.keys_removed) == 7
    assert writer.verify(album_scan(mp3_path), options)


def test_mp3_write_then_clear_keeps_unrelated(make_audio, track_scan):
    mp3_path = make_audio("mp3")
    add_title(mp3_path)
    writer = MP3TagWriter()

    writer.write(track_scan(mp3_path), WriteOptions(extended=True))
    report = writer.clear(mp3_path)

    tags = ID3(mp3_path)
    assert tags.getall("TXXX") == []
    assert str(tags["TIT2"]) == "Song"
    assert sorted(report.keys_removed) == [
        "REPLAYGAIN_REFERENCE_LOUDNESS",
        "REPLAYGAIN_TRACK_GAIN",
        "REPLAYGAIN_TRACK_PEAK",
        "REPLAYGAIN_TRACK_RANGE",
    ]


def test_mp3_clear_strip_removes_whole_tag(make_audio, track_scan):
    mp3_path = make_audio("mp3")
    add_title(mp3_path)
    writer = MP3TagWriter()
    writer.write(track_scan(mp3_path), WriteOptions())

    report = writer.clear(mp3_path, WriteOptions(strip=True))

    assert report.stripped is True
    with pytest.raises(ID3NoHeaderError):
        ID3(mp3_path)


def test_mp3_write_strip_removes_other_tags(make_audio, track_scan):
    mp3_path = make_audio("mp3")
    add_title(mp3_path)
    ape = APEv2()
    ape["Title"] = "Song"
    ape.save(mp3_path)

    MP3TagWriter().write(track_scan(mp3_path), WriteOptions(strip=True))

    tags = ID3(mp3_path)
    assert "TIT2" not in tags
    assert tags.getall("TXXX:REPLAYGAIN_TRACK_GAIN")[0].text == ["-6.50 dB"]
    with pytest.raises(APENoHeaderError):
        APEv2(mp3_path)


def test_mp3_clear_without_tags(make_audio):
    mp3_path = make_audio("mp3")
    before = mp3_path.read_bytes()

    report = MP3TagWriter().clear(mp3_path)

    assert report.keys_removed == []
    assert mp3_path.read_bytes() == before


def test_mp3_missing_album_data_does_not_touch_file(make_audio, track_scan):
    mp3_path = make_audio("mp3")
    add_title(mp3_path)
    before = mp3_path.read_bytes()

    with pytest.raises(MissingAlbumData):
        MP3TagWriter().write(track_scan(mp3_path), WriteOptions(do_album=True))

    assert mp3_path.read_bytes() == before


def test_mp3_invalid_version_checked_before_open(tmp_path: Path, track_scan):
    missing = tmp_path / "missing.mp3"
    with pytest.raises(InvalidId3Version):
        MP3TagWriter().write(track_scan(missing), WriteOptions(id3v2version=5))
    with pytest.raises(InvalidId3Version):
        MP3TagWriter().clear(missing, WriteOptions(id3v2version=1))


def test_open_failures(tmp_path: Path, track_scan):
    missing = tmp_path / "missing.mp3"
    with pytest.raises(ContainerOpenFailed) as exc_info:
        MP3TagWriter().write(track_scan(missing), WriteOptions())
    assert exc_info.value.kind == ErrorKind.CONTAINER_OPEN_FAILED
    assert exc_info.value.context["file"] == str(missing)

    garbage = tmp_path / "garbage.mp3"
    garbage.write_bytes(b"not audio " * 64)
    with pytest.raises(ContainerOpenFailed):
        MP3TagWriter().clear(garbage)


def test_verify_fails_after_clear(make_audio, track_scan):
    mp3_path = make_audio("mp3")
    writer = MP3TagWriter()
    writer.write(track_scan(mp3_path), WriteOptions())
    writer.clear(mp3_path)
    assert not writer.verify(track_scan(mp3_path), WriteOptions())


# FLAC


def test_flac_write_clear(make_audio, album_scan):
    flac_path = make_audio("flac")
    audio = FLAC(flac_path)
    audio.add_tags()
    audio["TITLE"] = ["Song"]
    audio.save()
    writer = FLACTagWriter()

    writer.write(album_scan(flac_path), WriteOptions(do_album=True, extended=True, unit="LU"))

    audio = FLAC(flac_path)
    assert audio["REPLAYGAIN_TRACK_GAIN"] == ["-6.50 LU"]
    assert audio["REPLAYGAIN_ALBUM_RANGE"] == ["9.50 LU"]
    assert audio["REPLAYGAIN_REFERENCE_LOUDNESS"] == ["-18.00 LUFS"]

    writer.clear(flac_path)

    audio = FLAC(flac_path)
    assert "REPLAYGAIN_TRACK_GAIN" not in audio.tags
    assert audio["TITLE"] == ["Song"]


def test_flac_without_comment_block(make_audio, track_scan):
    flac_path = make_audio("flac")
    assert FLACTagWriter().read_tags(flac_path) == {}

    FLACTagWriter().write(track_scan(flac_path), WriteOptions())

    assert FLAC(flac_path)["REPLAYGAIN_TRACK_PEAK"] == ["0.988000"]


# WAV and AIFF


def test_wav_write_and_strip(make_audio, track_scan):
    wav_path = make_audio("wav")
    writer = WAVTagWriter()

    writer.write(track_scan(wav_path), WriteOptions(lowercase=True))

    tags = WAVE(wav_path).tags
    assert tags is not None
    assert tags.getall("TXXX:replaygain_track_gain")[0].text == ["-6.50 dB"]

    writer.clear(wav_path, WriteOptions(strip=True))
    assert WAVE(wav_path).tags is None


def test_aiff_write_clear(make_audio, track_scan):
    aiff_path = make_audio("aiff")
    writer = AIFFTagWriter()

    writer.write(track_scan(aiff_path), WriteOptions(id3v2version=3))

    tags = AIFF(aiff_path).tags
    assert tags is not None
    assert tags.version == (2, 3, 0)
    assert isinstance(tags.getall("TXXX")[0], TXXX)

    writer.clear(aiff_path)
    assert AIFF(aiff_path).tags.getall("TXXX") == []


# WavPack (APEv2)

# ID3v1 tag: "TAG", 30-byte title, artist/album/year/comment zeroed, genre 255
ID3V1_TAG = b"TAG" + b"Old Title".ljust(30, b"\x00") + b"\x00" * 94 + b"\xff"


def add_ape_title(path: Path, title: str = "Song") -> None:
    ape = APEv2()
    ape["Title"] = title
    ape.save(path)


def test_wavpack_write_clear_keeps_unrelated(make_audio, album_scan):
    wv_path = make_audio("wv")
    add_ape_title(wv_path)
    writer = WavPackTagWriter()

    writer.write(album_scan(wv_path), WriteOptions(do_album=True, unit="LU"))

    tags = APEv2(wv_path)
    assert str(tags["REPLAYGAIN_ALBUM_GAIN"]) == "-7.00 LU"
    assert str(tags["Title"]) == "Song"

    report = writer.clear(wv_path)

    assert len(report.keys_removed) == 4
    assert list(APEv2(wv_path).keys()) == ["Title"]


def test_wavpack_strip_removes_ape_and_id3v1(make_audio, track_scan):
    wv_path = make_audio("wv")
    add_ape_title(wv_path)
    with wv_path.open("ab") as f:
        f.write(ID3V1_TAG)
    writer = WavPackTagWriter()

    report = writer.write(track_scan(wv_path), WriteOptions(strip=True, lowercase=True))

    assert report.stripped is True
    assert b"Old Title" not in wv_path.read_bytes()
    tags = APEv2(wv_path)
    assert sorted(tags.keys()) == ["replaygain_track_gain", "replaygain_track_peak"]

    report = writer.clear(wv_path, WriteOptions(strip=True))

    assert report.stripped is True
    assert WavPack(wv_path).tags is None
    assert wv_path.read_bytes()[:4] == b"wvpk"


# Opus


def test_opus_write_r128_then_clear(make_audio, album_scan):
    opus_path = make_audio("opus")
    writer = OpusTagWriter()
    options = WriteOptions(do_album=True, extended=True)

    report = writer.write(album_scan(opus_path), options)

    assert report.keys_written == ["R128_TRACK_GAIN", "R128_ALBUM_GAIN"]
    tags = OggOpus(opus_path).tags
    # -6.5 dB at -18 LUFS is -11.5 dB at -23 LUFS
    assert tags["R128_TRACK_GAIN"] == ["-2944"]
    assert tags["R128_ALBUM_GAIN"] == ["-3072"]
    assert "REPLAYGAIN_TRACK_PEAK" not in tags
    assert writer.verify(album_scan(opus_path), options)

    writer.clear(opus_path)

    assert writer.read_tags(opus_path) == {}


def test_opus_non_standard_replaces_r128(make_audio, track_scan):
    opus_path = make_audio("opus")
    OpusTagWriter().write(track_scan(opus_path), WriteOptions())

    report = OpusNonStandardTagWriter().write(track_scan(opus_path), WriteOptions())

    assert report.keys_removed == ["R128_TRACK_GAIN"]
    tags = OggOpus(opus_path).tags
    assert "R128_TRACK_GAIN" not in tags
    assert tags["REPLAYGAIN_TRACK_GAIN"] == ["-6.50 dB"]

    # A standard clear removes both key families
    assert OpusTagWriter().clear(opus_path).keys_removed == [
        "REPLAYGAIN_TRACK_GAIN",
        "REPLAYGAIN_TRACK_PEAK",
    ]


# MP4


def test_mp4_write_read_clear(make_audio, track_scan):
    m4a_path = make_audio("m4a")
    writer = MP4TagWriter()

    writer.write(track_scan(m4a_path), WriteOptions(lowercase=True, unit="LU"))

    tags = MP4(m4a_path).tags
    assert bytes(tags["----:com.apple.iTunes:replaygain_track_gain"][0]) == b"-6.50 LU"
    assert writer.read_tags(m4a_path) == {
        "----:com.apple.iTunes:replaygain_track_gain": ["-6.50 LU"],
        "----:com.apple.iTunes:replaygain_track_peak": ["0.988000"],
    }

    report = writer.clear(m4a_path)

    assert len(report.keys_removed) == 2
    assert writer.read_tags(m4a_path) == {}
