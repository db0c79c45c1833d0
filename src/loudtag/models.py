"""Input types for the tag writers: scan results, write options, container kinds."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

# ReplayGain 2.0 reference level
REPLAYGAIN_REFERENCE = -18.0


class ContainerKind(StrEnum):
    """Container/codec combinations that have a tag writer."""

    MP3 = "mp3"
    FLAC = "flac"
    OGG_VORBIS = "ogg_vorbis"
    OGG_FLAC = "ogg_flac"
    OGG_SPEEX = "ogg_speex"
    OGG_OPUS = "ogg_opus"
    MP4 = "mp4"
    ASF = "asf"
    WAV = "wav"
    AIFF = "aiff"
    WAVPACK = "wavpack"
    APE = "ape"


@dataclass(frozen=True)
class ReplayGain:
    """
    Loudness results for one track or one album.

    ``gain`` is relative to ``loudness_reference``; ``peak`` is linear
    (1.0 = full scale). ``loudness`` is informational and never written.
    """

    gain: float
    peak: float
    loudness_range: float = 0.0
    loudness_reference: float = REPLAYGAIN_REFERENCE
    loudness: float = 0.0


@dataclass(frozen=True)
class Scan:
    """Scan result for one file, optionally with album aggregates."""

    file: Path
    track: ReplayGain
    album: ReplayGain | None = None

    @property
    def has_album(self) -> bool:
        return self.album is not None


@dataclass(frozen=True)
class WriteOptions:
    """
    Options for a single write or clear call.

    Attributes:
        do_album: Write album gain/peak (requires album data in the scan)
        extended: Also write reference loudness and loudness ranges
        unit: Unit label for gain and range values ("dB" or "LU")
        lowercase: Lowercase tag keys, for families that fold case
        strip: Remove the whole tag container before writing/clearing
        id3v2version: ID3v2 version for MP3/WAV/AIFF (2, 3 or 4)
    """

    do_album: bool = False
    extended: bool = False
    unit: str = "dB"
    lowercase: bool = False
    strip: bool = False
    id3v2version: int = 4
