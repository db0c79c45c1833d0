"""
Writer selection and the boolean public surface.

``write``/``clear`` raise structured ``TagError``s. The ``write_<format>`` and
``clear_<format>`` functions log the error and return ``False`` instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

from loudtag.errors import ContainerOpenFailed, TagError, UnsupportedFormat
from loudtag.gain import gain_to_fixedpoint
from loudtag.models import ContainerKind, Scan, WriteOptions
from loudtag.tagging import (
    AIFFTagWriter,
    ASFTagWriter,
    FLACTagWriter,
    MonkeysAudioTagWriter,
    MP3TagWriter,
    MP4TagWriter,
    OggFLACTagWriter,
    OggSpeexTagWriter,
    OggVorbisTagWriter,
    OpusNonStandardTagWriter,
    OpusTagWriter,
    TagWriter,
    WAVTagWriter,
    WavPackTagWriter,
    WriteReport,
)

logger = logging.getLogger(__name__)

__all__ = [
    "WRITERS",
    "clear",
    "clear_aiff",
    "clear_ape",
    "clear_asf",
    "clear_flac",
    "clear_mp3",
    "clear_mp4",
    "clear_ogg_flac",
    "clear_ogg_opus",
    "clear_ogg_speex",
    "clear_ogg_vorbis",
    "clear_wav",
    "clear_wavpack",
    "detect_kind",
    "engine_version",
    "gain_to_fixedpoint",
    "get_writer",
    "write",
    "write_aiff",
    "write_ape",
    "write_asf",
    "write_flac",
    "write_mp3",
    "write_mp4",
    "write_ogg_flac",
    "write_ogg_opus",
    "write_ogg_opus_non_standard",
    "write_ogg_speex",
    "write_ogg_vorbis",
    "write_wav",
    "write_wavpack",
]

WRITERS: dict[ContainerKind, type[TagWriter]] = {
    ContainerKind.MP3: MP3TagWriter,
    ContainerKind.FLAC: FLACTagWriter,
    ContainerKind.OGG_VORBIS: OggVorbisTagWriter,
    ContainerKind.OGG_FLAC: OggFLACTagWriter,
    ContainerKind.OGG_SPEEX: OggSpeexTagWriter,
    ContainerKind.OGG_OPUS: OpusTagWriter,
    ContainerKind.MP4: MP4TagWriter,
    ContainerKind.ASF: ASFTagWriter,
    ContainerKind.WAV: WAVTagWriter,
    ContainerKind.AIFF: AIFFTagWriter,
    ContainerKind.WAVPACK: WavPackTagWriter,
    ContainerKind.APE: MonkeysAudioTagWriter,
}

EXTENSIONS: dict[str, ContainerKind] = {
    ".mp3": ContainerKind.MP3,
    ".flac": ContainerKind.FLAC,
    ".opus": ContainerKind.OGG_OPUS,
    ".spx": ContainerKind.OGG_SPEEX,
    ".m4a": ContainerKind.MP4,
    ".mp4": ContainerKind.MP4,
    ".m4b": ContainerKind.MP4,
    ".m4p": ContainerKind.MP4,
    ".m4r": ContainerKind.MP4,
    ".m4v": ContainerKind.MP4,
    ".3gp": ContainerKind.MP4,
    ".asf": ContainerKind.ASF,
    ".wma": ContainerKind.ASF,
    ".wav": ContainerKind.WAV,
    ".aif": ContainerKind.AIFF,
    ".aiff": ContainerKind.AIFF,
    ".aifc": ContainerKind.AIFF,
    ".wv": ContainerKind.WAVPACK,
    ".ape": ContainerKind.APE,
}

# Ogg streams are told apart by codec, not extension
OGG_EXTENSIONS = frozenset({".ogg", ".oga"})


def get_writer(kind: ContainerKind | str, non_standard_opus: bool = False) -> TagWriter:
    """
    Get the tag writer for a container kind.

    Args:
        kind: Container kind (or its string value)
        non_standard_opus: For Opus, write REPLAYGAIN_* comments instead of R128_*

    Raises:
        UnsupportedFormat: No writer exists for ``kind``
    """
    try:
        kind = ContainerKind(kind)
    except ValueError:
        raise UnsupportedFormat(f"Unsupported container kind: {kind}", kind=str(kind)) from None

    if kind is ContainerKind.OGG_OPUS and non_standard_opus:
        return OpusNonStandardTagWriter()
    return WRITERS[kind]()


def _sniff_ogg(file_path: Path) -> ContainerKind:
    import mutagen
    from mutagen.oggflac import OggFLAC
    from mutagen.oggopus import OggOpus
    from mutagen.oggspeex import OggSpeex
    from mutagen.oggvorbis import OggVorbis

    kinds = {
        OggVorbis: ContainerKind.OGG_VORBIS,
        OggFLAC: ContainerKind.OGG_FLAC,
        OggSpeex: ContainerKind.OGG_SPEEX,
        OggOpus: ContainerKind.OGG_OPUS,
    }
    try:
        audio = mutagen.File(file_path, options=list(kinds))
    except mutagen.MutagenError as e:
        raise ContainerOpenFailed(
            "Could not read Ogg stream", file=str(file_path), reason=str(e)
        ) from e
    if audio is None:
        raise UnsupportedFormat("Unrecognized Ogg stream", file=str(file_path))
    return kinds[type(audio)]


def detect_kind(file_path: Path) -> ContainerKind:
    """
    Determine the container kind of a file.

    Uses the file extension; ``.ogg``/``.oga`` files are opened to find
    which codec the stream carries.

    Raises:
        UnsupportedFormat: Unknown extension or unrecognized Ogg codec
    """
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()
    if suffix in OGG_EXTENSIONS:
        return _sniff_ogg(file_path)
    try:
        return EXTENSIONS[suffix]
    except KeyError:
        raise UnsupportedFormat(
            f"Unsupported audio format: {suffix or '(none)'}", file=str(file_path)
        ) from None


def write(
    kind: ContainerKind | str,
    scan: Scan,
    options: WriteOptions,
    non_standard_opus: bool = False,
) -> WriteReport:
    """Write loudness tags with the writer for ``kind``."""
    return get_writer(kind, non_standard_opus).write(scan, options)


def clear(
    kind: ContainerKind | str,
    file_path: Path,
    options: WriteOptions | None = None,
) -> WriteReport:
    """Remove loudness tags with the writer for ``kind``."""
    return get_writer(kind).clear(file_path, options)


def engine_version() -> tuple[int, int, int]:
    """Version of the underlying tag library (mutagen)."""
    import mutagen

    parts = [int(part) for part in mutagen.version[:3]]
    parts.extend([0] * (3 - len(parts)))
    return parts[0], parts[1], parts[2]


def _write_ok(writer: TagWriter, scan: Scan, options: WriteOptions) -> bool:
    try:
        writer.write(scan, options)
    except TagError as e:
        logger.error(f"Couldn't write to {scan.file}: {e}")
        return False
    return True


def _clear_ok(writer: TagWriter, file_path: Path, options: WriteOptions) -> bool:
    try:
        writer.clear(file_path, options)
    except TagError as e:
        logger.error(f"Couldn't clear tags in {file_path}: {e}")
        return False
    return True


def _options(
    do_album: bool,
    extended: bool,
    unit: str,
    lowercase: bool = False,
    strip: bool = False,
    id3v2version: int = 4,
) -> WriteOptions:
    return WriteOptions(
        do_album=do_album,
        extended=extended,
        unit=unit,
        lowercase=lowercase,
        strip=strip,
        id3v2version=id3v2version,
    )


# ID3v2 containers


def write_mp3(
    scan: Scan,
    do_album: bool,
    extended: bool,
    unit: str,
    lowercase: bool = False,
    strip: bool = False,
    id3v2version: int = 4,
) -> bool:
    options = _options(do_album, extended, unit, lowercase, strip, id3v2version)
    return _write_ok(MP3TagWriter(), scan, options)


def write_wav(
    scan: Scan,
    do_album: bool,
    extended: bool,
    unit: str,
    lowercase: bool = False,
    strip: bool = False,
    id3v2version: int = 4,
) -> bool:
    options = _options(do_album, extended, unit, lowercase, strip, id3v2version)
    return _write_ok(WAVTagWriter(), scan, options)


def write_aiff(
    scan: Scan,
    do_album: bool,
    extended: bool,
    unit: str,
    lowercase: bool = False,
    strip: bool = False,
    id3v2version: int = 4,
) -> bool:
    options = _options(do_album, extended, unit, lowercase, strip, id3v2version)
    return _write_ok(AIFFTagWriter(), scan, options)


def clear_mp3(file_path: Path, strip: bool = False, id3v2version: int = 4) -> bool:
    options = WriteOptions(strip=strip, id3v2version=id3v2version)
    return _clear_ok(MP3TagWriter(), file_path, options)


def clear_wav(file_path: Path, strip: bool = False, id3v2version: int = 4) -> bool:
    options = WriteOptions(strip=strip, id3v2version=id3v2version)
    return _clear_ok(WAVTagWriter(), file_path, options)


def clear_aiff(file_path: Path, strip: bool = False, id3v2version: int = 4) -> bool:
    options = WriteOptions(strip=strip, id3v2version=id3v2version)
    return _clear_ok(AIFFTagWriter(), file_path, options)


# Vorbis comment containers


def write_flac(scan: Scan, do_album: bool, extended: bool, unit: str) -> bool:
    return _write_ok(FLACTagWriter(), scan, _options(do_album, extended, unit))


def write_ogg_vorbis(scan: Scan, do_album: bool, extended: bool, unit: str) -> bool:
    return _write_ok(OggVorbisTagWriter(), scan, _options(do_album, extended, unit))


def write_ogg_flac(scan: Scan, do_album: bool, extended: bool, unit: str) -> bool:
    return _write_ok(OggFLACTagWriter(), scan, _options(do_album, extended, unit))


def write_ogg_speex(scan: Scan, do_album: bool, extended: bool, unit: str) -> bool:
    return _write_ok(OggSpeexTagWriter(), scan, _options(do_album, extended, unit))


def write_ogg_opus(scan: Scan, do_album: bool, extended: bool, unit: str) -> bool:
    return _write_ok(OpusTagWriter(), scan, _options(do_album, extended, unit))


def write_ogg_opus_non_standard(scan: Scan, do_album: bool, extended: bool, unit: str) -> bool:
    return _write_ok(OpusNonStandardTagWriter(), scan, _options(do_album, extended, unit))


def clear_flac(file_path: Path) -> bool:
    return _clear_ok(FLACTagWriter(), file_path, WriteOptions())


def clear_ogg_vorbis(file_path: Path) -> bool:
    return _clear_ok(OggVorbisTagWriter(), file_path, WriteOptions())


def clear_ogg_flac(file_path: Path) -> bool:
    return _clear_ok(OggFLACTagWriter(), file_path, WriteOptions())


def clear_ogg_speex(file_path: Path) -> bool:
    return _clear_ok(OggSpeexTagWriter(), file_path, WriteOptions())


def clear_ogg_opus(file_path: Path) -> bool:
    # Removes both R128_* and REPLAYGAIN_* keys
    return _clear_ok(OpusTagWriter(), file_path, WriteOptions())


# MP4 and ASF


def write_mp4(
    scan: Scan, do_album: bool, extended: bool, unit: str, lowercase: bool = False
) -> bool:
    return _write_ok(MP4TagWriter(), scan, _options(do_album, extended, unit, lowercase))


def write_asf(
    scan: Scan, do_album: bool, extended: bool, unit: str, lowercase: bool = False
) -> bool:
    return _write_ok(ASFTagWriter(), scan, _options(do_album, extended, unit, lowercase))


def clear_mp4(file_path: Path) -> bool:
    return _clear_ok(MP4TagWriter(), file_path, WriteOptions())


def clear_asf(file_path: Path) -> bool:
    return _clear_ok(ASFTagWriter(), file_path, WriteOptions())


# APEv2 containers


def write_wavpack(
    scan: Scan,
    do_album: bool,
    extended: bool,
    unit: str,
    lowercase: bool = False,
    strip: bool = False,
) -> bool:
    options = _options(do_album, extended, unit, lowercase, strip)
    return _write_ok(WavPackTagWriter(), scan, options)


def write_ape(
    scan: Scan,
    do_album: bool,
    extended: bool,
    unit: str,
    lowercase: bool = False,
    strip: bool = False,
) -> bool:
    options = _options(do_album, extended, unit, lowercase, strip)
    return _write_ok(MonkeysAudioTagWriter(), scan, options)


def clear_wavpack(file_path: Path, strip: bool = False) -> bool:
    return _clear_ok(WavPackTagWriter(), file_path, WriteOptions(strip=strip))


def clear_ape(file_path: Path, strip: bool = False) -> bool:
    return _clear_ok(MonkeysAudioTagWriter(), file_path, WriteOptions(strip=strip))
