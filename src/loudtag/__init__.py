__all__ = (
    "main",
    "Config",
    # Models
    "ContainerKind",
    "ReplayGain",
    "Scan",
    "WriteOptions",
    # Errors
    "ErrorKind",
    "TagError",
    "InvalidGainValue",
    "UnsupportedField",
    "UnsupportedFormat",
    "MissingAlbumData",
    "InvalidId3Version",
    "ContainerOpenFailed",
    "WriteFailed",
    "ClearFailed",
    # Gain encoding
    "gain_to_fixedpoint",
    "fixedpoint_to_gain",
    "r128_gain",
    # Key policy
    "Field",
    "TagFamily",
    "TagKeySet",
    "keys_for",
    "all_keys",
    # Writers
    "TagWriter",
    "WriteReport",
    "ID3TagWriter",
    "VorbisTagWriter",
    "OpusTagWriter",
    "OpusNonStandardTagWriter",
    "APETagWriter",
    "MP4TagWriter",
    "ASFTagWriter",
    # Dispatch
    "get_writer",
    "detect_kind",
    "write",
    "clear",
    "engine_version",
    "write_mp3",
    "write_wav",
    "write_aiff",
    "write_flac",
    "write_ogg_vorbis",
    "write_ogg_flac",
    "write_ogg_speex",
    "write_ogg_opus",
    "write_ogg_opus_non_standard",
    "write_mp4",
    "write_asf",
    "write_wavpack",
    "write_ape",
    "clear_mp3",
    "clear_wav",
    "clear_aiff",
    "clear_flac",
    "clear_ogg_vorbis",
    "clear_ogg_flac",
    "clear_ogg_speex",
    "clear_ogg_opus",
    "clear_mp4",
    "clear_asf",
    "clear_wavpack",
    "clear_ape",
)

from loudtag.cli import main
from loudtag.config import Config
from loudtag.dispatch import (
    clear,
    clear_aiff,
    clear_ape,
    clear_asf,
    clear_flac,
    clear_mp3,
    clear_mp4,
    clear_ogg_flac,
    clear_ogg_opus,
    clear_ogg_speex,
    clear_ogg_vorbis,
    clear_wav,
    clear_wavpack,
    detect_kind,
    engine_version,
    get_writer,
    write,
    write_aiff,
    write_ape,
    write_asf,
    write_flac,
    write_mp3,
    write_mp4,
    write_ogg_flac,
    write_ogg_opus,
    write_ogg_opus_non_standard,
    write_ogg_speex,
    write_ogg_vorbis,
    write_wav,
    write_wavpack,
)
from loudtag.errors import (
    ClearFailed,
    ContainerOpenFailed,
    ErrorKind,
    InvalidGainValue,
    InvalidId3Version,
    MissingAlbumData,
    TagError,
    UnsupportedField,
    UnsupportedFormat,
    WriteFailed,
)
from loudtag.gain import fixedpoint_to_gain, gain_to_fixedpoint, r128_gain
from loudtag.keys import Field, TagFamily, TagKeySet, all_keys, keys_for
from loudtag.models import ContainerKind, ReplayGain, Scan, WriteOptions
from loudtag.tagging import (
    APETagWriter,
    ASFTagWriter,
    ID3TagWriter,
    MP4TagWriter,
    OpusNonStandardTagWriter,
    OpusTagWriter,
    TagWriter,
    VorbisTagWriter,
    WriteReport,
)
