"""Loudness tag writers for audio files.

One writer per container format, grouped by tag family: ID3v2 (MP3, WAV,
AIFF), Vorbis comments (FLAC and Ogg), Opus R128, APEv2 (WavPack, Monkey's
Audio), MP4 freeform atoms and ASF attributes. mutagen does the container
I/O; writers only decide which keys to remove and which values to set.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from loudtag.errors import (
    ClearFailed,
    ContainerOpenFailed,
    InvalidId3Version,
    MissingAlbumData,
    TagError,
    WriteFailed,
)
from loudtag.gain import format_gain, format_loudness, format_peak, r128_gain
from loudtag.keys import Field, TagFamily, TagKeySet, all_keys, keys_for
from loudtag.models import ContainerKind, Scan, WriteOptions

logger = logging.getLogger(__name__)

ID3V2_VERSIONS = (2, 3, 4)


@dataclass
class WriteReport:
    """Report of what a write or clear changed."""

    file_path: Path
    keys_written: list[str] = field(default_factory=list)
    keys_removed: list[str] = field(default_factory=list)
    stripped: bool = False


class TagWriter(ABC):
    """
    Abstract base class for format-specific loudness tag writers.

    Subclasses bind a tag family and a mutagen file type and implement the
    four primitive tag operations (list keys, get, set, delete). Key
    selection, value formatting, validation and error mapping live here.
    """

    kind: ClassVar[ContainerKind]
    family: ClassVar[TagFamily]
    # Families whose keys are removed before writing and on clear
    removal_families: ClassVar[tuple[TagFamily, ...]] = ()
    supports_lowercase: ClassVar[bool] = False
    supports_strip: ClassVar[bool] = False

    # -- primitives -------------------------------------------------------

    @abstractmethod
    def _load(self, file_path: Path) -> Any:
        """Open the file with the matching mutagen file type."""

    @abstractmethod
    def _keys(self, tags: Any) -> list[str]:
        """List the keys present in a tag object, as stored."""

    @abstractmethod
    def _get(self, tags: Any, key: str) -> list[str]:
        """Read the text values of one key."""

    @abstractmethod
    def _set(self, tags: Any, key: str, value: str) -> None:
        """Replace all values of one key with a single text value."""

    @abstractmethod
    def _delete(self, tags: Any, key: str) -> None:
        """Delete one key, if present."""

    def _tags(self, audio: Any, create: bool) -> Any:
        if audio.tags is None and create:
            audio.add_tags()
        return audio.tags

    def _save(self, audio: Any, options: WriteOptions) -> None:
        audio.save()

    def _strip(self, audio: Any, file_path: Path) -> None:
        """Delete the whole tag container from the file."""
        if audio.tags is not None:
            audio.delete()
        audio.tags = None

    # -- key selection ----------------------------------------------------

    def key_set(self, options: WriteOptions) -> TagKeySet:
        lowercase = options.lowercase and self.supports_lowercase
        return keys_for(self.family, options.extended, lowercase)

    def removable_keys(self) -> frozenset[str]:
        """Upper-cased keys this writer removes."""
        families = self.removal_families or (self.family,)
        return frozenset(key.upper() for family in families for key in all_keys(family))

    def field_values(self, scan: Scan, options: WriteOptions) -> dict[Field, str]:
        """Format the scan values this writer stores, by logical field."""
        track = scan.track
        values = {
            Field.TRACK_GAIN: format_gain(track.gain, options.unit),
            Field.TRACK_PEAK: format_peak(track.peak),
        }
        album = scan.album if options.do_album else None
        if album is not None:
            values[Field.ALBUM_GAIN] = format_gain(album.gain, options.unit)
            values[Field.ALBUM_PEAK] = format_peak(album.peak)
        if options.extended:
            values[Field.REFERENCE_LOUDNESS] = format_loudness(track.loudness_reference, "LUFS")
            values[Field.TRACK_RANGE] = format_loudness(track.loudness_range, options.unit)
            if album is not None:
                values[Field.ALBUM_RANGE] = format_loudness(album.loudness_range, options.unit)
        return values

    def entries(self, scan: Scan, options: WriteOptions) -> dict[str, str]:
        """Concrete key/value pairs a write stores, in write order."""
        keys = self.key_set(options)
        return {keys[name]: value for name, value in self.field_values(scan, options).items()}

    # -- in-memory mutations ----------------------------------------------

    def remove(self, tags: Any) -> list[str]:
        """
        Remove every loudness key this writer can produce.

        Keys are matched case-insensitively; unrelated keys are untouched.

        Returns:
            Keys removed, as they were stored
        """
        targets = self.removable_keys()
        removed = [key for key in dict.fromkeys(self._keys(tags)) if key.upper() in targets]
        for key in removed:
            self._delete(tags, key)
        return removed

    def apply(self, tags: Any, scan: Scan, options: WriteOptions) -> list[str]:
        """Remove existing loudness keys and set the new values. Returns keys written."""
        self.validate(scan, options)
        entries = self.entries(scan, options)
        self.remove(tags)
        return self._apply_entries(tags, entries)

    def _apply_entries(self, tags: Any, entries: dict[str, str]) -> list[str]:
        for key, value in entries.items():
            self._set(tags, key, value)
        return list(entries)

    # -- validation and file handling -------------------------------------

    def validate_options(self, options: WriteOptions) -> None:
        pass

    def validate(self, scan: Scan, options: WriteOptions) -> None:
        if options.do_album and not scan.has_album:
            raise MissingAlbumData(
                "Album tags requested but scan has no album data", file=str(scan.file)
            )
        self.validate_options(options)

    @contextmanager
    def _container(self, file_path: Path, failure: type[TagError]) -> Iterator[Any]:
        """
        Open a file for one operation.

        Open errors become ContainerOpenFailed; mutagen or I/O errors raised
        inside the block become ``failure``.
        """
        from mutagen import MutagenError

        try:
            audio = self._load(file_path)
        except (MutagenError, OSError) as e:
            raise ContainerOpenFailed(
                f"Could not open file as {self.kind}", file=str(file_path), reason=str(e)
            ) from e

        logger.debug(f"Opened {file_path} as {self.kind}")
        try:
            yield audio
        except (MutagenError, OSError) as e:
            raise failure(
                f"Could not save {self.kind} tags", file=str(file_path), reason=str(e)
            ) from e

    def write(self, scan: Scan, options: WriteOptions) -> WriteReport:
        """
        Write loudness tags for a scanned file.

        Args:
            scan: Scan result; ``scan.file`` is the file written
            options: Write options

        Returns:
            WriteReport listing removed and written keys
        """
        self.validate(scan, options)
        entries = self.entries(scan, options)
        file_path = Path(scan.file)
        report = WriteReport(file_path=file_path)

        with self._container(file_path, WriteFailed) as audio:
            if options.strip and self.supports_strip:
                self._strip(audio, file_path)
                report.stripped = True
            tags = self._tags(audio, create=True)
            report.keys_removed = self.remove(tags)
            report.keys_written = self._apply_entries(tags, entries)
            self._save(audio, options)

        logger.info(f"Wrote {len(report.keys_written)} {self.family} tags to {file_path}")
        return report

    def clear(self, file_path: Path, options: WriteOptions | None = None) -> WriteReport:
        """
        Remove loudness tags from a file.

        With ``options.strip`` (where supported) the whole tag container is
        deleted instead.
        """
        options = options or WriteOptions()
        self.validate_options(options)
        file_path = Path(file_path)
        report = WriteReport(file_path=file_path)

        with self._container(file_path, ClearFailed) as audio:
            if options.strip and self.supports_strip:
                self._strip(audio, file_path)
                report.stripped = True
            else:
                tags = self._tags(audio, create=False)
                if tags is not None:
                    report.keys_removed = self.remove(tags)
                    self._save(audio, options)

        logger.info(f"Cleared {len(report.keys_removed)} {self.family} tags from {file_path}")
        return report

    def read_tags(self, file_path: Path) -> dict[str, list[str]]:
        """Read the loudness keys present in a file."""
        targets = self.removable_keys()
        with self._container(Path(file_path), ContainerOpenFailed) as audio:
            tags = self._tags(audio, create=False)
            if tags is None:
                return {}
            return {
                key: self._get(tags, key)
                for key in dict.fromkeys(self._keys(tags))
                if key.upper() in targets
            }

    def verify(self, scan: Scan, options: WriteOptions) -> bool:
        """Check that a file holds exactly the values a write would store."""
        stored = {key.upper(): values for key, values in self.read_tags(scan.file).items()}
        expected = {key.upper(): [value] for key, value in self.entries(scan, options).items()}
        return stored == expected


class ID3TagWriter(TagWriter):
    """
    Loudness tags as ID3v2 TXXX frames.

    Frame descriptions are matched case-insensitively on removal.
    """

    family = TagFamily.ID3V2
    supports_lowercase = True
    supports_strip = True

    def _keys(self, tags: Any) -> list[str]:
        return [frame.desc for frame in tags.getall("TXXX")]

    def _get(self, tags: Any, key: str) -> list[str]:
        return [str(text) for frame in tags.getall(f"TXXX:{key}") for text in frame.text]

    def _set(self, tags: Any, key: str, value: str) -> None:
        from mutagen.id3 import TXXX, Encoding

        tags.delall(f"TXXX:{key}")
        tags.add(TXXX(encoding=Encoding.UTF8, desc=key, text=[value]))

    def _delete(self, tags: Any, key: str) -> None:
        tags.delall(f"TXXX:{key}")

    def validate_options(self, options: WriteOptions) -> None:
        if options.id3v2version not in ID3V2_VERSIONS:
            raise InvalidId3Version(
                "ID3v2 version must be 2, 3 or 4", id3v2version=options.id3v2version
            )

    @staticmethod
    def save_version(options: WriteOptions) -> int:
        # mutagen writes v2.3 and v2.4 layouts only
        return 4 if options.id3v2version == 4 else 3

    def _save(self, audio: Any, options: WriteOptions) -> None:
        audio.save(v2_version=self.save_version(options))


class MP3TagWriter(ID3TagWriter):
    """MP3 files. Stripping also removes ID3v1 and APEv2 tags."""

    kind = ContainerKind.MP3

    def _load(self, file_path: Path) -> Any:
        from mutagen.mp3 import MP3

        return MP3(file_path)

    def _strip(self, audio: Any, file_path: Path) -> None:
        from mutagen.apev2 import delete as delete_ape
        from mutagen.id3 import delete as delete_id3

        delete_ape(file_path)
        delete_id3(file_path, delete_v1=True, delete_v2=True)
        audio.tags = None

    def _save(self, audio: Any, options: WriteOptions) -> None:
        # v1=0 drops any ID3v1 tag, v1=1 only updates an existing one
        v1 = 0 if options.strip else 1
        audio.save(v1=v1, v2_version=self.save_version(options))


class WAVTagWriter(ID3TagWriter):
    """RIFF/WAVE files with an ``id3`` chunk."""

    kind = ContainerKind.WAV

    def _load(self, file_path: Path) -> Any:
        from mutagen.wave import WAVE

        return WAVE(file_path)


class AIFFTagWriter(ID3TagWriter):
    """AIFF files with an ``ID3`` chunk."""

    kind = ContainerKind.AIFF

    def _load(self, file_path: Path) -> Any:
        from mutagen.aiff import AIFF

        return AIFF(file_path)


class VorbisTagWriter(TagWriter):
    """
    Loudness tags as Vorbis comments (FLAC, Ogg).

    Vorbis comment keys are case-insensitive, so keys are always written
    upper case and ``lowercase`` is ignored.
    """

    family = TagFamily.VORBIS

    def _keys(self, tags: Any) -> list[str]:
        return [key for key, _value in tags]

    def _get(self, tags: Any, key: str) -> list[str]:
        return list(tags[key]) if key in tags else []

    def _set(self, tags: Any, key: str, value: str) -> None:
        tags[key] = [value]

    def _delete(self, tags: Any, key: str) -> None:
        if key in tags:
            del tags[key]


class FLACTagWriter(VorbisTagWriter):
    kind = ContainerKind.FLAC

    def _load(self, file_path: Path) -> Any:
        from mutagen.flac import FLAC

        return FLAC(file_path)


class OggVorbisTagWriter(VorbisTagWriter):
    kind = ContainerKind.OGG_VORBIS

    def _load(self, file_path: Path) -> Any:
        from mutagen.oggvorbis import OggVorbis

        return OggVorbis(file_path)


class OggFLACTagWriter(VorbisTagWriter):
    kind = ContainerKind.OGG_FLAC

    def _load(self, file_path: Path) -> Any:
        from mutagen.oggflac import OggFLAC

        return OggFLAC(file_path)


class OggSpeexTagWriter(VorbisTagWriter):
    kind = ContainerKind.OGG_SPEEX

    def _load(self, file_path: Path) -> Any:
        from mutagen.oggspeex import OggSpeex

        return OggSpeex(file_path)


class OpusTagWriter(VorbisTagWriter):
    """
    Opus files, RFC 7845 style.

    Writes R128_TRACK_GAIN / R128_ALBUM_GAIN as Q7.8 integers relative to
    -23 LUFS and removes any REPLAYGAIN_* comments. Peaks, ranges and the
    reference loudness have no R128 tag and are not written. The Opus header
    output gain is left alone.
    """

    kind = ContainerKind.OGG_OPUS
    family = TagFamily.OPUS
    removal_families = (TagFamily.OPUS, TagFamily.VORBIS)

    def _load(self, file_path: Path) -> Any:
        from mutagen.oggopus import OggOpus

        return OggOpus(file_path)

    def field_values(self, scan: Scan, options: WriteOptions) -> dict[Field, str]:
        values = {Field.TRACK_GAIN: str(r128_gain(scan.track))}
        if options.do_album and scan.has_album:
            values[Field.ALBUM_GAIN] = str(r128_gain(scan.album))
        return values


class OpusNonStandardTagWriter(OpusTagWriter):
    """Opus files tagged with REPLAYGAIN_* comments like Ogg Vorbis."""

    family = TagFamily.VORBIS
    removal_families = (TagFamily.VORBIS, TagFamily.OPUS)

    def field_values(self, scan: Scan, options: WriteOptions) -> dict[Field, str]:
        return TagWriter.field_values(self, scan, options)


class APETagWriter(TagWriter):
    """
    Loudness tags as APEv2 text items.

    APEv2 item keys are case-insensitive but keep the case they were written
    with. Stripping deletes the APE tag and any trailing ID3v1 tag.
    """

    family = TagFamily.APE
    supports_lowercase = True
    supports_strip = True

    def _keys(self, tags: Any) -> list[str]:
        return list(tags.keys())

    def _get(self, tags: Any, key: str) -> list[str]:
        return [str(tags[key])] if key in tags else []

    def _set(self, tags: Any, key: str, value: str) -> None:
        tags[key] = value

    def _delete(self, tags: Any, key: str) -> None:
        if key in tags:
            del tags[key]

    def _strip(self, audio: Any, file_path: Path) -> None:
        from mutagen.id3 import delete as delete_id3

        super()._strip(audio, file_path)
        delete_id3(file_path, delete_v1=True, delete_v2=False)


class WavPackTagWriter(APETagWriter):
    kind = ContainerKind.WAVPACK

    def _load(self, file_path: Path) -> Any:
        from mutagen.wavpack import WavPack

        return WavPack(file_path)


class MonkeysAudioTagWriter(APETagWriter):
    kind = ContainerKind.APE

    def _load(self, file_path: Path) -> Any:
        from mutagen.monkeysaudio import MonkeysAudio

        return MonkeysAudio(file_path)


class MP4TagWriter(TagWriter):
    """
    Loudness tags as MP4 freeform atoms.

    Keys have the form ``----:com.apple.iTunes:<NAME>``; ``lowercase``
    affects only ``<NAME>``. Values are stored as UTF-8 data.
    """

    kind = ContainerKind.MP4
    family = TagFamily.MP4
    supports_lowercase = True

    def _load(self, file_path: Path) -> Any:
        from mutagen.mp4 import MP4

        return MP4(file_path)

    def _keys(self, tags: Any) -> list[str]:
        return list(tags.keys())

    def _get(self, tags: Any, key: str) -> list[str]:
        if key not in tags:
            return []
        return [bytes(value).decode("utf-8", errors="replace") for value in tags[key]]

    def _set(self, tags: Any, key: str, value: str) -> None:
        from mutagen.mp4 import MP4FreeForm

        tags[key] = [MP4FreeForm(value.encode("utf-8"))]

    def _delete(self, tags: Any, key: str) -> None:
        if key in tags:
            del tags[key]


class ASFTagWriter(TagWriter):
    """Loudness tags as ASF (WMA) unicode attributes."""

    kind = ContainerKind.ASF
    family = TagFamily.ASF
    supports_lowercase = True

    def _load(self, file_path: Path) -> Any:
        from mutagen.asf import ASF

        return ASF(file_path)

    def _keys(self, tags: Any) -> list[str]:
        return list(tags.keys())

    def _get(self, tags: Any, key: str) -> list[str]:
        if key not in tags:
            return []
        return [str(attribute.value) for attribute in tags[key]]

    def _set(self, tags: Any, key: str, value: str) -> None:
        from mutagen.asf import ASFUnicodeAttribute

        tags[key] = [ASFUnicodeAttribute(value)]

    def _delete(self, tags: Any, key: str) -> None:
        if key in tags:
            del tags[key]
