"""
Tag key policy.

Maps logical loudness fields to the concrete key strings each tag family
uses. Key sets are fully determined by (family, extended, lowercase).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from types import MappingProxyType

from loudtag.errors import UnsupportedField


class Field(StrEnum):
    """Logical loudness fields."""

    TRACK_GAIN = "track_gain"
    TRACK_PEAK = "track_peak"
    TRACK_RANGE = "track_range"
    ALBUM_GAIN = "album_gain"
    ALBUM_PEAK = "album_peak"
    ALBUM_RANGE = "album_range"
    REFERENCE_LOUDNESS = "reference_loudness"


class TagFamily(StrEnum):
    """Tag container families sharing one key vocabulary."""

    ID3V2 = "id3v2"
    VORBIS = "vorbis"
    OPUS = "opus"
    APE = "ape"
    MP4 = "mp4"
    ASF = "asf"


REPLAYGAIN_STANDARD: dict[Field, str] = {
    Field.TRACK_GAIN: "REPLAYGAIN_TRACK_GAIN",
    Field.TRACK_PEAK: "REPLAYGAIN_TRACK_PEAK",
    Field.ALBUM_GAIN: "REPLAYGAIN_ALBUM_GAIN",
    Field.ALBUM_PEAK: "REPLAYGAIN_ALBUM_PEAK",
}

REPLAYGAIN_EXTENDED: dict[Field, str] = {
    Field.REFERENCE_LOUDNESS: "REPLAYGAIN_REFERENCE_LOUDNESS",
    Field.TRACK_RANGE: "REPLAYGAIN_TRACK_RANGE",
    Field.ALBUM_RANGE: "REPLAYGAIN_ALBUM_RANGE",
}

R128_STANDARD: dict[Field, str] = {
    Field.TRACK_GAIN: "R128_TRACK_GAIN",
    Field.ALBUM_GAIN: "R128_ALBUM_GAIN",
}

MP4_FREEFORM_PREFIX = "----:com.apple.iTunes:"


@dataclass(frozen=True)
class KeyPolicy:
    """Naming rules for one tag family."""

    standard: Mapping[Field, str]
    extended: Mapping[Field, str]
    prefix: str = ""
    folds_case: bool = True


POLICIES: dict[TagFamily, KeyPolicy] = {
    TagFamily.ID3V2: KeyPolicy(REPLAYGAIN_STANDARD, REPLAYGAIN_EXTENDED),
    # Vorbis comment keys are case-insensitive; always written upper case
    TagFamily.VORBIS: KeyPolicy(REPLAYGAIN_STANDARD, REPLAYGAIN_EXTENDED, folds_case=False),
    TagFamily.OPUS: KeyPolicy(R128_STANDARD, {}, folds_case=False),
    TagFamily.APE: KeyPolicy(REPLAYGAIN_STANDARD, REPLAYGAIN_EXTENDED),
    TagFamily.MP4: KeyPolicy(REPLAYGAIN_STANDARD, REPLAYGAIN_EXTENDED, prefix=MP4_FREEFORM_PREFIX),
    TagFamily.ASF: KeyPolicy(REPLAYGAIN_STANDARD, REPLAYGAIN_EXTENDED),
}


@dataclass(frozen=True)
class TagKeySet:
    """Immutable mapping of logical fields to concrete keys for one family."""

    family: TagFamily
    keys: Mapping[Field, str]

    def __getitem__(self, field: Field) -> str:
        try:
            return self.keys[field]
        except KeyError:
            raise UnsupportedField(
                f"Field {field} is not defined for {self.family} tags",
                family=str(self.family),
                field=str(field),
            ) from None

    def __contains__(self, field: object) -> bool:
        return field in self.keys

    def __iter__(self) -> Iterator[Field]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def values(self) -> list[str]:
        return list(self.keys.values())


def _render(policy: KeyPolicy, name: str, lowercase: bool) -> str:
    if lowercase and policy.folds_case:
        name = name.lower()
    return f"{policy.prefix}{name}"


@lru_cache(maxsize=64)
def keys_for(family: TagFamily, extended: bool = False, lowercase: bool = False) -> TagKeySet:
    """
    Resolve the key set a writer uses.

    Args:
        family: Tag family
        extended: Include the reference loudness and range keys
        lowercase: Lowercase key names (ignored by families that don't fold case)

    Returns:
        TagKeySet with standard keys first, then extended keys
    """
    policy = POLICIES[TagFamily(family)]
    names: dict[Field, str] = dict(policy.standard)
    if extended:
        names.update(policy.extended)
    keys = {field: _render(policy, name, lowercase) for field, name in names.items()}
    return TagKeySet(family=TagFamily(family), keys=MappingProxyType(keys))


@lru_cache(maxsize=16)
def all_keys(family: TagFamily) -> frozenset[str]:
    """Every key the family can produce, in both casings."""
    keys: set[str] = set()
    for lowercase in (False, True):
        keys.update(keys_for(family, extended=True, lowercase=lowercase).values())
    return frozenset(keys)
