# core/generation_flags.py

"""Origin classes of packages and the bit-set used to enable them for project generation."""

from enum import Enum, IntFlag
from typing import Iterator


class GenerationFlag(IntFlag):
    NONE = 0
    EMBEDDED = 1
    LOCAL = 2
    REGISTRY = 4
    GIT = 8
    BUILT_IN = 16
    UNKNOWN = 32
    PLAYER_ASSEMBLIES = 64  # player-only modifier, not an origin class
    LOCAL_TARBALL = 128


class PackageSource(Enum):
    UNKNOWN = "unknown"
    BUILT_IN = "builtin"
    REGISTRY = "registry"
    EMBEDDED = "embedded"
    LOCAL = "local"
    GIT = "git"
    LOCAL_TARBALL = "localtarball"

    @classmethod
    def parse(cls, value) -> "PackageSource":
        """Parses a catalog value ("git", "LocalTarball", "BUILT_IN"...). Anything unrecognised is UNKNOWN."""
        if isinstance(value, PackageSource):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        key = value.strip().lower().replace("_", "").replace("-", "")
        for source in cls:
            if source.value == key:
                return source
        return cls.UNKNOWN


# Order in which the origin groups are presented. Unknown origin is not a filter group.
FILTERABLE_FLAGS = [
    GenerationFlag.EMBEDDED,
    GenerationFlag.LOCAL,
    GenerationFlag.REGISTRY,
    GenerationFlag.GIT,
    GenerationFlag.BUILT_IN,
    GenerationFlag.LOCAL_TARBALL,
]

_DESCRIPTIONS = {
    GenerationFlag.EMBEDDED: "Embedded packages",
    GenerationFlag.LOCAL: "Local packages",
    GenerationFlag.REGISTRY: "Registry packages",
    GenerationFlag.GIT: "Git packages",
    GenerationFlag.BUILT_IN: "Built-in packages",
    GenerationFlag.LOCAL_TARBALL: "Local tarball",
    GenerationFlag.UNKNOWN: "Packages from unknown sources",
    GenerationFlag.PLAYER_ASSEMBLIES: "Player projects",
}


def flag_from_source(source) -> GenerationFlag:
    """Maps a package origin to its flag bit. Unknown origin maps to NONE."""
    source = PackageSource.parse(source)
    if source is PackageSource.UNKNOWN:
        return GenerationFlag.NONE
    return GenerationFlag[source.name]


def flag_description(flag) -> str:
    return _DESCRIPTIONS.get(GenerationFlag(flag), "")


class FlagSet:
    """
    Immutable set of GenerationFlag bits.

    Mutators return a new FlagSet so a captured value can never change
    underneath whoever captured it.
    """

    __slots__ = ("_bits",)

    def __init__(self, bits=0):
        if isinstance(bits, FlagSet):
            bits = bits.bits
        self._bits = int(bits) & 0xFF

    @classmethod
    def from_flags(cls, *flags) -> "FlagSet":
        bits = 0
        for flag in flags:
            bits |= int(flag)
        return cls(bits)

    @property
    def bits(self) -> int:
        return self._bits

    def contains(self, flag) -> bool:
        bit = int(flag)
        if bit == 0:
            return False
        return (self._bits & bit) == bit

    def set(self, flag) -> "FlagSet":
        return FlagSet(self._bits | int(flag))

    def clear(self, flag) -> "FlagSet":
        return FlagSet(self._bits & ~int(flag))

    def toggle(self, flag) -> "FlagSet":
        return FlagSet(self._bits ^ int(flag))

    def __iter__(self) -> Iterator[GenerationFlag]:
        for flag in GenerationFlag:
            if flag != GenerationFlag.NONE and self.contains(flag):
                yield flag

    def __eq__(self, other):
        if isinstance(other, FlagSet):
            return self._bits == other._bits
        return NotImplemented

    def __hash__(self):
        return hash(self._bits)

    def __bool__(self):
        return self._bits != 0

    def __repr__(self):
        names = "|".join(flag.name for flag in self) or "NONE"
        return f"FlagSet({names})"
