"""Custom exceptions for cel_formats"""
from __future__ import annotations


class CelFormatsError(Exception):
    """Base exception for all cel_formats errors.

    Carries the offending asset path and, where meaningful, the absolute
    byte offset within that file.
    """

    def __init__(self, message: str, path: str | None = None,
                 offset: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.offset = offset

    def rebase(self, delta: int) -> CelFormatsError:
        """Shift a payload-relative offset into file coordinates."""
        if self.offset is not None:
            self.offset += delta
        return self

    def with_path(self, path) -> CelFormatsError:
        if self.path is None:
            self.path = str(path)
        return self

    def __str__(self) -> str:
        parts = []
        if self.path is not None:
            parts.append(self.path)
        if self.offset is not None:
            parts.append(f"offset 0x{self.offset:X}")
        if parts:
            return f"{': '.join(parts)}: {self.message}"
        return self.message


class AssetUnknown(CelFormatsError):
    """Raised when an asset name is absent from the metadata registry."""


class AssetFileError(CelFormatsError):
    """Raised when an input file is missing, not a file, or too large."""


class MalformedPalette(CelFormatsError):
    """Raised when a PAL file is not exactly 768 bytes."""


class MalformedTransitionTable(CelFormatsError):
    """Raised when a TRN file is not exactly 256 bytes."""


class TruncatedContainer(CelFormatsError):
    """Raised when a file is shorter than its offset table or a frame range."""


class InvalidOffsetTable(CelFormatsError):
    """Raised when offsets are not monotone or fall outside the file."""


class FrameRangeOutOfBounds(TruncatedContainer, InvalidOffsetTable):
    """Raised when an offset points past the end of the file."""


class ContainerKindMismatch(CelFormatsError):
    """Raised when a plain file is decoded as an archive or vice versa."""


class UnknownFrameType(CelFormatsError):
    """Raised when a frame type code is outside 0-6."""


class MalformedFrame(CelFormatsError):
    """Raised when frame pixel data does not match its declared layout."""


class UnsupportedMinLayout(CelFormatsError):
    """Raised when the block count of a MIN file cannot be determined."""


class MalformedMinFile(CelFormatsError):
    """Raised when a MIN file is not a whole number of dungeon pieces."""


class MalformedTilFile(CelFormatsError):
    """Raised when a TIL file is not a whole number of tiles."""


class DungeonPieceIndexError(CelFormatsError):
    """Raised when a tile or block refers past the available pieces or frames."""


class MetadataError(CelFormatsError):
    """Raised when the asset metadata resource cannot be loaded or is invalid."""
