#!/usr/bin/env python3
"""
PAL and TRN utilities
Palette loading and colour transition tables
"""
from __future__ import annotations

import numpy as np

from .constants import (
    BYTES_PER_COLOR,
    MAX_PAL_FILE_SIZE,
    MAX_TRN_FILE_SIZE,
    OPAQUE_ALPHA,
    PALETTE_ENTRIES,
    PALETTE_SIZE_BYTES,
    TRANSITION_SIZE_BYTES,
)
from .exceptions import MalformedPalette, MalformedTransitionTable
from .file_utils import read_binary
from .logging_config import get_logger

logger = get_logger(__name__)


class Palette:
    """
    An immutable 256-entry RGBA palette.

    Alpha is always 255; transparency is decided by the frame decoders,
    never by the palette.
    """

    __slots__ = ("_lut",)

    def __init__(self, rgba: np.ndarray) -> None:
        lut = np.array(rgba, dtype=np.uint8).reshape(PALETTE_ENTRIES, 4)
        lut.setflags(write=False)
        self._lut = lut

    @classmethod
    def from_rgb_bytes(cls, buf: bytes, path: str | None = None) -> Palette:
        """
        Build a palette from 768 bytes of RGB triples.

        Raises:
            MalformedPalette: If buf is not exactly 768 bytes
        """
        if len(buf) != PALETTE_SIZE_BYTES:
            raise MalformedPalette(
                f"invalid PAL file size; expected {PALETTE_SIZE_BYTES}, got {len(buf)}",
                path=path,
            )
        rgb = np.frombuffer(buf, dtype=np.uint8).reshape(PALETTE_ENTRIES, BYTES_PER_COLOR)
        alpha = np.full((PALETTE_ENTRIES, 1), OPAQUE_ALPHA, dtype=np.uint8)
        return cls(np.hstack([rgb, alpha]))

    @property
    def lut(self) -> np.ndarray:
        """Read-only (256, 4) uint8 lookup table."""
        return self._lut

    def __len__(self) -> int:
        return PALETTE_ENTRIES

    def __getitem__(self, index: int) -> tuple[int, int, int, int]:
        r, g, b, a = self._lut[index]
        return int(r), int(g), int(b), int(a)

    def __iter__(self):
        for i in range(PALETTE_ENTRIES):
            yield self[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return bool(np.array_equal(self._lut, other._lut))

    def __hash__(self) -> int:
        return hash(self._lut.tobytes())

    def __repr__(self) -> str:
        return f"Palette(first={self[0]}, last={self[PALETTE_ENTRIES - 1]})"

    def to_rgb_list(self) -> list[int]:
        """Flat list of 768 RGB values, as accepted by Image.putpalette."""
        return self._lut[:, :3].flatten().tolist()


class TransitionTable:
    """An immutable 256-entry palette index remap table."""

    __slots__ = ("_indices",)

    def __init__(self, indices) -> None:
        table = np.array(indices, dtype=np.uint8)
        if table.shape != (TRANSITION_SIZE_BYTES,):
            raise MalformedTransitionTable(
                f"invalid TRN size; expected {TRANSITION_SIZE_BYTES}, got {table.size}"
            )
        table.setflags(write=False)
        self._indices = table

    @classmethod
    def from_bytes(cls, buf: bytes, path: str | None = None) -> TransitionTable:
        if len(buf) != TRANSITION_SIZE_BYTES:
            raise MalformedTransitionTable(
                f"invalid TRN file size; expected {TRANSITION_SIZE_BYTES}, got {len(buf)}",
                path=path,
            )
        return cls(np.frombuffer(buf, dtype=np.uint8))

    @property
    def indices(self) -> np.ndarray:
        return self._indices

    def __len__(self) -> int:
        return TRANSITION_SIZE_BYTES

    def __getitem__(self, index: int) -> int:
        return int(self._indices[index])

    def remap(self, index: int) -> int:
        """Map a palette index through the table."""
        return int(self._indices[index])

    def apply(self, palette: Palette) -> Palette:
        """
        Resolve a new palette through the table: dst[i] = src[trn[i]].

        Args:
            palette: Source palette

        Returns:
            Remapped palette
        """
        return Palette(palette.lut[self._indices])


def load_palette(pal_file) -> Palette:
    """
    Read a PAL file.

    Args:
        pal_file: Path to a 768-byte PAL file

    Returns:
        Palette with 256 opaque entries

    Raises:
        MalformedPalette: If the file is not exactly 768 bytes
    """
    buf = read_binary(pal_file, max_size=MAX_PAL_FILE_SIZE)
    palette = Palette.from_rgb_bytes(buf, path=str(pal_file))
    logger.debug(f"Loaded palette {pal_file}")
    return palette


def load_transition_table(trn_file) -> TransitionTable:
    """
    Read a TRN file.

    Raises:
        MalformedTransitionTable: If the file is not exactly 256 bytes
    """
    buf = read_binary(trn_file, max_size=MAX_TRN_FILE_SIZE)
    table = TransitionTable.from_bytes(buf, path=str(trn_file))
    logger.debug(f"Loaded transition table {trn_file}")
    return table


def get_grayscale_palette() -> Palette:
    """
    Get a grayscale palette for previews when no PAL file is at hand.

    Returns:
        Palette where index i maps to (i, i, i, 255)
    """
    ramp = np.arange(PALETTE_ENTRIES, dtype=np.uint8)
    alpha = np.full(PALETTE_ENTRIES, OPAQUE_ALPHA, dtype=np.uint8)
    return Palette(np.stack([ramp, ramp, ramp, alpha], axis=1))
