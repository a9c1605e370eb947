#!/usr/bin/env python3
r"""
Tiles (TIL files)

A TIL file is a packed sequence of u16 words, four per tile, naming the
0-based dungeon pieces that form an isometric square:

           top

            /\
    left   /\/\   right
           \/\/
            \/

          bottom
"""
from __future__ import annotations

import struct
from collections.abc import Iterable, MutableMapping, Sequence
from dataclasses import dataclass

from PIL import Image

from .constants import (
    BLOCK_HEIGHT,
    MAX_TIL_FILE_SIZE,
    TIL_WORDS_PER_TILE,
    TRANSPARENT,
    WORD_SIZE,
)
from .dpiece import DungeonPiece
from .exceptions import CelFormatsError, DungeonPieceIndexError, MalformedTilFile
from .file_utils import read_binary
from .logging_config import get_logger

logger = get_logger(__name__)

TILE_SIZE_BYTES = WORD_SIZE * TIL_WORDS_PER_TILE

PieceCache = MutableMapping[int, Image.Image]


@dataclass(frozen=True)
class Tile:
    """Four dungeon piece indices forming one tile"""

    top: int
    right: int
    left: int
    bottom: int

    def image(self, dpieces: Sequence[DungeonPiece],
              level_frames: Sequence[Image.Image],
              cache: PieceCache | None = None) -> Image.Image:
        """
        Compose the tile from its dungeon pieces.

        The tile is two pieces wide and one piece plus one block high. Pieces
        are drawn top, right, left, bottom with source-over compositing.

        Args:
            dpieces: Dungeon pieces of the level
            level_frames: Decoded frames of the level CEL file
            cache: Rendered pieces by index, shared between tiles

        Raises:
            DungeonPieceIndexError: If an index refers past dpieces
        """
        def piece_image(index: int) -> Image.Image:
            if cache is not None and index in cache:
                return cache[index]
            if not 0 <= index < len(dpieces):
                raise DungeonPieceIndexError(
                    f"tile refers to dungeon piece {index}; level has {len(dpieces)}"
                )
            img = dpieces[index].image(level_frames)
            if cache is not None:
                cache[index] = img
            return img

        top = piece_image(self.top)
        right = piece_image(self.right)
        left = piece_image(self.left)
        bottom = piece_image(self.bottom)

        piece_width, piece_height = top.size
        img = Image.new("RGBA", (2 * piece_width, piece_height + BLOCK_HEIGHT), TRANSPARENT)
        img.alpha_composite(top, dest=(piece_width // 2, 0))
        img.alpha_composite(right, dest=(piece_width, BLOCK_HEIGHT // 2))
        img.alpha_composite(left, dest=(0, BLOCK_HEIGHT // 2))
        img.alpha_composite(bottom, dest=(piece_width // 2, BLOCK_HEIGHT))
        return img


def parse_til(data: bytes) -> list[Tile]:
    """
    Parse the contents of a TIL file.

    Raises:
        MalformedTilFile: If data is not a whole number of tiles
    """
    if len(data) % TILE_SIZE_BYTES:
        raise MalformedTilFile(
            f"{len(data)} bytes is not a multiple of the {TILE_SIZE_BYTES}-byte tile",
            offset=len(data) - len(data) % TILE_SIZE_BYTES,
        )
    return [Tile(*words) for words in struct.iter_unpack(f"<{TIL_WORDS_PER_TILE}H", data)]


def load_til(til_file) -> list[Tile]:
    """Read a TIL file."""
    try:
        tiles = parse_til(read_binary(til_file, max_size=MAX_TIL_FILE_SIZE))
    except CelFormatsError as e:
        raise e.with_path(til_file)
    logger.info(f"Loaded {len(tiles)} tiles from {til_file}")
    return tiles


def render_tiles(tiles: Iterable[Tile], dpieces: Sequence[DungeonPiece],
                 level_frames: Sequence[Image.Image]) -> list[Image.Image]:
    """Render tiles, composing each shared dungeon piece only once."""
    cache: PieceCache = {}
    images = [tile.image(dpieces, level_frames, cache) for tile in tiles]
    logger.debug(f"Rendered {len(images)} tiles from {len(cache)} dungeon pieces")
    return images

