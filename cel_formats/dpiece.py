#!/usr/bin/env python3
"""
Dungeon pieces (MIN files)

A MIN file is a packed sequence of u16 words, 10 or 16 per dungeon piece.
Each word describes one 32x32 block:

    frame index  bits 0-11   1-based frame of the level CEL, 0 = empty
    frame type   bits 12-14  encoding of that frame

Blocks are laid out two per row, top to bottom:

    +----+----+
    |  0 |  1 |
    +----+----+
    |  2 |  3 |
    +----+----+
    | .. | .. |
"""
from __future__ import annotations

import os
import struct
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from PIL import Image

from .constants import (
    BLOCK_HEIGHT,
    BLOCK_WIDTH,
    DPIECE_COLUMNS,
    MAX_MIN_FILE_SIZE,
    MIN_BLOCKS_PER_PIECE,
    MIN_FRAME_INDEX_MASK,
    MIN_FRAME_TYPE_MASK,
    MIN_FRAME_TYPE_SHIFT,
    TRANSPARENT,
    WORD_SIZE,
)
from .exceptions import (
    CelFormatsError,
    DungeonPieceIndexError,
    MalformedMinFile,
    UnsupportedMinLayout,
)
from .file_utils import read_binary
from .frame_types import FrameType
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Block:
    """One 32x32 cell of a dungeon piece"""

    frame_index: int  # 1-based; 0 if empty
    frame_type: int

    @classmethod
    def from_word(cls, word: int) -> Block:
        return cls(
            frame_index=word & MIN_FRAME_INDEX_MASK,
            frame_type=(word & MIN_FRAME_TYPE_MASK) >> MIN_FRAME_TYPE_SHIFT,
        )

    @property
    def is_empty(self) -> bool:
        return self.frame_index == 0


@dataclass(frozen=True)
class DungeonPiece:
    """A 64 pixel wide strip of 10 or 16 blocks"""

    blocks: tuple[Block, ...]

    @property
    def size(self) -> tuple[int, int]:
        return (BLOCK_WIDTH * DPIECE_COLUMNS,
                BLOCK_HEIGHT * (len(self.blocks) // DPIECE_COLUMNS))

    def image(self, level_frames: Sequence[Image.Image]) -> Image.Image:
        """
        Compose the dungeon piece from the frames of its level CEL.

        Every non-empty block replaces its 32x32 cell with frame
        frame_index - 1; empty blocks stay transparent.

        Args:
            level_frames: Decoded frames of the level CEL file

        Raises:
            DungeonPieceIndexError: If a block refers past level_frames
        """
        img = Image.new("RGBA", self.size, TRANSPARENT)
        for block_num, block in enumerate(self.blocks):
            if block.is_empty:
                continue
            if block.frame_index > len(level_frames):
                raise DungeonPieceIndexError(
                    f"block {block_num} refers to frame {block.frame_index}; "
                    f"level has {len(level_frames)} frames"
                )
            frame = level_frames[block.frame_index - 1]
            x = BLOCK_WIDTH * (block_num % DPIECE_COLUMNS)
            y = BLOCK_HEIGHT * (block_num // DPIECE_COLUMNS)
            img.paste(frame.crop((0, 0, BLOCK_WIDTH, BLOCK_HEIGHT)), (x, y))
        return img


@dataclass(frozen=True)
class MinFile:
    """The dungeon pieces of one level"""

    blocks_per_piece: int
    pieces: tuple[DungeonPiece, ...]

    def __len__(self) -> int:
        return len(self.pieces)

    def __getitem__(self, index: int) -> DungeonPiece:
        return self.pieces[index]

    def __iter__(self) -> Iterator[DungeonPiece]:
        return iter(self.pieces)

    def frame_types(self) -> dict[int, FrameType]:
        """
        Frame types recorded in the block words, keyed by 0-based frame index.

        The first block that uses a frame decides its type. The result can be
        handed to decode_all as frame type overrides for the level CEL.

        Raises:
            UnknownFrameType: If a used block records a type outside 0-6
        """
        types: dict[int, FrameType] = {}
        for piece in self.pieces:
            for block in piece.blocks:
                if not block.is_empty and block.frame_index - 1 not in types:
                    types[block.frame_index - 1] = FrameType.from_code(block.frame_type)
        return types

    def images(self, level_frames: Sequence[Image.Image]) -> list[Image.Image]:
        return [piece.image(level_frames) for piece in self.pieces]


def blocks_per_piece_for(name) -> int:
    """
    Number of blocks per dungeon piece, selected by MIN file name.

    Raises:
        UnsupportedMinLayout: If the file name is not a known level
    """
    base = os.path.basename(str(name)).lower()
    try:
        return MIN_BLOCKS_PER_PIECE[base]
    except KeyError:
        raise UnsupportedMinLayout(
            f"unknown MIN layout {base!r}; expected one of "
            f"{', '.join(sorted(MIN_BLOCKS_PER_PIECE))} or an explicit block count",
            path=str(name),
        ) from None


def parse_min(data: bytes, blocks_per_piece: int) -> MinFile:
    """
    Parse the contents of a MIN file.

    Args:
        data: MIN file contents
        blocks_per_piece: 10 or 16

    Raises:
        UnsupportedMinLayout: If blocks_per_piece is not a positive even number
        MalformedMinFile: If data is not a whole number of dungeon pieces
    """
    if blocks_per_piece <= 0 or blocks_per_piece % DPIECE_COLUMNS:
        raise UnsupportedMinLayout(f"invalid block count {blocks_per_piece}")
    piece_size = WORD_SIZE * blocks_per_piece
    if len(data) % piece_size:
        whole = len(data) - len(data) % piece_size
        raise MalformedMinFile(
            f"{len(data)} bytes is not a multiple of the {piece_size}-byte dungeon piece",
            offset=whole,
        )

    words = struct.unpack(f"<{len(data) // WORD_SIZE}H", data)
    pieces = tuple(
        DungeonPiece(tuple(Block.from_word(w) for w in words[i:i + blocks_per_piece]))
        for i in range(0, len(words), blocks_per_piece)
    )
    logger.debug(f"Parsed {len(pieces)} dungeon pieces of {blocks_per_piece} blocks")
    return MinFile(blocks_per_piece=blocks_per_piece, pieces=pieces)


def load_min(min_file, blocks_per_piece: int | None = None) -> MinFile:
    """
    Read a MIN file.

    Args:
        min_file: Path to the MIN file
        blocks_per_piece: Override for files outside the known levels

    Raises:
        UnsupportedMinLayout: If the layout cannot be determined
        MalformedMinFile: If the file is truncated
    """
    try:
        if blocks_per_piece is None:
            blocks_per_piece = blocks_per_piece_for(min_file)
        data = read_binary(min_file, max_size=MAX_MIN_FILE_SIZE)
        result = parse_min(data, blocks_per_piece)
    except CelFormatsError as e:
        raise e.with_path(min_file)
    logger.info(f"Loaded {len(result)} dungeon pieces from {min_file}")
    return result
