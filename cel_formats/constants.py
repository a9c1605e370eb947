#!/usr/bin/env python3
"""
Constants for CEL/CL2 decoding
All magic numbers and format specifications in one place
"""

# Palette specifications
PALETTE_ENTRIES = 256  # Total palette entries
BYTES_PER_COLOR = 3  # RGB888
PALETTE_SIZE_BYTES = 768  # 256 colors * 3 bytes (RGB)
OPAQUE_ALPHA = 255
TRANSPARENT = (0, 0, 0, 0)

# Transition table specifications
TRANSITION_SIZE_BYTES = 256

# Container specifications
OFFSET_SIZE = 4  # u32 little-endian
ARCHIVE_IMAGE_COUNT = 8  # Sub-images per archive in observed data
MAX_ARCHIVE_IMAGES = 8

# Level frame specifications
LEVEL_FRAME_WIDTH = 32  # pixels
LEVEL_FRAME_HEIGHT = 32  # pixels
TRIANGLE_FRAME_SIZE = 544  # bytes, types 2 and 3
TRAPEZOID_FRAME_SIZE = 800  # bytes, types 4 and 5
PADDING_BYTES = 2  # explicit 0x00 pair on alternate rows

# CL2 opcode ranges (signed)
RLE_OPCODE_MIN = -128
RLE_OPCODE_MAX = -65
RLE_OPCODE_BIAS = 65

# MIN/TIL specifications
BLOCK_WIDTH = 32
BLOCK_HEIGHT = 32
DPIECE_COLUMNS = 2
MIN_FRAME_INDEX_MASK = 0x0FFF
MIN_FRAME_TYPE_MASK = 0x7000
MIN_FRAME_TYPE_SHIFT = 12
MIN_BLOCKS_PER_PIECE = {
    "l1.min": 10,
    "l2.min": 10,
    "l3.min": 10,
    "l4.min": 16,
    "town.min": 16,
}
TIL_WORDS_PER_TILE = 4
WORD_SIZE = 2  # u16 little-endian

# File size limits
MAX_PAL_FILE_SIZE = 64 * 1024  # sanity cap; exact size is checked by the parser
MAX_TRN_FILE_SIZE = 64 * 1024
MAX_CEL_FILE_SIZE = 64 * 1024 * 1024  # 64MB
MAX_MIN_FILE_SIZE = 4 * 1024 * 1024  # 4MB
MAX_TIL_FILE_SIZE = 1024 * 1024  # 1MB

# Default values
DEFAULT_PALETTE = "levels/towndata/town.pal"
DEFAULT_MPQ_DIR = "diabdat"
