#!/usr/bin/env python3
"""
CEL/CL2 frame decoders

Every decoder fills a (height, width, 4) RGBA canvas that starts out fully
transparent. Frame data is stored bottom-up: the first encoded row is the
last row of the image, so decoders write straight into the inverted row.

Type 0  plain level frame: width*height palette indices
Type 1  sprite: per row, signed opcodes; n > 0 copies n literal indices,
        n < 0 skips -n transparent pixels
Type 2  32x32 left-facing triangle (opaque run on the right)
Type 3  32x32 right-facing triangle (opaque run on the left)
Type 4  32x32 left-facing trapezoid
Type 5  32x32 right-facing trapezoid
Type 6  CL2 sprite: n > 0 literal, -65 >= n >= -128 repeats one index
        -(n + 65) times, -64 <= n <= -1 skips -n transparent pixels

The triangle and trapezoid variants store 2, 4, ..., 32 opaque pixels on
their first sixteen rows. Triangles then shrink back 30, 28, ..., 2, 0;
trapezoids stay 32 wide. Every other row (widths 2, 6, 10, ...) carries two
explicit 0x00 bytes, placed before the pixels for left-facing frames and
after them for right-facing ones.
"""
from __future__ import annotations

from typing import Callable

import numpy as np
from PIL import Image

from .asset_config_loader import AssetConfig
from .constants import (
    LEVEL_FRAME_HEIGHT,
    LEVEL_FRAME_WIDTH,
    PADDING_BYTES,
    RLE_OPCODE_BIAS,
    RLE_OPCODE_MAX,
    RLE_OPCODE_MIN,
    TRAPEZOID_FRAME_SIZE,
    TRIANGLE_FRAME_SIZE,
)
from .exceptions import MalformedFrame
from .frame_types import FrameType
from .logging_config import get_logger
from .palette_utils import Palette

logger = get_logger(__name__)


def _row_layout(widths: list[int]) -> tuple[tuple[int, bool], ...]:
    # Rows of width 2, 6, 10, ... (i.e. even stored rows below full width)
    # are padded with two explicit transparent bytes.
    return tuple(
        (n, row % 2 == 0 and n < LEVEL_FRAME_WIDTH) for row, n in enumerate(widths)
    )


_RISING = list(range(2, LEVEL_FRAME_WIDTH + 1, 2))  # 2, 4, ..., 32
TRIANGLE_ROWS = _row_layout(_RISING + list(range(LEVEL_FRAME_WIDTH - 2, -1, -2)))
TRAPEZOID_ROWS = _row_layout(_RISING + [LEVEL_FRAME_WIDTH] * (LEVEL_FRAME_HEIGHT // 2))


def _signed(b: int) -> int:
    return b - 256 if b > 127 else b


class _RowWriter:
    """Writes pixel runs left to right, rows from the bottom of the canvas up."""

    def __init__(self, canvas: np.ndarray, lut: np.ndarray) -> None:
        self.canvas = canvas
        self.lut = lut
        self.height, self.width = canvas.shape[:2]
        self.row = 0
        self.x = 0

    def _reserve(self, n: int, pos: int) -> int:
        if self.row >= self.height:
            raise MalformedFrame(
                f"frame data continues past the last of {self.height} rows", offset=pos
            )
        if self.x + n > self.width:
            raise MalformedFrame(
                f"run of {n} pixels at x={self.x} overflows row {self.row} "
                f"of width {self.width}",
                offset=pos,
            )
        return self.height - 1 - self.row

    def _advance(self, n: int) -> None:
        self.x += n
        if self.x == self.width:
            self.x = 0
            self.row += 1

    def opaque(self, indices: bytes, pos: int) -> None:
        n = len(indices)
        if n == 0:
            return
        y = self._reserve(n, pos)
        self.canvas[y, self.x:self.x + n] = self.lut[np.frombuffer(indices, dtype=np.uint8)]
        self._advance(n)

    def fill(self, index: int, n: int, pos: int) -> None:
        if n == 0:
            return
        y = self._reserve(n, pos)
        self.canvas[y, self.x:self.x + n] = self.lut[index]
        self._advance(n)

    def transparent(self, n: int, pos: int) -> None:
        if n == 0:
            return
        self._reserve(n, pos)
        self._advance(n)

    def finish(self, pos: int) -> None:
        if self.x != 0:
            raise MalformedFrame(
                f"frame data ends mid-row ({self.x} of {self.width} pixels on row {self.row})",
                offset=pos,
            )
        if self.row < self.height:
            raise MalformedFrame(
                f"frame data ends after {self.row} of {self.height} rows",
                offset=pos,
            )


def _literal(data: bytes, pos: int, n: int, writer: _RowWriter) -> int:
    end = pos + n
    if end > len(data):
        raise MalformedFrame(
            f"literal run of {n} pixels needs {end - len(data)} bytes past end of data",
            offset=pos - 1,
        )
    writer.opaque(data[pos:end], pos - 1)
    return end


def _decode_plain(data: bytes, canvas: np.ndarray, lut: np.ndarray) -> None:
    height, width = canvas.shape[:2]
    if len(data) != width * height:
        raise MalformedFrame(
            f"plain frame holds {len(data)} bytes; expected {width}x{height} = {width * height}",
            offset=min(len(data), width * height),
        )
    indices = np.frombuffer(data, dtype=np.uint8).reshape(height, width)
    canvas[::-1] = lut[indices]


def _decode_sprite(data: bytes, canvas: np.ndarray, lut: np.ndarray) -> None:
    writer = _RowWriter(canvas, lut)
    pos = 0
    while pos < len(data):
        n = _signed(data[pos])
        pos += 1
        if n < 0:
            writer.transparent(-n, pos - 1)
        elif n > 0:
            pos = _literal(data, pos, n, writer)
    writer.finish(pos)


def _decode_rle_sprite(data: bytes, canvas: np.ndarray, lut: np.ndarray) -> None:
    writer = _RowWriter(canvas, lut)
    pos = 0
    while pos < len(data):
        n = _signed(data[pos])
        pos += 1
        if n > 0:
            pos = _literal(data, pos, n, writer)
        elif RLE_OPCODE_MIN <= n <= RLE_OPCODE_MAX:
            if pos >= len(data):
                raise MalformedFrame("run-length opcode is missing its colour index",
                                     offset=pos - 1)
            writer.fill(data[pos], -(n + RLE_OPCODE_BIAS), pos - 1)
            pos += 1
        elif n < 0:
            writer.transparent(-n, pos - 1)
    writer.finish(pos)


def _decode_level_shape(data: bytes, canvas: np.ndarray, lut: np.ndarray,
                        rows: tuple[tuple[int, bool], ...], expected_size: int,
                        left_facing: bool) -> None:
    height, width = canvas.shape[:2]
    if (width, height) != (LEVEL_FRAME_WIDTH, LEVEL_FRAME_HEIGHT):
        raise MalformedFrame(
            f"level frame must be {LEVEL_FRAME_WIDTH}x{LEVEL_FRAME_HEIGHT}, "
            f"declared {width}x{height}"
        )
    if len(data) != expected_size:
        raise MalformedFrame(
            f"level frame holds {len(data)} bytes; expected {expected_size}",
            offset=min(len(data), expected_size),
        )

    buf = np.frombuffer(data, dtype=np.uint8)
    pos = 0

    def skip_padding(at: int) -> int:
        pad = data[at:at + PADDING_BYTES]
        if pad != b"\x00" * PADDING_BYTES:
            raise MalformedFrame(
                f"explicit transparent pixels mismatch; expected 00 00, got {pad.hex(' ').upper()}",
                offset=at,
            )
        return at + PADDING_BYTES

    for row, (n, padded) in enumerate(rows):
        y = height - 1 - row
        if padded and left_facing:
            pos = skip_padding(pos)
        if n:
            x0 = width - n if left_facing else 0
            canvas[y, x0:x0 + n] = lut[buf[pos:pos + n]]
            pos += n
        if padded and not left_facing:
            pos = skip_padding(pos)


def _decode_triangle_left(data, canvas, lut):
    _decode_level_shape(data, canvas, lut, TRIANGLE_ROWS, TRIANGLE_FRAME_SIZE, True)


def _decode_triangle_right(data, canvas, lut):
    _decode_level_shape(data, canvas, lut, TRIANGLE_ROWS, TRIANGLE_FRAME_SIZE, False)


def _decode_trapezoid_left(data, canvas, lut):
    _decode_level_shape(data, canvas, lut, TRAPEZOID_ROWS, TRAPEZOID_FRAME_SIZE, True)


def _decode_trapezoid_right(data, canvas, lut):
    _decode_level_shape(data, canvas, lut, TRAPEZOID_ROWS, TRAPEZOID_FRAME_SIZE, False)


_DECODERS: dict[FrameType, Callable[[bytes, np.ndarray, np.ndarray], None]] = {
    FrameType.PLAIN: _decode_plain,
    FrameType.SPRITE: _decode_sprite,
    FrameType.TRIANGLE_LEFT: _decode_triangle_left,
    FrameType.TRIANGLE_RIGHT: _decode_triangle_right,
    FrameType.TRAPEZOID_LEFT: _decode_trapezoid_left,
    FrameType.TRAPEZOID_RIGHT: _decode_trapezoid_right,
    FrameType.RLE_SPRITE: _decode_rle_sprite,
}


def transparent_image(width: int, height: int) -> Image.Image:
    """A fully transparent RGBA image."""
    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def decode_frame(data: bytes, width: int, height: int, palette: Palette,
                 frame_type: FrameType | int) -> Image.Image:
    """
    Decode the pixel payload of a single frame.

    Args:
        data: Pixel payload (frame header already stripped)
        width: Frame width in pixels
        height: Frame height in pixels
        palette: Colours for the decoded palette indices
        frame_type: Encoding variant, 0-6

    Returns:
        RGBA image of width x height pixels

    Raises:
        UnknownFrameType: If frame_type is outside 0-6
        MalformedFrame: If the payload does not fit the declared layout;
            offsets are relative to the start of data
    """
    frame_type = FrameType.from_code(frame_type)
    if width <= 0 or height <= 0:
        raise MalformedFrame(f"invalid frame dimensions {width}x{height}")
    if not data:
        return transparent_image(width, height)
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    _DECODERS[frame_type](bytes(data), canvas, palette.lut)
    logger.debug(f"Decoded {frame_type.name} frame of {width}x{height} from {len(data)} bytes")
    return Image.fromarray(canvas)


def decode_asset_frame(config: AssetConfig, frame_index: int, payload: bytes,
                       palette: Palette, frame_type: FrameType | int | None = None,
                       offset: int = 0) -> Image.Image:
    """
    Decode one frame of a registered asset.

    Dimensions come from the per-frame overrides, else the asset defaults;
    the frame type comes from the registry classifier unless given.

    Args:
        config: Metadata of the asset
        frame_index: 0-based frame number within its image
        payload: Pixel payload of the frame
        palette: Colours for the decoded palette indices
        frame_type: Overrides the registry classifier when not None
        offset: File offset of payload, used to report errors in file terms
    """
    width, height = config.frame_size(frame_index)
    if frame_type is None:
        frame_type = config.classify_frame(frame_index)
    try:
        return decode_frame(payload, width, height, palette, frame_type)
    except MalformedFrame as e:
        if e.offset is None:
            e.offset = 0
        raise e.rebase(offset)
