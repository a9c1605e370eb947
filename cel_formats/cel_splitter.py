#!/usr/bin/env python3
"""
CEL/CL2 container splitting

A CEL file holds a frame count, an offset table and the frame payloads:

    nframes      u32
    frameOffsets u32[nframes+1]   absolute; frame i is [off[i], off[i+1])
    frames       ...              each may start with a fixed-size header

An archive prefixes eight sub-image base offsets; every sub-image is itself
a CEL file whose offsets are relative to its own base.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import ARCHIVE_IMAGE_COUNT, MAX_ARCHIVE_IMAGES, OFFSET_SIZE
from .exceptions import FrameRangeOutOfBounds, InvalidOffsetTable, TruncatedContainer
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CelImage:
    """Raw frames of one CEL image (a plain file or one archive sub-image)"""

    offsets: tuple[int, ...]
    frames: tuple[bytes, ...]
    base: int = 0  # file offset of this image within its archive

    @property
    def nframes(self) -> int:
        return len(self.frames)

    def frame_offset(self, frame_index: int) -> int:
        """Absolute file offset of a frame's first byte."""
        return self.base + self.offsets[frame_index]

    def payload(self, frame_index: int, header_len: int = 0) -> bytes:
        """Pixel payload of a frame: the raw frame minus its header."""
        return frame_payload(self.frames[frame_index], header_len,
                             self.frame_offset(frame_index))

    def payloads(self, header_len: int = 0) -> list[bytes]:
        return [self.payload(i, header_len) for i in range(self.nframes)]


def _unpack_offsets(data: bytes, count: int, start: int, what: str) -> list[int]:
    end = start + OFFSET_SIZE * count
    if end > len(data):
        raise TruncatedContainer(
            f"{what} needs {end} bytes, file has {len(data)}", offset=len(data)
        )
    return list(struct.unpack_from(f"<{count}I", data, start))


def read_frame_offsets(data: bytes) -> list[int]:
    """
    Read and validate the offset table of a CEL image.

    Args:
        data: Contents of a CEL image

    Returns:
        nframes+1 frame offsets

    Raises:
        TruncatedContainer: If the data is shorter than the offset table
        InvalidOffsetTable: If the offsets are out of order or range
    """
    if len(data) < OFFSET_SIZE:
        raise TruncatedContainer(
            f"CEL header needs {OFFSET_SIZE} bytes, file has {len(data)}", offset=0
        )
    (nframes,) = struct.unpack_from("<I", data, 0)
    offsets = _unpack_offsets(data, nframes + 1, OFFSET_SIZE, "frame offset table")

    expected_first = OFFSET_SIZE * (nframes + 2)
    if offsets[0] != expected_first:
        raise InvalidOffsetTable(
            f"first frame offset is 0x{offsets[0]:X}; expected 0x{expected_first:X}",
            offset=OFFSET_SIZE,
        )
    for i in range(nframes):
        if offsets[i + 1] < offsets[i]:
            raise InvalidOffsetTable(
                f"frame {i + 1} offset 0x{offsets[i + 1]:X} precedes frame {i} "
                f"offset 0x{offsets[i]:X}",
                offset=OFFSET_SIZE * (i + 2),
            )
    if offsets[nframes] > len(data):
        raise FrameRangeOutOfBounds(
            f"end offset 0x{offsets[nframes]:X} is past end of data (0x{len(data):X})",
            offset=OFFSET_SIZE * (nframes + 1),
        )
    if offsets[nframes] < len(data):
        logger.debug(f"{len(data) - offsets[nframes]} trailing bytes after last frame")
    return offsets


def frame_payload(raw: bytes, header_len: int, offset: int = 0) -> bytes:
    """
    Strip the frame header from a raw frame.

    A zero-length frame yields an empty payload; a non-empty frame shorter
    than its header is truncated.
    """
    if not raw:
        return b""
    if len(raw) < header_len:
        raise TruncatedContainer(
            f"frame of {len(raw)} bytes is shorter than its {header_len}-byte header",
            offset=offset,
        )
    return raw[header_len:]


def split_frames(data: bytes, base: int = 0) -> CelImage:
    """
    Split a CEL image into its raw frames.

    Args:
        data: Contents of a CEL image
        base: File offset of data, used for error reporting in archives

    Returns:
        CelImage with one raw byte string per frame
    """
    try:
        offsets = read_frame_offsets(data)
    except (TruncatedContainer, InvalidOffsetTable) as e:
        raise e.rebase(base)
    frames = tuple(data[offsets[i]:offsets[i + 1]] for i in range(len(offsets) - 1))
    logger.debug(f"Split {len(frames)} frames at base 0x{base:X}")
    return CelImage(offsets=tuple(offsets), frames=frames, base=base)


def read_archive_offsets(data: bytes, nimgs: int = ARCHIVE_IMAGE_COUNT) -> list[int]:
    """
    Read and validate the sub-image base offsets of a CEL archive.

    Raises:
        TruncatedContainer: If the data is shorter than the base table
        InvalidOffsetTable: If the bases are out of order or range
    """
    if not 1 <= nimgs <= MAX_ARCHIVE_IMAGES:
        raise ValueError(f"archive image count must be 1-{MAX_ARCHIVE_IMAGES}, got {nimgs}")
    bases = _unpack_offsets(data, nimgs, 0, "archive offset table")
    table_end = OFFSET_SIZE * nimgs
    prev = table_end
    for k, base in enumerate(bases):
        if base < prev:
            raise InvalidOffsetTable(
                f"sub-image {k} base 0x{base:X} precedes 0x{prev:X}",
                offset=OFFSET_SIZE * k,
            )
        if base > len(data):
            raise FrameRangeOutOfBounds(
                f"sub-image {k} base 0x{base:X} is past end of data (0x{len(data):X})",
                offset=OFFSET_SIZE * k,
            )
        prev = base
    return bases


def split_archive(data: bytes, nimgs: int = ARCHIVE_IMAGE_COUNT) -> list[CelImage]:
    """
    Split a CEL archive into its sub-images, each split into frames.

    A zero-length sub-image yields an image without frames.
    """
    bases = read_archive_offsets(data, nimgs)
    ends = bases[1:] + [len(data)]
    images = []
    for k, (start, end) in enumerate(zip(bases, ends)):
        if start == end:
            logger.debug(f"Archive sub-image {k} is empty")
            images.append(CelImage(offsets=(), frames=(), base=start))
            continue
        images.append(split_frames(data[start:end], base=start))
    logger.debug(f"Split archive into {len(images)} sub-images")
    return images
