"""
Frame encoding variants of CEL and CL2 frames
"""
from __future__ import annotations

from enum import IntEnum

from .exceptions import UnknownFrameType


class FrameType(IntEnum):
    """The seven mutually incompatible frame encodings."""

    PLAIN = 0  # unencoded level frame, fully opaque
    SPRITE = 1  # run-length sprite with transparent runs
    TRIANGLE_LEFT = 2  # 32x32 level frame, left-facing triangle
    TRIANGLE_RIGHT = 3  # 32x32 level frame, right-facing triangle
    TRAPEZOID_LEFT = 4  # 32x32 level frame, left-facing trapezoid
    TRAPEZOID_RIGHT = 5  # 32x32 level frame, right-facing trapezoid
    RLE_SPRITE = 6  # CL2 sprite with repeated-colour runs

    @classmethod
    def from_code(cls, code: int) -> FrameType:
        """
        Convert an integer code to a FrameType.

        Raises:
            UnknownFrameType: If code is outside 0-6
        """
        try:
            return cls(code)
        except ValueError:
            raise UnknownFrameType(f"unknown frame type {code!r}; expected 0-6") from None

