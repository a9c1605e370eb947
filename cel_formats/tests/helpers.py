"""
Builders for synthetic CEL containers used across the tests
"""

import struct

CLEAR = (0, 0, 0, 0)


def make_cel(frames):
    """Assemble a CEL container from raw frame bytes"""
    offsets = [4 * (len(frames) + 2)]
    for frame in frames:
        offsets.append(offsets[-1] + len(frame))
    header = struct.pack(f"<I{len(offsets)}I", len(frames), *offsets)
    return header + b"".join(frames)


def make_archive(images):
    """Assemble an archive from already assembled CEL images"""
    bases = []
    pos = 4 * len(images)
    for image in images:
        bases.append(pos)
        pos += len(image)
    return struct.pack(f"<{len(images)}I", *bases) + b"".join(images)


def sprite_row(*runs):
    """
    Encode one sprite row from runs.

    An int is a transparent run, bytes are literal palette indices.
    """
    out = bytearray()
    for run in runs:
        if isinstance(run, int):
            out.append((-run) & 0xFF)
        else:
            out.append(len(run))
            out.extend(run)
    return bytes(out)


def level_payload(shape, left_facing, index=lambda row: row + 1):
    """
    Encode a 32x32 triangle or trapezoid frame the way the game stores it.

    Stored rows run bottom-up. Lower half rows are 2, 4, ..., 32 pixels wide;
    a triangle's upper half shrinks back to 0, a trapezoid's stays at 32.
    Every row whose transparent part is 2 mod 4 pixels wide carries two
    zero bytes.
    """
    out = bytearray()

    def emit(row, width, skip):
        pad = b"\x00\x00" if skip & 2 else b""
        pixels = bytes([index(row)]) * width
        out.extend(pad + pixels if left_facing else pixels + pad)

    row = 0
    for skip in range(30, -1, -2):
        emit(row, 32 - skip, skip)
        row += 1
    if shape == "triangle":
        for skip in range(2, 31, 2):
            emit(row, 32 - skip, skip)
            row += 1
    else:
        for _ in range(16):
            out.extend(bytes([index(row)]) * 32)
            row += 1
    return bytes(out)
