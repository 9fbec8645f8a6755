"""Text decoding for session logs.

The trainer has written its stats files as UTF-8 (with or without BOM) and,
on some installs, as UTF-16 without a BOM. Detection is heuristic:

1. A byte-order mark wins (UTF-8, UTF-16 LE, UTF-16 BE). The mark is stripped.
2. Otherwise, if NUL bytes make up more than 1/8 of the first 512 bytes, the
   data is UTF-16; NULs on odd offsets mean little-endian, else big-endian.
3. Otherwise UTF-8.

Undecodable bytes become U+FFFD instead of raising.
"""

from __future__ import annotations

import codecs
import io
from typing import BinaryIO

SNIFF_SIZE = 512

_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)


def detect_encoding(head: bytes) -> tuple[str, int]:
    """Classify the leading bytes of a file.

    Returns (codec name, number of BOM bytes to skip).
    """
    for bom, codec in _BOMS:
        if head.startswith(bom):
            return codec, len(bom)

    sample = head[:SNIFF_SIZE]
    if sample:
        even = 0
        odd = 0
        for i, byte in enumerate(sample):
            if byte == 0:
                if i % 2 == 0:
                    even += 1
                else:
                    odd += 1
        if even + odd > len(sample) // 8:
            return ("utf-16-le" if odd > even else "utf-16-be"), 0

    return "utf-8", 0


def decode_bytes(data: bytes) -> str:
    """Decode raw file contents to text using detect_encoding()."""
    codec, skip = detect_encoding(data[:SNIFF_SIZE])
    return data[skip:].decode(codec, errors="replace")


def wrap_text_stream(raw: BinaryIO) -> io.StringIO:
    """Return a text stream over a binary stream, decoded per detect_encoding().

    Lines of the returned stream split on ``\\n`` only; a trailing ``\\r`` stays
    on the line for the caller to strip.
    """
    return io.StringIO(decode_bytes(raw.read()), newline="\n")
