"""Encoded polyline decoder.

Implements the provider's compact line format: each coordinate is stored as
a fixed-point delta (scale 1e5) from the previous point, zigzag-mapped to an
unsigned integer and written as little-endian 5-bit groups, each offset by 63
into printable ASCII. Bit ``0x20`` of a group marks that another group of the
same value follows.
"""

from __future__ import annotations

from .errors import DecodeError

_PRECISION = 1e5
_OFFSET = 63
_CHUNK_MASK = 0x1F
_CONTINUATION = 0x20
# Seven groups cover the 32-bit range of the format.
_MAX_SHIFT = 30


def _read_value(encoded: str, index: int) -> tuple[int, int]:
    """Decode one zigzag value starting at ``index``.

    Returns the signed delta and the index of the next unread character.
    """

    result = 0
    shift = 0
    length = len(encoded)
    while True:
        if shift > _MAX_SHIFT:
            raise DecodeError(
                f"Polyline value too long at offset {index}: more than seven groups"
            )
        if index >= length:
            raise DecodeError(
                f"Polyline truncated at offset {index}: value is incomplete"
            )
        group = ord(encoded[index]) - _OFFSET
        if group < 0:
            raise DecodeError(
                f"Invalid polyline character {encoded[index]!r} at offset {index}"
            )
        index += 1
        result |= (group & _CHUNK_MASK) << shift
        shift += 5
        if group < _CONTINUATION:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode_polyline(encoded: str) -> list[list[float]]:
    """Decode ``encoded`` into ``[lng, lat]`` pairs in path order."""

    coordinates: list[list[float]] = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        dlat, index = _read_value(encoded, index)
        if index >= len(encoded):
            raise DecodeError(
                f"Polyline truncated at offset {index}: longitude is missing"
            )
        dlng, index = _read_value(encoded, index)
        lat += dlat
        lng += dlng
        coordinates.append([lng / _PRECISION, lat / _PRECISION])
    return coordinates
