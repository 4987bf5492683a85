"""
Compact route encoding: "enc:" + base64(JSON [[lat, lng], ...]).

Lossy: coordinates are rounded to 5 decimals (~1.1 m). Compare round trips at
that precision, never bit-exact.
"""

import base64
import binascii
import json
from typing import List, Sequence

from liftmatch.domain.errors import InvalidCoordinate, InvalidPolyline
from liftmatch.domain.models import Coordinate

PREFIX = "enc:"
PRECISION = 5


def encode_polyline(points: Sequence[Coordinate], precision: int = PRECISION) -> str:
    if not points:
        return ""
    compact = [[round(p.lat, precision), round(p.lng, precision)] for p in points]
    payload = json.dumps(compact, separators=(",", ":")).encode("utf-8")
    return PREFIX + base64.b64encode(payload).decode("ascii")


def decode_polyline(text: str) -> List[Coordinate]:
    """Inverse of encode_polyline. Empty string -> []. Anything malformed raises InvalidPolyline."""
    if not text:
        return []
    if not text.startswith(PREFIX):
        raise InvalidPolyline(f"missing {PREFIX!r} prefix")
    try:
        raw = json.loads(base64.b64decode(text[len(PREFIX):], validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidPolyline("undecodable polyline payload") from e
    if not isinstance(raw, list):
        raise InvalidPolyline("polyline payload is not a list")

    points: List[Coordinate] = []
    for pair in raw:
        if not isinstance(pair, list) or len(pair) != 2:
            raise InvalidPolyline(f"bad vertex {pair!r}")
        try:
            points.append(Coordinate.of(pair[0], pair[1]))
        except InvalidCoordinate as e:
            raise InvalidPolyline(f"bad vertex {pair!r}") from e
    return points
