"""GridFloat .hdr parser.

The header is seven ``<label> <value>`` lines. By default fields are
identified by POSITION only; labels are ignored, so a reordered file is
misread rather than rejected. ``keyed=True`` switches to label-driven
parsing, which accepts any line order.

Field order:
    0 ncols         column count (int)
    1 nrows         row count (int)
    2 xllcorner     lower-left longitude (float)
    3 yllcorner     lower-left latitude (float)
    4 cellsize      degrees per cell (float)
    5 NODATA_value  no-data sentinel (int)
    6 byteorder     MSBFIRST selects big-endian, anything else little-endian
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from domain.terrain.errors import MalformedHeaderError, MissingFileError
from domain.terrain.value_objects import ByteOrder, RasterHeader

logger = logging.getLogger(__name__)

HEADER_LABELS: tuple[str, ...] = (
    "ncols",
    "nrows",
    "xllcorner",
    "yllcorner",
    "cellsize",
    "nodata_value",
    "byteorder",
)
_INT_FIELDS = frozenset({0, 1, 5})
_FLOAT_FIELDS = frozenset({2, 3, 4})
_POSITIVE_FIELDS = frozenset({0, 1, 4})


def _positional_tokens(lines: Sequence[str], source: str) -> list[str]:
    if len(lines) < len(HEADER_LABELS):
        raise MalformedHeaderError(
            source,
            len(lines),
            f"expected {len(HEADER_LABELS)} header lines, got {len(lines)}",
        )
    tokens = []
    for index, line in enumerate(lines[: len(HEADER_LABELS)]):
        parts = line.split()
        if len(parts) < 2:
            raise MalformedHeaderError(source, index, f"missing value in {line!r}")
        tokens.append(parts[1])
    return tokens


def _keyed_tokens(lines: Sequence[str], source: str) -> list[str]:
    found: dict[str, str] = {}
    for line in lines:
        parts = line.split()
        if len(parts) >= 2:
            found.setdefault(parts[0].lower(), parts[1])
    tokens = []
    for index, label in enumerate(HEADER_LABELS):
        if label not in found:
            raise MalformedHeaderError(source, index, f"missing label {label!r}")
        tokens.append(found[label])
    return tokens


def _convert(index: int, token: str, source: str) -> int | float | str:
    try:
        if index in _INT_FIELDS:
            value: int | float | str = int(token)
        elif index in _FLOAT_FIELDS:
            value = float(token)
        else:
            return token
    except ValueError as e:
        raise MalformedHeaderError(
            source, index, f"non-numeric {HEADER_LABELS[index]} {token!r}"
        ) from e
    if index in _POSITIVE_FIELDS and not value > 0:
        raise MalformedHeaderError(
            source, index, f"{HEADER_LABELS[index]} must be positive, got {token}"
        )
    return value


def parse_header_lines(
    lines: Sequence[str], *, source: str = "<header>", keyed: bool = False
) -> RasterHeader:
    """Build a RasterHeader from header text lines.

    Args:
        lines: Header lines (line terminators already stripped)
        source: Name used in error messages
        keyed: Identify fields by label instead of position

    Raises:
        MalformedHeaderError: On short input, missing or non-numeric values,
            non-positive dimensions, or an extent outside valid lat/lon
    """
    tokens = (
        _keyed_tokens(lines, source) if keyed else _positional_tokens(lines, source)
    )
    values = [_convert(index, token, source) for index, token in enumerate(tokens)]

    try:
        header = RasterHeader(
            num_columns=values[0],
            num_rows=values[1],
            x_lower_left=values[2],
            y_lower_left=values[3],
            cell_size=values[4],
            no_data_value=values[5],
            byte_order=ByteOrder.from_token(str(values[6])),
        )
        # Extent must be geographic for the geodesic cell sizer.
        _ = header.bounds
    except ValueError as e:
        raise MalformedHeaderError(source, None, str(e)) from e

    return header


def parse_header(path: Path | str, *, keyed: bool = False) -> RasterHeader:
    """Read and parse a .hdr file.

    Raises:
        MissingFileError: If the file is absent or unreadable
        MalformedHeaderError: If the contents are invalid or not ASCII text
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="ascii")
    except UnicodeDecodeError as e:
        logger.error("%s is not an ASCII text file (byte %d)", path.name, e.start)
        raise MalformedHeaderError(
            path.name, None, f"not a text file: {e.reason} at byte {e.start}"
        ) from e
    except OSError as e:
        # Log only the file name, not the full path
        logger.error(
            "Failed to read %s (errno=%s, strerror=%s)",
            path.name,
            getattr(e, "errno", "unknown"),
            getattr(e, "strerror", "unknown"),
        )
        raise MissingFileError(path.name, getattr(e, "strerror", None)) from e

    header = parse_header_lines(text.splitlines(), source=path.name, keyed=keyed)
    logger.debug(
        "%s read: %d columns x %d rows, %s to %s latitude, %s to %s longitude, %s",
        path.name,
        header.num_columns,
        header.num_rows,
        header.min_lat,
        header.max_lat,
        header.min_long,
        header.max_long,
        header.byte_order.name,
    )
    return header
