"""GridFloat .prj reader.

Whitespace-separated ``<key> <value>`` lines. The values are kept as opaque
strings for display; nothing downstream computes with them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from domain.terrain.errors import MissingFileError
from domain.terrain.value_objects import PROJECTION_KEYS, ProjectionMetadata

logger = logging.getLogger(__name__)


def parse_projection_lines(lines: Iterable[str]) -> ProjectionMetadata:
    """Collect the known keys from .prj lines.

    A bare key is recorded with no value; lines with more than two tokens
    and unknown keys are ignored.
    """
    values: dict[str, str | None] = {}
    for line in lines:
        parts = line.split()
        if len(parts) == 2:
            values[parts[0]] = parts[1]
        elif len(parts) == 1:
            values[parts[0]] = None

    return ProjectionMetadata(
        **{field: values.get(key) for key, field in PROJECTION_KEYS.items()}
    )


def load_projection(path: Path | str) -> ProjectionMetadata:
    """Read a .prj file.

    Raises:
        MissingFileError: If the file is absent or unreadable
    """
    path = Path(path)
    try:
        # Latin-1 maps every byte, so stray characters never fail the read.
        text = path.read_text(encoding="latin-1")
    except OSError as e:
        raise MissingFileError(path.name, getattr(e, "strerror", None)) from e

    metadata = parse_projection_lines(text.splitlines())
    logger.debug(
        "%s read: %s",
        path.name,
        ", ".join(f"{key}={value}" for key, value in metadata.as_dict().items()),
    )
    return metadata
