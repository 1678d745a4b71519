"""Terrain Bounded Context - Error Hierarchy.

Custom exceptions for GridFloat loading and contour extraction.

Header, body and projection reads fail independently; a grid that failed to
load can never reach the contour engine (GridUnavailableError).
"""

from __future__ import annotations


class TerrainError(Exception):
    """Base error for terrain operations."""


class MissingFileError(TerrainError):
    """One of the GridFloat input files is absent or unreadable.

    Attributes:
        path: Name of the offending file (no directory, see logging policy)
    """

    def __init__(self, path: str, reason: str | None = None) -> None:
        self.path = path
        self.reason = reason
        message = f"{path} could not be read"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedHeaderError(TerrainError):
    """Header file is short, non-numeric, or out of range.

    Attributes:
        source: Header file name
        field_index: Zero-based position of the offending field (None when
            the problem is not tied to a single field)
    """

    def __init__(self, source: str, field_index: int | None, reason: str) -> None:
        self.source = source
        self.field_index = field_index
        self.reason = reason
        where = f"field {field_index}" if field_index is not None else "header"
        super().__init__(f"{source}: malformed {where}: {reason}")


class TruncatedDataError(TerrainError):
    """Binary body holds fewer bytes than rows * columns * 4."""

    def __init__(self, source: str, expected_bytes: int, actual_bytes: int) -> None:
        self.source = source
        self.expected_bytes = expected_bytes
        self.actual_bytes = actual_bytes
        super().__init__(
            f"{source}: expected {expected_bytes} bytes of float32 data, "
            f"got {actual_bytes}"
        )


class DegenerateGridError(TerrainError):
    """Grid cannot support statistics or contouring.

    Raised for grids with a single row or column, zero-length geodesic cell
    edges, or no valid (non-empty) cells.
    """


class GridUnavailableError(TerrainError):
    """Contour or mesh generation was requested without a loaded grid."""
