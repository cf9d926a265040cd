"""Error types raised by PanelReader.

Detection-layer errors are always absorbed into the full-page fallback.
Rasterization errors propagate to the caller and leave the cursor unchanged.
"""

from __future__ import annotations


class PanelReaderError(Exception):
    """Base class for all PanelReader errors."""


class RasterizationFailure(PanelReaderError):
    """A page could not be rendered to a bitmap."""

    def __init__(self, page_index: int, reason: str = ""):
        self.page_index = page_index
        self.reason = reason
        msg = f"Failed to rasterize page {page_index + 1}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DetectionUnavailable(PanelReaderError):
    """The contour-analysis capability is not installed."""


class NoPanelsFound(PanelReaderError):
    """Detection produced no usable polygon."""
