"""Configuration for PanelReader.

Three layers: `DetectorConfig` drives panel detection and ordering,
`PresenterConfig` the focused-panel animation, and `AppConfig` holds both
plus document-level settings. Configs load from YAML on top of a preset.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

import yaml

log = logging.getLogger("Reader")


@dataclass
class DetectorConfig:
    """Configuration for the panel detection algorithm.

    Area parameters are fractions of the page area so results stay stable
    across rendering resolutions.
    """

    blur_kernel: int = 5            # Gaussian blur window (must be odd)
    min_area_pct: float = 0.02      # Contours below this are scan noise
    splash_area_pct: float = 0.70   # Above this the page is a single splash panel
    cover_pages: int = 2            # Leading pages forced to a full-page panel
    row_tolerance_frac: float = 0.10  # Row band as a fraction of page height
    reading_rtl: bool = False       # Right-to-left reading inside a row (manga)
    max_working_width: int = 2400   # Larger pages are downscaled for detection
    simplify: bool = True           # Drop duplicate/collinear vertices after snapping

    def copy(self) -> "DetectorConfig":
        """Return a deep copy of this configuration."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectorConfig":
        """Create from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def config_hash(self) -> int:
        """Hash of every parameter, used to invalidate cached panels."""
        return hash(str(self.to_dict()))


@dataclass
class PresenterConfig:
    """Configuration for the focused-panel presentation."""

    padding: int = 50               # Margin around the panel bounding box (px)
    initial_scale: float = 0.1      # Zoom-in starting scale
    fit_utilization: float = 0.8    # Fraction of the viewport the panel may fill
    ease_speed: float = 2.5         # Exponential easing rate (1/s)
    snap_epsilon: float = 0.001     # Residual below which the zoom snaps to target
    pulse_step: float = 0.05        # Glow phase increment per frame
    glow_base: float = 0.5
    glow_amplitude: float = 0.3
    ambient_sample: int = 50        # Side of the downsample used for the ambient color
    ambient_alpha: float = 0.5
    glow_inner_frac: float = 0.1    # Gradient radii as fractions of min(viewport)
    glow_outer_frac: float = 0.9
    outline_width: int = 5
    frame_interval_ms: int = 16

    def copy(self) -> "PresenterConfig":
        """Return a deep copy of this configuration."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PresenterConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class AppConfig:
    """Application-level configuration."""

    render_dpi: float = 108.0       # 1.5x the 72 pt PDF resolution
    max_pages: Optional[int] = None  # Optional cap on rasterized pages
    panel_cache_size: int = 64
    image_cache_size: int = 8
    viewport_size: Tuple[int, int] = (1280, 900)
    log_level: str = "INFO"
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    presenter: PresenterConfig = field(default_factory=PresenterConfig)

    def copy(self) -> "AppConfig":
        """Return a deep copy of this configuration."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a nested dictionary (YAML layout)."""
        return {
            "render_dpi": self.render_dpi,
            "max_pages": self.max_pages,
            "panel_cache_size": self.panel_cache_size,
            "image_cache_size": self.image_cache_size,
            "viewport_size": list(self.viewport_size),
            "log_level": self.log_level,
            "detector": self.detector.to_dict(),
            "presenter": self.presenter.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Create from a nested dictionary, ignoring unknown keys."""
        data = dict(data or {})
        detector = DetectorConfig.from_dict(data.pop("detector", None) or {})
        presenter = PresenterConfig.from_dict(data.pop("presenter", None) or {})
        if "viewport_size" in data:
            data["viewport_size"] = tuple(data["viewport_size"])
        top = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(detector=detector, presenter=presenter, **top)

    @classmethod
    def from_yaml(cls, path: str, base: Optional["AppConfig"] = None) -> "AppConfig":
        """Load configuration from a YAML file layered over `base`.

        Keys present in the file override `base` (defaults when omitted);
        the `detector` and `presenter` sections merge key by key. A missing
        or malformed file falls back to `base` with a warning.
        """
        merged = (base or cls()).to_dict()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            log.warning("Could not load config %s: %s", path, e)
            return cls.from_dict(merged)
        if not isinstance(data, dict):
            log.warning("Ignoring config %s: top level is not a mapping", path)
            return cls.from_dict(merged)

        for key, value in data.items():
            if key in ("detector", "presenter") and isinstance(value, dict):
                merged[key].update(value)
            else:
                merged[key] = value
        return cls.from_dict(merged)


# Preset configurations for different comic styles
PRESETS: Dict[str, AppConfig] = {
    "Comics": AppConfig(),
    "Manga": AppConfig(
        detector=DetectorConfig(reading_rtl=True, cover_pages=1),
    ),
    "Strips": AppConfig(
        detector=DetectorConfig(row_tolerance_frac=0.05, cover_pages=0),
        presenter=PresenterConfig(padding=30, fit_utilization=0.9),
    ),
}
