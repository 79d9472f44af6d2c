"""Comparison parameter presets and environment overrides."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

MAX_RGB_DISTANCE = 441.67

DEFAULT_DPI = 150
DEFAULT_OUTPUT_DIR = "./report"

_ENV_FIELDS = {
    "VISUALDIFF_DPI": ("dpi", int),
    "VISUALDIFF_THRESHOLD_PIXEL": ("threshold_pixel", float),
    "VISUALDIFF_THRESHOLD_LAYOUT": ("threshold_layout", float),
    "VISUALDIFF_THRESHOLD_COLOR": ("threshold_color", float),
}


@dataclass(frozen=True)
class CompareParams:
    """Thresholds and rendering resolution driving a comparison."""

    dpi: int = DEFAULT_DPI
    threshold_pixel: float = 0.0
    threshold_layout: float = 0.0
    threshold_color: float = 0.0
    # Accepted for CLI compatibility; annotations are never compared.
    ignore_annotation: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "dpi": self.dpi,
            "threshold_pixel": self.threshold_pixel,
            "threshold_layout": self.threshold_layout,
            "threshold_color": self.threshold_color,
            "ignore_annotation": self.ignore_annotation,
        }

    def copy(self, **overrides: object) -> "CompareParams":
        return replace(self, **overrides)

    def validate(self) -> "CompareParams":
        if self.dpi <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")
        if not 0.0 <= self.threshold_pixel <= 1.0:
            raise ValueError(f"threshold_pixel must be within 0.0-1.0, got {self.threshold_pixel}")
        if self.threshold_layout < 0.0:
            raise ValueError(f"threshold_layout must be >= 0, got {self.threshold_layout}")
        if not 0.0 <= self.threshold_color <= MAX_RGB_DISTANCE:
            raise ValueError(
                f"threshold_color must be within 0-{MAX_RGB_DISTANCE}, got {self.threshold_color}"
            )
        return self


@dataclass(frozen=True)
class Preset:
    """Named bundle of parameters."""

    name: str
    description: str
    params: CompareParams

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "params": self.params.to_dict(),
        }


@dataclass(frozen=True)
class BatchParams:
    """Settings for comparing every matching file of two directories."""

    dir_old: Path
    dir_new: Path
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    recursive: bool = False
    continue_on_error: bool = False
    parallelism: int = max(1, (os.cpu_count() or 2) - 1)
    enable_parallel: bool = True


PRESETS: Mapping[str, Preset] = {
    "strict": Preset(
        name="strict",
        description="Report every change, however small.",
        params=CompareParams(dpi=200),
    ),
    "balanced": Preset(
        name="balanced",
        description="Default resolution with no thresholds.",
        params=CompareParams(),
    ),
    "loose": Preset(
        name="loose",
        description="Ignore anti-aliasing noise and sub-point shifts.",
        params=CompareParams(
            dpi=100,
            threshold_pixel=0.001,
            threshold_layout=1.0,
            threshold_color=30.0,
        ),
    ),
}


def get_preset(name: str) -> Preset:
    key = name.lower()
    if key not in PRESETS:
        raise KeyError(f"Unknown preset '{name}'. Available: {', '.join(sorted(PRESETS))}")
    return PRESETS[key]


def iter_presets() -> Iterable[Preset]:
    return PRESETS.values()


def params_from_env(
    base: Optional[CompareParams] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CompareParams:
    """Return ``base`` with any ``VISUALDIFF_*`` environment values applied."""
    params = base or CompareParams()
    env = os.environ if environ is None else environ
    overrides = {}
    for var, (field_name, convert) in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is None or not raw.strip():
            continue
        try:
            overrides[field_name] = convert(raw.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid value for {var}: {raw!r}") from exc
    return params.copy(**overrides) if overrides else params
