"""
metrics.config: Options for SSIM / L2 computation

All options are explicit; nothing is read from the environment. A config file
(YAML or JSON) can be loaded with `load_config`, either as a flat mapping or
with the options nested under a ``metrics:`` key.
"""
import json
import logging
from dataclasses import asdict, dataclass, fields, replace as _replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigError

BACKENDS = ("native", "torchmetrics")

# Gaussian windows are truncated at 3.5 sigma (11 taps for sigma=1.5)
GAUSSIAN_TRUNCATE = 3.5


@dataclass(frozen=True)
class MetricConfig:
    """Options controlling preprocessing and the SSIM window/constants."""

    data_range: float = 1.0
    multichannel: bool = True
    win_size: int = 7
    gaussian_weights: bool = False
    sigma: float = 1.5
    k1: float = 0.01
    k2: float = 0.03
    c3: Optional[float] = None
    alpha: float = 1.0
    beta: float = 1.0
    gamma: float = 1.0
    use_sample_covariance: bool = True
    clamp: bool = True
    backend: str = "native"

    def __post_init__(self):
        if self.data_range <= 0:
            raise ConfigError(f"data_range must be positive, got {self.data_range}")
        if (
            not isinstance(self.win_size, int) or isinstance(self.win_size, bool)
            or self.win_size < 1 or self.win_size % 2 == 0
        ):
            raise ConfigError(f"win_size must be a positive odd integer, got {self.win_size}")
        for name in ("sigma", "k1", "k2", "alpha", "beta", "gamma"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigError(f"{name} must be positive, got {value}")
        if self.c3 is not None and self.c3 <= 0:
            raise ConfigError(f"c3 must be positive, got {self.c3}")
        if self.backend not in BACKENDS:
            raise ConfigError(f"Unknown backend '{self.backend}', expected one of {BACKENDS}")
        if self.backend == "torchmetrics":
            if not self.has_standard_form:
                raise ConfigError(
                    "torchmetrics backend only supports alpha=beta=gamma=1 and the default c3"
                )
            if self.use_sample_covariance:
                raise ConfigError(
                    "torchmetrics backend uses population covariance; "
                    "set use_sample_covariance=False"
                )

    @property
    def c1(self) -> float:
        return (self.k1 * self.data_range) ** 2

    @property
    def c2(self) -> float:
        return (self.k2 * self.data_range) ** 2

    @property
    def c3_value(self) -> float:
        return self.c3 if self.c3 is not None else self.c2 / 2

    @property
    def has_standard_form(self) -> bool:
        """True when l*c*s collapses to the usual two-factor SSIM expression."""
        return (
            self.alpha == 1.0 and self.beta == 1.0 and self.gamma == 1.0
            and (self.c3 is None or self.c3 == self.c2 / 2)
        )

    @property
    def effective_win_size(self) -> int:
        """Window taps per axis, taking the Gaussian truncation into account."""
        if self.gaussian_weights:
            return 2 * int(GAUSSIAN_TRUNCATE * self.sigma + 0.5) + 1
        return self.win_size

    def replace(self, **changes) -> "MetricConfig":
        unknown = set(changes) - _field_names()
        if unknown:
            raise ConfigError(f"Unknown metric option(s): {sorted(unknown)}")
        return _replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "MetricConfig":
        unknown = set(options) - _field_names()
        if unknown:
            raise ConfigError(f"Unknown metric option(s): {sorted(unknown)}")
        return cls(**dict(options))


def _field_names():
    return {f.name for f in fields(MetricConfig)}


def load_config(path: Union[str, Path]) -> MetricConfig:
    """
    Load a MetricConfig from a YAML or JSON file.

    Args:
        path: File ending in .yml/.yaml (parsed with yaml.safe_load) or anything
            else (parsed as JSON)

    Returns:
        MetricConfig built from the file's ``metrics`` section, or from the
        top-level mapping when there is no such section
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) if path.suffix in {".yml", ".yaml"} else json.load(f)

    if cfg is None:
        cfg = {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    options = cfg.get("metrics", cfg)
    if not isinstance(options, dict):
        raise ConfigError(f"'metrics' section in {path} must be a mapping")

    logging.info("Loaded metric configuration from %s", path)
    return MetricConfig.from_dict(options)
