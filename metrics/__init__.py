"""
metrics: SSIM and L2 image metrics plus a lightweight plugin registry.

Add a new metric by creating a module inside `metrics/` that implements
`class Metric` with:

    name: str
    __init__(self, device="cpu", config: MetricConfig | None = None)
    __call__(self, x, y) → torch.Tensor        # x, y in [0, 1], shape=(B, C, H, W) → (B,)

Modules without a `Metric` class (config, errors, ...) are ignored.
"""
from importlib import import_module
from pathlib import Path
from typing import List

from .calculator import MetricResult, compute_image_metrics
from .config import MetricConfig, load_config
from .errors import (
    ConfigError,
    InvalidInputError,
    InvalidRangeError,
    MetricError,
    ShapeMismatchError,
)

__all__ = [
    "registry",
    "compute_image_metrics",
    "MetricResult",
    "MetricConfig",
    "load_config",
    "MetricError",
    "ShapeMismatchError",
    "InvalidInputError",
    "InvalidRangeError",
    "ConfigError",
]


class _Registry(dict):
    def register(self, modname: str) -> None:
        module = import_module(f"{__name__}.{modname}")
        plugin = getattr(module, "Metric", None)
        if plugin is not None:
            self[plugin.name] = plugin

    def build(self, names: List[str], **kwargs):
        return [self[n](**kwargs) for n in names if n in self]

# discover sub-modules -----------------------------------------------------------
registry: _Registry = _Registry()
for p in sorted(Path(__file__).parent.glob("[!_]*.py")):
    registry.register(p.stem)
