"""
metrics.calculator: SSIM and L2 norm between a generated and a target image

Both images are expected in [-1, 1] with shape (H, W, C). They are rescaled to
[0, 1] and clamped before scoring, so out-of-range values are tolerated rather
than rejected unless ``clamp=False`` is requested.
"""
import logging
from typing import Any, Dict, NamedTuple, Optional

from .config import MetricConfig
from .l2 import l2_norm
from .preprocess import prepare_pair
from .ssim import structural_similarity

logger = logging.getLogger(__name__)


class MetricResult(NamedTuple):
    ssim_score: float
    l2_norm: float

    def as_dict(self) -> Dict[str, float]:
        return {"ssim": self.ssim_score, "l2": self.l2_norm}


def resolve_config(config: Optional[MetricConfig] = None, **overrides: Any) -> MetricConfig:
    """Merge keyword overrides into ``config`` (or the defaults)."""
    config = config or MetricConfig()
    return config.replace(**overrides) if overrides else config


def compute_image_metrics(
    generated: Any,
    target: Any,
    config: Optional[MetricConfig] = None,
    **overrides: Any,
) -> MetricResult:
    """
    Score a generated image against its target.

    Args:
        generated: Image (H, W, C) or (H, W), numpy array or torch tensor, values in [-1, 1]
        target: Image of the same shape
        config: Metric options; defaults to MetricConfig()
        **overrides: Individual MetricConfig fields, e.g. ``win_size=11``

    Returns:
        MetricResult(ssim_score, l2_norm)

    Raises:
        ShapeMismatchError: The two images differ in shape
        InvalidInputError: An image is empty, non-numeric, NaN or not 2-D/3-D
        InvalidRangeError: Values outside [-1, 1] with clamp disabled
        ConfigError: Invalid or unknown option
    """
    config = resolve_config(config, **overrides)
    gen, tgt = prepare_pair(generated, target, clamp=config.clamp)

    result = MetricResult(
        ssim_score=structural_similarity(gen, tgt, config),
        l2_norm=l2_norm(gen, tgt),
    )
    logger.debug(
        "shape=%s ssim=%.6f l2=%.6f", tuple(gen.shape[1:]), result.ssim_score, result.l2_norm
    )
    return result
