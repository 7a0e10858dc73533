"""
metrics.ssim: Structural Similarity Index

Local statistics are taken over the valid region of the image only (window
fully inside the image), then the per-pixel, per-channel SSIM map is averaged
to a single score.
"""
import logging
from typing import Optional

import torch
import torch.nn.functional as F
import torchvision.transforms.functional as TF
from torchmetrics.functional.image import structural_similarity_index_measure

from .config import GAUSSIAN_TRUNCATE, MetricConfig
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


def _fit_window(win_size: int, height: int, width: int) -> int:
    """Largest odd window <= win_size that fits inside an (height, width) image."""
    limit = min(height, width)
    if win_size <= limit:
        return win_size
    fitted = limit if limit % 2 == 1 else limit - 1
    logger.warning(
        "Image size %dx%d is smaller than the %dx%d SSIM window; using %dx%d",
        height, width, win_size, win_size, fitted, fitted,
    )
    return fitted


def _window(config: MetricConfig, size: int, channels: int, dtype, device) -> torch.Tensor:
    """Depthwise conv weight of shape (C, 1, size, size), summing to 1 per channel."""
    if config.gaussian_weights:
        coords = torch.arange(size, dtype=dtype, device=device) - (size - 1) / 2.0
        g = torch.exp(-(coords ** 2) / (2 * config.sigma ** 2))
        g = g / g.sum()
        win2d = torch.outer(g, g)
    else:
        win2d = torch.full((size, size), 1.0 / (size * size), dtype=dtype, device=device)
    return win2d.expand(channels, 1, size, size).contiguous()


def to_grayscale(x: torch.Tensor) -> torch.Tensor:
    """(B, C, H, W) -> (B, 1, H, W); BT.601 luma for RGB, channel mean otherwise."""
    if x.size(1) == 1:
        return x
    if x.size(1) == 3:
        return TF.rgb_to_grayscale(x, num_output_channels=1)
    return x.mean(dim=1, keepdim=True)


def ssim_map(x: torch.Tensor, y: torch.Tensor, config: Optional[MetricConfig] = None) -> torch.Tensor:
    """
    Compute the SSIM map over the valid region.

    Args:
        x: Tensor (B, C, H, W) with values in [0, data_range]
        y: Tensor of the same shape
        config: Window and constant settings

    Returns:
        Tensor (B, C, H - w + 1, W - w + 1), w being the window size used
    """
    config = config or MetricConfig()
    _, channels, height, width = x.shape
    size = _fit_window(config.effective_win_size, height, width)
    win = _window(config, size, channels, x.dtype, x.device)

    def filt(t):
        return F.conv2d(t, win, groups=channels)

    taps = size * size
    cov_norm = taps / (taps - 1) if config.use_sample_covariance and taps > 1 else 1.0

    mu_x = filt(x)
    mu_y = filt(y)
    var_x = cov_norm * (filt(x * x) - mu_x * mu_x)
    var_y = cov_norm * (filt(y * y) - mu_y * mu_y)
    cov_xy = cov_norm * (filt(x * y) - mu_x * mu_y)

    c1, c2 = config.c1, config.c2
    luminance = (2 * mu_x * mu_y + c1) / (mu_x * mu_x + mu_y * mu_y + c1)

    if config.has_standard_form:
        return luminance * (2 * cov_xy + c2) / (var_x + var_y + c2)

    # Rounding can leave tiny negative variances
    sigma_x = var_x.clamp_min(0).sqrt()
    sigma_y = var_y.clamp_min(0).sqrt()
    c3 = config.c3_value
    contrast = (2 * sigma_x * sigma_y + c2) / (var_x + var_y + c2)
    structure = (cov_xy + c3) / (sigma_x * sigma_y + c3)

    # structure may be negative; keep its sign for fractional exponents
    structure = structure.sign() * structure.abs().pow(config.gamma)
    return luminance.pow(config.alpha) * contrast.pow(config.beta) * structure


def _torchmetrics_ssim(x: torch.Tensor, y: torch.Tensor, config: MetricConfig) -> torch.Tensor:
    _, _, height, width = x.shape
    size = _fit_window(config.effective_win_size, height, width)
    # torchmetrics derives the Gaussian size from sigma and cannot shrink it
    if size < 3 or (config.gaussian_weights and size != config.effective_win_size):
        raise InvalidInputError(
            f"Image of {height}x{width} pixels is too small for the torchmetrics SSIM window"
        )
    _, full_map = structural_similarity_index_measure(
        x,
        y,
        gaussian_kernel=config.gaussian_weights,
        sigma=config.sigma,
        kernel_size=size,
        reduction="none",
        data_range=config.data_range,
        k1=config.k1,
        k2=config.k2,
        return_full_image=True,
    )
    # The full map covers the reflect-padded border; keep the valid region only
    pad = (size - 1) // 2
    valid = full_map[..., pad:full_map.size(-2) - pad, pad:full_map.size(-1) - pad]
    return valid.flatten(1).mean(dim=1)


def batch_ssim(x: torch.Tensor, y: torch.Tensor, config: Optional[MetricConfig] = None) -> torch.Tensor:
    """Per-image SSIM for a batch (B, C, H, W) -> (B,)."""
    config = config or MetricConfig()
    if not config.multichannel:
        x, y = to_grayscale(x), to_grayscale(y)

    if config.backend == "torchmetrics":
        return _torchmetrics_ssim(x, y, config)
    return ssim_map(x, y, config).flatten(1).mean(dim=1)


def structural_similarity(x: torch.Tensor, y: torch.Tensor, config: Optional[MetricConfig] = None) -> float:
    """SSIM of a single pair of (1, C, H, W) tensors in [0, 1]."""
    return float(batch_ssim(x, y, config)[0])


class Metric:
    name = "ssim"

    def __init__(self, device="cpu", config: Optional[MetricConfig] = None):
        self.config = config or MetricConfig()
        self.device = device

    def __call__(self, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        # Inputs already rescaled to [0, 1]
        x = x.to(self.device, torch.float64)
        y = y.to(self.device, torch.float64)
        return batch_ssim(x, y, self.config)
