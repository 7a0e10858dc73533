"""
metrics.preprocess: Input validation and [-1, 1] -> [0, 1] rescaling
"""
from typing import Any, Tuple

import numpy as np
import torch

from .errors import InvalidInputError, InvalidRangeError, ShapeMismatchError


def as_image_tensor(image: Any, name: str = "image") -> torch.Tensor:
    """
    Validate an image and convert it to a float64 tensor of shape (H, W, C).

    Args:
        image: numpy array, torch tensor or nested sequence of numbers,
            shaped (H, W, C) or (H, W)
        name: Label used in error messages

    Returns:
        float64 tensor of shape (H, W, C) on the CPU
    """
    if isinstance(image, torch.Tensor):
        tensor = image.detach().cpu()
    else:
        try:
            array = np.asarray(image)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"{name} could not be converted to an array: {e}") from e
        if array.dtype == object or not (
            np.issubdtype(array.dtype, np.number) or array.dtype == np.bool_
        ):
            raise InvalidInputError(f"{name} must be numeric, got dtype {array.dtype}")
        if np.iscomplexobj(array):
            raise InvalidInputError(f"{name} must be real-valued")
        tensor = torch.from_numpy(np.ascontiguousarray(array, dtype=np.float64))

    if tensor.is_complex():
        raise InvalidInputError(f"{name} must be real-valued")
    if tensor.ndim == 2:
        tensor = tensor.unsqueeze(-1)
    if tensor.ndim != 3:
        raise InvalidInputError(
            f"{name} must have shape (H, W, C) or (H, W), got {tuple(tensor.shape)}"
        )
    if tensor.numel() == 0:
        raise InvalidInputError(f"{name} is empty: shape {tuple(tensor.shape)}")

    tensor = tensor.to(torch.float64)
    if torch.isnan(tensor).any():
        raise InvalidInputError(f"{name} contains NaN values")
    return tensor


def check_same_shape(generated: torch.Tensor, target: torch.Tensor) -> None:
    if generated.shape != target.shape:
        raise ShapeMismatchError(generated.shape, target.shape)


def rescale_and_clamp(image: torch.Tensor, clamp: bool = True) -> torch.Tensor:
    """
    Map values from [-1, 1] to [0, 1].

    Out-of-range inputs are clamped after rescaling; with ``clamp=False`` they
    raise InvalidRangeError instead.
    """
    if not clamp:
        lo, hi = float(image.min()), float(image.max())
        if lo < -1.0 or hi > 1.0:
            raise InvalidRangeError(
                f"Pixel values must lie in [-1, 1], got min={lo:.4f} max={hi:.4f}"
            )
    return ((image + 1.0) * 0.5).clamp(0.0, 1.0)


def to_batch(image: torch.Tensor) -> torch.Tensor:
    """(H, W, C) -> (1, C, H, W)"""
    return image.permute(2, 0, 1).unsqueeze(0).contiguous()


def prepare_pair(generated: Any, target: Any, clamp: bool = True) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Validate, shape-check, rescale and clamp a generated/target pair.

    Returns:
        Two float64 tensors of shape (1, C, H, W) with values in [0, 1]
    """
    gen = as_image_tensor(generated, "generated")
    tgt = as_image_tensor(target, "target")
    check_same_shape(gen, tgt)
    return to_batch(rescale_and_clamp(gen, clamp)), to_batch(rescale_and_clamp(tgt, clamp))
