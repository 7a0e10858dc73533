"""
metrics.errors: Exceptions raised when metric inputs violate preconditions
"""


class MetricError(ValueError):
    """Base class for all metric input/configuration errors."""


class ShapeMismatchError(MetricError):
    """The generated and target images do not have the same shape."""

    def __init__(self, generated_shape, target_shape):
        self.generated_shape = tuple(generated_shape)
        self.target_shape = tuple(target_shape)
        super().__init__(
            f"Shape mismatch: generated {self.generated_shape} vs target {self.target_shape}"
        )


class InvalidInputError(MetricError):
    """Input is empty, non-numeric, NaN or has an unsupported number of dimensions."""


class InvalidRangeError(MetricError):
    """Pixel values fall outside [-1, 1] while clamping is disabled."""


class ConfigError(MetricError):
    """Invalid metric configuration."""
