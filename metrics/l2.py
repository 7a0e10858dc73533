import torch


def batch_l2(x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
    """Euclidean distance between each pair of flattened images, (B, ...) -> (B,)."""
    diff = (x.to(torch.float64) - y.to(torch.float64)).flatten(1)
    return torch.linalg.vector_norm(diff, ord=2, dim=1)


def l2_norm(x: torch.Tensor, y: torch.Tensor) -> float:
    """sqrt(sum((x_i - y_i)^2)) over all elements of a single pair."""
    return float(torch.linalg.vector_norm((x.to(torch.float64) - y.to(torch.float64)).flatten(), ord=2))


class Metric:
    name = "l2"

    def __init__(self, device="cpu", config=None):
        # L2 has no options; config is accepted so the registry can build every plugin alike
        self.config = config
        self.device = device

    def __call__(self, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        # Inputs already rescaled to [0, 1]
        return batch_l2(x.to(self.device), y.to(self.device))
