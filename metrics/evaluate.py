"""
metrics.evaluate: Score many generated/target pairs and summarise the results
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import torch
from tqdm.auto import tqdm

from utils.image_io import load_and_pair_images
from utils.stats import RunningStats, summarise_metrics

from .config import MetricConfig
from .preprocess import prepare_pair

DEFAULT_METRICS = ("ssim", "l2")

Pair = Tuple[Any, Any, str]


def build_metric_plugins(names: Sequence[str], config: MetricConfig, device: str = "cpu"):
    """Instantiate registry plugins, warning about unknown names."""
    from . import registry  # registry discovery imports this module

    for name in names:
        if name not in registry:
            logging.warning("Metric '%s' not found in registry; skipping", name)
    return registry.build(list(names), device=device, config=config)


def _batches(prepared: Iterable[Tuple[torch.Tensor, torch.Tensor, str]], batch_size: int):
    """Group consecutive prepared pairs of identical shape, at most batch_size each."""
    batch: List[Tuple[torch.Tensor, torch.Tensor, str]] = []
    for item in prepared:
        if batch and (len(batch) == batch_size or item[0].shape != batch[0][0].shape):
            yield batch
            batch = []
        batch.append(item)
    if batch:
        yield batch


def evaluate_pairs(
    pairs: Sequence[Pair],
    metric_names: Sequence[str] = DEFAULT_METRICS,
    config: Optional[MetricConfig] = None,
    batch_size: int = 16,
    device: str = "cpu",
    show_progress: bool = True,
    keep_per_image: bool = True,
    alpha: float = 0.95,
) -> Dict[str, Any]:
    """
    Score (generated, target, name) pairs with the requested metrics.

    Every pair goes through the same validation, rescaling and clamping as
    compute_image_metrics; an invalid pair raises before anything is scored.

    Args:
        pairs: Images (H, W, C) in [-1, 1] with a unique name per pair
        metric_names: Registry names, default ("ssim", "l2")
        config: Metric options shared by all pairs
        batch_size: Maximum number of pairs scored at once
        device: Torch device for the plugins
        show_progress: Show a tqdm progress bar
        keep_per_image: Keep per-image scores; when False only running
            statistics are returned
        alpha: Confidence level for the summary intervals

    Returns:
        {"num_pairs", "metrics": summary, "per_image": {name: {metric: score}}}
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    config = config or MetricConfig()
    plugins = build_metric_plugins(metric_names, config, device)
    if not plugins:
        logging.warning("No valid metrics requested; nothing to evaluate")
        return {"num_pairs": 0, "metrics": {}, "per_image": {}}

    prepared = []
    seen = set()
    for generated, target, name in pairs:
        if name in seen:
            raise ValueError(f"Duplicate pair name '{name}'; names must be unique")
        seen.add(name)
        gen, tgt = prepare_pair(generated, target, clamp=config.clamp)
        prepared.append((gen, tgt, name))

    per_image: Dict[str, Dict[str, float]] = {}
    running = {m.name: RunningStats() for m in plugins}
    with tqdm(total=len(prepared), unit="pair", desc="Evaluating", disable=not show_progress) as bar:
        for batch in _batches(prepared, batch_size):
            gens = torch.cat([g for g, _, _ in batch])
            tgts = torch.cat([t for _, t, _ in batch])
            names = [n for _, _, n in batch]
            with torch.no_grad():
                for m in plugins:
                    scores = m(gens, tgts)
                    values = scores.tolist()
                    running[m.name].update_batch(values)
                    if keep_per_image:
                        for n, s in zip(names, values):
                            per_image.setdefault(n, {})[m.name] = s
            bar.update(len(batch))

    if keep_per_image:
        summary = summarise_metrics(per_image, alpha=alpha)
    else:
        summary = {name: stats.to_dict() for name, stats in running.items()}

    logging.info("Evaluated %d pairs with metrics %s", len(prepared), [m.name for m in plugins])
    result: Dict[str, Any] = {"num_pairs": len(prepared), "metrics": summary}
    if keep_per_image:
        result["per_image"] = per_image
    return result


def evaluate_directories(
    generated_dir: Path,
    target_dir: Path,
    metric_names: Sequence[str] = DEFAULT_METRICS,
    config: Optional[MetricConfig] = None,
    image_size: Optional[Tuple[int, int]] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Pair images by filename stem across two folders and evaluate them."""
    show_progress = kwargs.get("show_progress", True)
    pairs = load_and_pair_images(
        Path(generated_dir), Path(target_dir), size=image_size, show_progress=show_progress
    )
    result = evaluate_pairs(pairs, metric_names=metric_names, config=config, **kwargs)
    result["generated"] = str(generated_dir)
    result["target"] = str(target_dir)
    return result
