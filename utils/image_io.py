"""
utils.image_io: Image loading and generated/target pairing
"""
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import torch
import torchvision.transforms as T
from PIL import Image, ImageFile
from tqdm.auto import tqdm as _tqdm

# Allow loading of truncated images
ImageFile.LOAD_TRUNCATED_IMAGES = True

SUPPORTED_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.tiff', '.tif', '.bmp'}


def load_image(path: Union[str, Path], size: Optional[Tuple[int, int]] = None) -> torch.Tensor:
    """
    Load an RGB image as a tensor in the generator output convention.

    Args:
        path: Path to image file
        size: Optional target size (height, width); None keeps the native size

    Returns:
        Tensor of shape (H, W, 3) with values in [-1, 1]
    """
    steps = [T.Resize(size)] if size is not None else []
    transform = T.Compose(steps + [T.ToTensor()])  # (3, H, W) in [0, 1]
    try:
        with Image.open(path) as img:
            if img.mode != 'RGB':
                img = img.convert('RGB')
            tensor = transform(img)
    except Exception as e:
        logging.error(f"Failed to load image {path}: {e}")
        raise
    return tensor.permute(1, 2, 0) * 2.0 - 1.0


def find_image_files(directory: Path) -> List[Path]:
    """Find all supported image files below a directory."""
    return sorted(
        p for p in Path(directory).rglob("*")
        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def match_by_filename(gen_files: List[Path], target_files: List[Path]) -> List[Tuple[Path, Path, str]]:
    """
    Match generated and target images by file stem (extension ignored).

    Returns:
        List of (gen_path, target_path, name) tuples in generated-file order
    """
    targets = {f.stem: f for f in target_files}
    pairs = [(g, targets[g.stem], g.stem) for g in gen_files if g.stem in targets]

    unmatched_gen = [g for g in gen_files if g.stem not in targets]
    if unmatched_gen:
        logging.warning(f"Found {len(unmatched_gen)} unmatched generated images")
        for f in unmatched_gen[:5]:
            logging.warning(f"  Unmatched: {f.name}")
        if len(unmatched_gen) > 5:
            logging.warning(f"  ... and {len(unmatched_gen) - 5} more")

    unmatched_target = set(targets) - {name for _, _, name in pairs}
    if unmatched_target:
        logging.warning(f"Found {len(unmatched_target)} unmatched target images")

    return pairs


def load_and_pair_images(
    gen_dir: Path,
    target_dir: Path,
    size: Optional[Tuple[int, int]] = None,
    show_progress: bool = True,
) -> List[Tuple[torch.Tensor, torch.Tensor, str]]:
    """
    Load every generated image that has a same-named target image.

    Pairs that fail to load are logged and skipped.

    Returns:
        List of (generated, target, name) with tensors (H, W, 3) in [-1, 1]
    """
    gen_files = find_image_files(gen_dir)
    target_files = find_image_files(target_dir)
    if not gen_files:
        raise ValueError(f"No images found in generated directory: {gen_dir}")
    if not target_files:
        raise ValueError(f"No images found in target directory: {target_dir}")

    path_pairs = match_by_filename(gen_files, target_files)
    loaded = []
    failed = 0
    for gen_path, target_path, name in _tqdm(
        path_pairs, unit="pair", desc="Loading pairs", disable=not show_progress
    ):
        try:
            loaded.append((load_image(gen_path, size), load_image(target_path, size), name))
        except Exception as e:
            logging.error(f"Failed to load pair {name}: {e}")
            failed += 1

    if failed:
        logging.warning(f"Failed to load {failed} image pairs")
    logging.info(f"Successfully loaded {len(loaded)} image pairs")
    return loaded
