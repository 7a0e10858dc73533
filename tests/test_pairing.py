"""
Test image loading and generated/target pairing
"""
from pathlib import Path

import numpy as np
import pytest
import torch
from PIL import Image

from utils.image_io import find_image_files, load_and_pair_images, load_image, match_by_filename


def create_dummy_image(path: Path, size: tuple = (16, 16), value=None):
    """Create an RGB image; random unless a constant value is given."""
    if value is None:
        img_array = np.random.randint(0, 256, (*size, 3), dtype=np.uint8)
    else:
        img_array = np.full((*size, 3), value, dtype=np.uint8)
    Image.fromarray(img_array, 'RGB').save(path)


class TestImageLoading:

    def test_load_image_range_and_layout(self, tmp_path):
        path = tmp_path / "gray.png"
        create_dummy_image(path, size=(12, 20), value=255)

        tensor = load_image(path)

        assert tensor.shape == (12, 20, 3)
        assert torch.allclose(tensor, torch.ones_like(tensor))

    def test_load_image_black(self, tmp_path):
        path = tmp_path / "black.png"
        create_dummy_image(path, value=0)

        assert torch.all(load_image(path) == -1.0)

    def test_load_image_resize(self, tmp_path):
        path = tmp_path / "img.png"
        create_dummy_image(path, size=(32, 32))

        assert load_image(path, size=(8, 8)).shape == (8, 8, 3)

    def test_load_grayscale_converted_to_rgb(self, tmp_path):
        path = tmp_path / "l.png"
        Image.fromarray(np.zeros((6, 6), dtype=np.uint8), 'L').save(path)

        assert load_image(path).shape == (6, 6, 3)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "missing.png")


class TestImagePairing:

    def test_find_image_files(self, tmp_path):
        (tmp_path / "image1.png").touch()
        (tmp_path / "image2.jpg").touch()
        (tmp_path / "image3.JPEG").touch()
        (tmp_path / "not_image.txt").touch()
        (tmp_path / "nested").mkdir()
        (tmp_path / "nested" / "image4.bmp").touch()

        files = find_image_files(tmp_path)

        assert len(files) == 4
        assert files == sorted(files)
        assert {f.suffix.lower() for f in files} == {'.png', '.jpg', '.jpeg', '.bmp'}

    def test_filename_matching(self, tmp_path, caplog):
        gen_dir = tmp_path / "gen"
        target_dir = tmp_path / "target"
        gen_dir.mkdir()
        target_dir.mkdir()

        for i in range(3):
            create_dummy_image(gen_dir / f"image_{i}.png")
            create_dummy_image(target_dir / f"image_{i}.jpg")  # Different extension
        create_dummy_image(gen_dir / "unmatched.png")

        pairs = match_by_filename(find_image_files(gen_dir), find_image_files(target_dir))

        assert [name for _, _, name in pairs] == ["image_0", "image_1", "image_2"]
        for gen_path, target_path, name in pairs:
            assert gen_path.parent == gen_dir
            assert target_path.stem == name
        assert "1 unmatched generated images" in caplog.text

    def test_load_and_pair_images(self, tmp_path):
        gen_dir = tmp_path / "gen"
        target_dir = tmp_path / "target"
        gen_dir.mkdir()
        target_dir.mkdir()
        for i in range(2):
            create_dummy_image(gen_dir / f"{i}.png")
            create_dummy_image(target_dir / f"{i}.png")
        # Unreadable generated file is skipped
        (gen_dir / "broken.png").write_bytes(b"not an image")
        (target_dir / "broken.png").write_bytes(b"not an image")

        pairs = load_and_pair_images(gen_dir, target_dir, show_progress=False)

        assert [name for _, _, name in pairs] == ["0", "1"]
        gen, target, _ = pairs[0]
        assert gen.shape == target.shape == (16, 16, 3)
        assert gen.min() >= -1.0 and gen.max() <= 1.0

    def test_empty_directory(self, tmp_path):
        gen_dir = tmp_path / "gen"
        target_dir = tmp_path / "target"
        gen_dir.mkdir()
        target_dir.mkdir()
        create_dummy_image(target_dir / "a.png")

        with pytest.raises(ValueError, match="generated directory"):
            load_and_pair_images(gen_dir, target_dir)


if __name__ == "__main__":
    pytest.main([__file__])
