from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pytest
from PIL import Image

ImageFactory = Callable[..., Path]


def _make_image(
    path: Path,
    size: tuple[int, int],
    color: str = "red",
    image_format: Optional[str] = None,
    mode: str = "RGB",
) -> Path:
    """生成左右两色的测试图片，保证锐化与缩放都有可见边缘。"""

    width, height = size
    image = Image.new(mode, size, color)
    if width > 1:
        image.paste(Image.new(mode, (width // 2, height), "white"), (0, 0))
    image.save(path, format=image_format)
    return path


@pytest.fixture
def make_image() -> ImageFactory:
    return _make_image


@pytest.fixture
def dirs(tmp_path: Path) -> tuple[Path, Path]:
    source = tmp_path / "input"
    output = tmp_path / "output"
    source.mkdir()
    output.mkdir()
    return source, output
