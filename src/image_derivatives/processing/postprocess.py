"""衍生图共用的后处理：三角滤波缩放与 USM 锐化。"""

from __future__ import annotations

import math
from typing import Optional

import cv2
import numpy as np
from PIL import Image

from image_derivatives.core.config import PostProcessConfig

# 三角（线性）滤波核。
TRIANGLE = Image.Resampling.BILINEAR


def scaled_width(size: tuple[int, int], target_height: int) -> int:
    """按目标高度等比计算宽度，至少为 1 像素。"""

    width, height = size
    return max(1, int(math.floor(width * target_height / height + 0.5)))


def resize_to_height(image: Image.Image, target_height: int) -> Image.Image:
    """保持宽高比缩放到指定高度，宽度自动计算。"""

    target_size = (scaled_width(image.size, target_height), target_height)
    if target_size == image.size:
        return image.copy()
    return image.resize(target_size, TRIANGLE)


def unsharp_mask(image: Image.Image, config: PostProcessConfig) -> Image.Image:
    """USM 锐化，阈值与增益语义与 ImageMagick ``-unsharp`` 一致。

    阈值为量化范围的比例：只有 ``|2 * (像素 - 模糊值)|`` 不低于阈值的像素才会被增强。
    透明通道保持不变。
    """

    if config.unsharp_amount <= 0 or config.unsharp_sigma <= 0:
        return image.copy()

    array = np.asarray(image, dtype=np.float32)
    color = np.ascontiguousarray(array[..., :3])

    kernel = 2 * max(1, math.ceil(config.unsharp_radius)) + 1
    blurred = cv2.GaussianBlur(color, (kernel, kernel), config.unsharp_sigma)

    detail = color - blurred
    mask = np.abs(2.0 * detail) >= config.unsharp_threshold * 255.0
    sharpened = np.where(mask, color + detail * config.unsharp_amount, color)

    result = array.copy()
    result[..., :3] = sharpened
    result = np.clip(np.rint(result), 0, 255).astype(np.uint8)
    return Image.fromarray(result)


def apply_post_process(
    image: Image.Image, config: PostProcessConfig, target_height: Optional[int] = None
) -> Image.Image:
    """先按需缩放，再锐化。``target_height`` 为 None 时保持原尺寸。"""

    working = resize_to_height(image, target_height) if target_height else image
    try:
        return unsharp_mask(working, config)
    finally:
        if working is not image:
            working.close()
