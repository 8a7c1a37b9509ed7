"""图像相似度指标计算工具。"""

from __future__ import annotations

import numpy as np
from PIL import Image

C1 = (0.01 * 255) ** 2
C2 = (0.03 * 255) ** 2

# 指标在缩小后的副本上计算，避免对整张大图分配浮点数组。
METRIC_MAX_SIDE = 512


def compute_ssim(original: Image.Image, processed: Image.Image) -> float:
    """计算两张同尺寸图片的结构相似度（SSIM），按 RGBA 通道取平均。

    比较在 RGBA 空间进行，因此调色板量化造成的透明度损失也会计入。
    """

    if original.size != processed.size:
        raise ValueError(f"图片尺寸不一致: {original.size} != {processed.size}")
    if original.width <= 0 or original.height <= 0:
        return 0.0

    size = metric_size(original.size)
    img_a = _to_metric_image(original, size)
    img_b = _to_metric_image(processed, size)

    scores = [
        _channel_ssim(_channel_array(img_a, band), _channel_array(img_b, band))
        for band in range(len(img_a.getbands()))
    ]
    return float(np.mean(scores))


def metric_size(size: tuple[int, int]) -> tuple[int, int]:
    """等比缩小到最长边不超过 METRIC_MAX_SIDE。"""

    width, height = size
    scale = METRIC_MAX_SIDE / max(width, height)
    if scale >= 1:
        return size
    return max(1, round(width * scale)), max(1, round(height * scale))


def _to_metric_image(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    rgba = image.convert("RGBA")
    if rgba.size == size:
        return rgba
    resized = rgba.resize(size, Image.LANCZOS)
    rgba.close()
    return resized


def _channel_array(image: Image.Image, band: int) -> np.ndarray:
    return np.asarray(image.getchannel(band), dtype=np.float32)


def _channel_ssim(img_a: np.ndarray, img_b: np.ndarray) -> float:
    mu_a = float(img_a.mean())
    mu_b = float(img_b.mean())
    diff_a = img_a - mu_a
    diff_b = img_b - mu_b
    sigma_a_sq = float(np.mean(diff_a * diff_a))
    sigma_b_sq = float(np.mean(diff_b * diff_b))
    sigma_ab = float(np.mean(diff_a * diff_b))

    numerator = (2 * mu_a * mu_b + C1) * (2 * sigma_ab + C2)
    denominator = (mu_a**2 + mu_b**2 + C1) * (sigma_a_sq + sigma_b_sq + C2)
    if denominator == 0:
        return 0.0

    value = numerator / denominator
    # Clamp to [-1, 1] to avoid slight numeric drift.
    return float(max(min(value, 1.0), -1.0))
