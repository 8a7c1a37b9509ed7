"""图片解码与色彩空间归一化。"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from PIL import Image, ImageSequence, UnidentifiedImageError

from image_derivatives.core.exceptions import ImageDerivativesError

LOGGER = logging.getLogger(__name__)


class ImageDecodeError(ImageDerivativesError):
    """图片解码失败。"""


@dataclass(slots=True)
class DecodedImage:
    """解码后的图片；动图按帧保存，静态图只有一帧。"""

    frames: list[Image.Image]
    durations: list[int] = field(default_factory=list)
    loop: Optional[int] = None

    @property
    def size(self) -> tuple[int, int]:
        return self.frames[0].size

    @property
    def is_animated(self) -> bool:
        return len(self.frames) > 1

    def map_frames(self, func: Callable[[Image.Image], Image.Image]) -> "DecodedImage":
        """对每一帧应用同一处理，返回新的 DecodedImage。"""

        return DecodedImage(frames=[func(frame) for frame in self.frames], durations=list(self.durations), loop=self.loop)

    def close(self) -> None:
        for frame in self.frames:
            frame.close()


def load_image(path: Path) -> DecodedImage:
    """加载图片的全部帧并统一到 sRGB（RGB/RGBA）模式。

    不做 EXIF 旋转：衍生图尺寸必须与探测到的源尺寸一致。
    """

    try:
        with Image.open(path) as img:
            frames: list[Image.Image] = []
            durations: list[int] = []
            for frame in ImageSequence.Iterator(img):
                frame.load()
                converted = to_srgb(frame)
                # ICC、文本等附加信息不带入输出文件。
                converted.info.clear()
                frames.append(converted)
                durations.append(int(frame.info.get("duration", 0)))
            loop = img.info.get("loop")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        LOGGER.debug("无法解码图像文件 %s: %s", path, exc)
        raise ImageDecodeError(f"无法解码图像: {path}") from exc

    return DecodedImage(frames=frames, durations=durations, loop=loop)


def to_srgb(img: Image.Image) -> Image.Image:
    """将任意模式转换为 RGB，带透明信息时转换为 RGBA。总是返回副本。"""

    # 颜色键透明（tRNS）需在清除 info 之前转换为真实的 Alpha 通道。
    if img.mode in {"LA", "PA"} or "transparency" in img.info:
        return img.convert("RGBA")

    if img.mode in {"RGB", "RGBA"}:
        return img.copy()

    return img.convert("RGB")
