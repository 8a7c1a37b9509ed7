"""输出路径决策与图像编码写入。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from PIL import Image

from image_derivatives.core.config import PostProcessConfig
from image_derivatives.core.exceptions import ImageDerivativesError
from image_derivatives.core.models import SourceImage, VersionSpec
from image_derivatives.core.naming import derive_filename
from image_derivatives.processing.image_loader import DecodedImage

LOGGER = logging.getLogger(__name__)

SUPPORTED_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".gif": "GIF",
}

JPEG_BACKGROUND = (255, 255, 255)


class ImageEncodeError(ImageDerivativesError):
    """输出编码或写入失败。"""


class OutputManager:
    """负责在已存在的输出目录中生成衍生文件路径并写入图像。

    同一源图的不同版本文件名互不相同，因此并发写入无需加锁；
    同名文件直接覆盖。
    """

    def __init__(self, output_dir: Path, config: Optional[PostProcessConfig] = None) -> None:
        self.output_dir = output_dir
        self.config = config or PostProcessConfig()

    def destination_for(self, source: SourceImage, version: Optional[VersionSpec]) -> Path:
        """计算源图某个版本的输出路径。"""

        return self.output_dir / derive_filename(source.path, source.width, source.height, version)

    def save_image(self, image: DecodedImage, destination: Path) -> None:
        """按输出扩展名选择编码格式并写入磁盘。"""

        suffix = destination.suffix.lower()
        image_format = SUPPORTED_FORMATS.get(suffix)
        if not image_format:
            raise ImageEncodeError(f"不支持的输出格式: {suffix}")

        frames = [_prepare_frame(frame, image_format) for frame in image.frames]
        save_params = self._save_params(image_format)
        if image_format == "GIF" and len(frames) > 1:
            save_params.update(save_all=True, append_images=frames[1:], duration=image.durations)
            if image.loop is not None:
                save_params["loop"] = image.loop

        try:
            frames[0].save(destination, format=image_format, **save_params)
        except (OSError, ValueError) as exc:
            raise ImageEncodeError(f"写入文件失败: {destination}") from exc
        finally:
            for frame, original in zip(frames, image.frames):
                if frame is not original:
                    frame.close()

        LOGGER.debug("已写入 %s (%s, %dx%d)", destination.name, image_format, *frames[0].size)

    def _save_params(self, image_format: str) -> dict[str, Any]:
        # 不传 exif/icc_profile/pnginfo，附加元数据块一律不写出。
        if image_format == "JPEG":
            return {"quality": self.config.quality, "progressive": self.config.interlace}
        if image_format == "PNG":
            return {"compress_level": self.config.png_compress_level}
        return {"interlace": self.config.interlace}


def _prepare_frame(frame: Image.Image, image_format: str) -> Image.Image:
    """JPEG 不支持透明通道，混合到白色背景上。"""

    if image_format != "JPEG" or frame.mode == "RGB":
        return frame

    if frame.mode == "RGBA":
        background = Image.new("RGB", frame.size, JPEG_BACKGROUND)
        background.paste(frame, mask=frame.split()[-1])
        return background

    return frame.convert("RGB")
