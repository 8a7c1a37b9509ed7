"""按文件头魔数识别图片真实格式，并探测像素尺寸。"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from image_derivatives.core.exceptions import PathNotFoundError, UnsupportedFormatError
from image_derivatives.core.models import SourceImage
from image_derivatives.processing.image_loader import ImageDecodeError

LOGGER = logging.getLogger(__name__)

SIGNATURES = (
    (b"GIF87a", "GIF"),
    (b"GIF89a", "GIF"),
    (b"\x89PNG\r\n\x1a\n", "PNG"),
    (b"\xff\xd8\xff", "JPEG"),
)
HEADER_LENGTH = 16
BYTES_PER_KB = 1000.0

# 多图 JPEG（相机常见）在 Pillow 中被报告为 MPO。
ENGINE_FORMAT_ALIASES = {"MPO": "JPEG"}


def detect_format(header: bytes) -> str:
    """根据文件头返回 GIF/PNG/JPEG，无法识别时抛出 UnsupportedFormatError。"""

    for signature, image_format in SIGNATURES:
        if header.startswith(signature):
            return image_format
    raise UnsupportedFormatError("无法识别的图片格式，仅支持 jpeg、png 与 gif")


def sniff_image(path: Path) -> SourceImage:
    """读取文件头与尺寸，构造 SourceImage。"""

    try:
        with path.open("rb") as handle:
            header = handle.read(HEADER_LENGTH)
        size_bytes = path.stat().st_size
    except OSError as exc:
        raise PathNotFoundError(f"无法读取文件 {path}: {exc.strerror or exc}") from exc

    try:
        image_format = detect_format(header)
    except UnsupportedFormatError as exc:
        raise UnsupportedFormatError(f"{path.name}: {exc}") from None

    width, height, engine_format = _probe(path)
    if engine_format != image_format:
        raise UnsupportedFormatError(f"{path.name}: 文件头为 {image_format}，解码器识别为 {engine_format}")

    source = SourceImage(
        path=path,
        width=width,
        height=height,
        format=image_format,
        size_kb=size_bytes / BYTES_PER_KB,
    )
    LOGGER.debug("探测 %s: %s %dx%d %.1f KB", path.name, image_format, width, height, source.size_kb)
    return source


def _probe(path: Path) -> tuple[int, int, str]:
    try:
        with Image.open(path) as img:
            engine_format = img.format or ""
            return img.width, img.height, ENGINE_FORMAT_ALIASES.get(engine_format, engine_format)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError(f"无法读取图像尺寸: {path}") from exc
