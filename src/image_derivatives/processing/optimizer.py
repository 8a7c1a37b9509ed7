"""输出文件的批量压缩优化（就地替换）。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable

from PIL import Image, ImageSequence, UnidentifiedImageError

from image_derivatives.core.config import OptimizerConfig
from image_derivatives.core.output_manager import ImageEncodeError
from image_derivatives.processing.image_loader import ImageDecodeError
from image_derivatives.processing.quality import compute_ssim

LOGGER = logging.getLogger(__name__)

GIF_KEPT_INFO = {"transparency", "background"}


def optimize_files(paths: Iterable[Path], config: OptimizerConfig) -> list[Path]:
    """逐个优化给定文件，只处理调用方刚写出的文件，不扫描整个目录。

    任意文件失败都会抛出异常，不做尽力而为的处理。
    """

    optimized: list[Path] = []
    # 重复的版本高度会产生同一路径，只优化一次。
    for path in dict.fromkeys(paths):
        handler = _HANDLERS.get(path.suffix.lower())
        if handler is None:
            LOGGER.debug("跳过不支持优化的文件: %s", path.name)
            continue
        handler(path, config)
        optimized.append(path)
    return optimized


def optimize_jpeg(path: Path, config: OptimizerConfig) -> None:
    """保留量化表重新编码为渐进式 JPEG，并优化 Huffman 表。"""

    with _open(path) as img:
        _replace(
            path,
            lambda tmp: img.save(
                tmp,
                format="JPEG",
                quality="keep",
                progressive=config.jpeg_progressive,
                optimize=True,
            ),
        )


def optimize_gif(path: Path, config: OptimizerConfig) -> None:
    """调色板上限 256 色、开启隔行，保留全部帧。"""

    with _open(path) as img:
        frames: list[Image.Image] = []
        durations: list[int] = []
        for frame in ImageSequence.Iterator(img):
            frames.append(_cap_palette(frame.copy(), config.gif_colors))
            durations.append(int(frame.info.get("duration", 0)))
        loop = img.info.get("loop")

    params: dict = {"format": "GIF", "optimize": True, "interlace": config.gif_interlace}
    if len(frames) > 1:
        params.update(save_all=True, append_images=frames[1:], duration=durations)
        if loop is not None:
            params["loop"] = loop

    try:
        _replace(path, lambda tmp: frames[0].save(tmp, **params))
    finally:
        for frame in frames:
            frame.close()


def optimize_png(path: Path, config: OptimizerConfig) -> None:
    """有损调色板量化；质量低于下限时退回无损压缩。元数据块均不保留。"""

    low, high = config.png_quality
    with _open(path) as img:
        if img.mode == "P":
            candidate = img.copy()
        else:
            working = img.convert("RGBA" if _has_alpha(img) else "RGB")
            quantized = _quantize(working, config.png_colors)
            score = compute_ssim(working, quantized)
            if low <= score <= high:
                LOGGER.debug("%s 量化后 SSIM=%.4f，采用调色板版本", path.name, score)
                candidate = quantized
                working.close()
            else:
                LOGGER.debug("%s 量化后 SSIM=%.4f 低于 %.2f，保留无损版本", path.name, score, low)
                candidate = working
                quantized.close()

    candidate.info = {key: value for key, value in candidate.info.items() if key == "transparency"}
    try:
        _replace(path, lambda tmp: candidate.save(tmp, format="PNG", optimize=True))
    finally:
        candidate.close()


def _open(path: Path) -> Image.Image:
    try:
        img = Image.open(path)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError(f"优化阶段无法读取图像: {path}") from exc

    try:
        img.load()
    except OSError as exc:
        img.close()
        raise ImageDecodeError(f"优化阶段无法解码图像: {path}") from exc
    return img


def _replace(path: Path, writer: Callable[[Path], None]) -> None:
    """先写临时文件再原子替换，失败时保留原文件。"""

    tmp = path.with_name(f".{path.name}.opt")
    try:
        writer(tmp)
        tmp.replace(path)
    except (OSError, ValueError) as exc:
        tmp.unlink(missing_ok=True)
        raise ImageEncodeError(f"优化文件失败: {path}") from exc


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in {"RGBA", "LA", "PA"} or "transparency" in img.info


def _quantize(img: Image.Image, colors: int) -> Image.Image:
    # 带透明通道时只有 FASTOCTREE 可用。
    method = Image.Quantize.FASTOCTREE if img.mode == "RGBA" else Image.Quantize.MEDIANCUT
    return img.quantize(colors=colors, method=method)


def _cap_palette(frame: Image.Image, colors: int) -> Image.Image:
    frame.info = {key: value for key, value in frame.info.items() if key in GIF_KEPT_INFO}
    if frame.mode in {"P", "RGBA"}:
        return frame
    converted = frame.convert("RGB").convert("P", palette=Image.Palette.ADAPTIVE, colors=colors)
    frame.close()
    return converted


_HANDLERS: dict[str, Callable[[Path, OptimizerConfig], None]] = {
    ".jpg": optimize_jpeg,
    ".jpeg": optimize_jpeg,
    ".png": optimize_png,
    ".gif": optimize_gif,
}
