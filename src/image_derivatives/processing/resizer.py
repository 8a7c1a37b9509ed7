"""单个衍生版本的生成：解码、后处理、按需缩放与编码写入。"""

from __future__ import annotations

import logging
from functools import partial
from typing import Optional

from image_derivatives.core.config import PipelineSettings
from image_derivatives.core.models import RenderedVariant, SourceImage, VersionSpec, variant_key
from image_derivatives.core.output_manager import OutputManager
from image_derivatives.processing.image_loader import load_image
from image_derivatives.processing.postprocess import apply_post_process

LOGGER = logging.getLogger(__name__)


def decide_target_height(
    source: SourceImage, version: Optional[VersionSpec], settings: PipelineSettings
) -> Optional[int]:
    """返回需要缩放到的高度；None 表示保持源尺寸。"""

    if version is None:
        return None

    if settings.resize_policy.should_resize(version.height, source.size_kb):
        return version.height

    LOGGER.debug(
        "%s 的 %d 版本不缩放：源文件仅 %.1f KB",
        source.path.name,
        version.height,
        source.size_kb,
    )
    return None


def render_variant(
    source: SourceImage,
    version: Optional[VersionSpec],
    output: OutputManager,
    settings: PipelineSettings,
) -> RenderedVariant:
    """生成并写入一个版本（version 为 None 时生成原尺寸版本）。"""

    destination = output.destination_for(source, version)
    target_height = decide_target_height(source, version, settings)

    decoded = load_image(source.path)
    processed = None
    try:
        processed = decoded.map_frames(
            partial(apply_post_process, config=settings.post_process, target_height=target_height)
        )
        output.save_image(processed, destination)
    finally:
        decoded.close()
        if processed is not None:
            processed.close()

    key = variant_key(version)
    LOGGER.debug("%s -> [%s] %s", source.path.name, key, destination.name)
    return RenderedVariant(key=key, path=destination)
