"""单个源文件的处理流程：校验、探测、并发生成各版本、优化。"""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import Iterable, Optional, Union

from image_derivatives.core.config import PipelineSettings
from image_derivatives.core.models import ProcessingResult, VersionLike, VersionSpec, normalize_versions
from image_derivatives.core.output_manager import OutputManager
from image_derivatives.core.validation import validate_file, validate_output_directory
from image_derivatives.processing.optimizer import optimize_files
from image_derivatives.processing.resizer import render_variant
from image_derivatives.processing.sniffer import sniff_image
from image_derivatives.utils.concurrency import gather

LOGGER = logging.getLogger(__name__)


def process_file(
    path: Union[str, Path],
    output_dir: Union[str, Path],
    versions: Optional[Iterable[VersionLike]] = None,
    settings: Optional[PipelineSettings] = None,
) -> ProcessingResult:
    """为单张源图生成原尺寸版本与所有请求的高度版本，返回版本键到文件名的映射。

    任一环节失败都会直接向上抛出；失败前已写出的文件不会被清理。
    """

    settings = settings or PipelineSettings()
    version_specs = normalize_versions(versions)

    source_path = validate_file(path)
    output_path = validate_output_directory(output_dir)
    source = sniff_image(source_path)
    # 重复高度对应同一文件，只渲染一次，结果与覆盖写入相同。
    targets: list[Optional[VersionSpec]] = [None, *dict.fromkeys(version_specs)]
    LOGGER.info(
        "处理 %s (%s %dx%d, %.1f KB)，共 %d 个版本",
        source.path.name,
        source.format,
        source.width,
        source.height,
        source.size_kb,
        len(targets),
    )

    output_manager = OutputManager(output_path, settings.post_process)
    rendered = gather(
        [partial(render_variant, source, version, output_manager, settings) for version in targets],
        thread_name_prefix="variant",
    )

    optimize_files([item.path for item in rendered], settings.optimizer)

    result: ProcessingResult = {}
    for item in rendered:
        result[item.key] = item.filename
    LOGGER.info("完成 %s -> %d 个输出文件", source.path.name, len(result))
    return result
