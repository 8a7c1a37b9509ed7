"""目录级处理流水线：扫描源目录并发执行单文件处理。"""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import Iterable, Optional, Union

from image_derivatives.core.config import JobConfig, PipelineSettings
from image_derivatives.core.models import DirectoryResult, VersionLike, normalize_versions
from image_derivatives.core.report import write_csv_report
from image_derivatives.core.scanner import collect_source_images
from image_derivatives.core.validation import validate_directory, validate_output_directory
from image_derivatives.processing.worker import process_file
from image_derivatives.utils.concurrency import gather

LOGGER = logging.getLogger(__name__)


def process_directory(
    source_dir: Union[str, Path],
    output_dir: Union[str, Path],
    versions: Optional[Iterable[VersionLike]] = None,
    settings: Optional[PipelineSettings] = None,
    max_workers: Optional[int] = None,
) -> DirectoryResult:
    """处理源目录第一层中的全部图片，返回以源文件名为键的结果映射。

    所有文件并发处理（``max_workers`` 为 None 时不限并发数）。任一文件失败则整个任务失败，
    不返回部分结果。
    """

    source_root = validate_directory(source_dir)
    output_root = validate_output_directory(output_dir)
    version_specs = normalize_versions(versions)

    LOGGER.info("开始扫描输入目录 %s", source_root)
    candidates = collect_source_images(source_root)
    LOGGER.info("发现 %d 个候选图片文件", len(candidates))
    if not candidates:
        return {}

    results = gather(
        [partial(process_file, candidate, output_root, version_specs, settings) for candidate in candidates],
        max_workers=max_workers,
        thread_name_prefix="file",
    )

    LOGGER.info("处理完成，共 %d 个源文件", len(candidates))
    return {candidate.name: result for candidate, result in zip(candidates, results)}


def process_batch(config: JobConfig) -> DirectoryResult:
    """按 JobConfig 执行目录处理，需要时写出 CSV 清单。"""

    result = process_directory(
        config.source_dir,
        config.output_dir,
        config.versions,
        settings=config.settings,
        max_workers=config.max_workers,
    )
    if config.report_path is not None:
        report_path = write_csv_report(result, config.report_path)
        LOGGER.info("清单已写入 %s", report_path)
    return result
