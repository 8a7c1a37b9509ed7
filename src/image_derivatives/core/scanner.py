"""源目录扫描与筛选逻辑。"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from image_derivatives.core.exceptions import PathNotFoundError

LOGGER = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".gif", ".png"}


def collect_source_images(source_dir: Path) -> list[Path]:
    """列出目录第一层中扩展名受支持的条目（不递归）。

    只按扩展名筛选，条目是否为普通文件留给单文件校验处理。
    """

    try:
        names = os.listdir(source_dir)
    except OSError as exc:
        raise PathNotFoundError(f"无法读取目录 {source_dir}: {exc.strerror or exc}") from exc

    collected = [source_dir / name for name in names if Path(name.lower()).suffix in IMAGE_EXTENSIONS]
    collected.sort(key=lambda x: x.name.lower())
    LOGGER.debug("目录 %s 中共 %d 个条目，匹配 %d 个图片", source_dir, len(names), len(collected))
    return collected
