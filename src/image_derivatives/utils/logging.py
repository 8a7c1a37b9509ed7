"""日志工具。"""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "image_derivatives"
# Pillow 在 DEBUG 级别会逐块输出解码日志。
QUIET_LOGGERS = ("PIL",)


def setup_logging(level: int = logging.INFO) -> None:
    """初始化日志：第三方库保持 WARNING，项目自身日志使用给定级别。

    处理任务运行在线程池中，因此格式中记录线程名。
    """

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(threadName)s] %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
