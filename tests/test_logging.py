"""测试日志初始化。"""

from __future__ import annotations

import logging

import pytest

from image_derivatives.utils.logging import PACKAGE_LOGGER, setup_logging


@pytest.fixture
def restore_levels():
    loggers = [logging.getLogger(PACKAGE_LOGGER), logging.getLogger("PIL")]
    levels = [logger.level for logger in loggers]
    yield
    for logger, level in zip(loggers, levels):
        logger.setLevel(level)


def test_verbose_raises_package_level_only(restore_levels) -> None:
    setup_logging(logging.DEBUG)

    assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
    assert logging.getLogger("image_derivatives.processing.worker").isEnabledFor(logging.DEBUG)
    assert logging.getLogger("PIL").level == logging.WARNING


def test_default_level_is_info(restore_levels) -> None:
    setup_logging()

    assert logging.getLogger(PACKAGE_LOGGER).level == logging.INFO
    assert not logging.getLogger("image_derivatives.core.scanner").isEnabledFor(logging.DEBUG)
