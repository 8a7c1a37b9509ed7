"""输入文件与输出目录的路径校验。"""

from __future__ import annotations

import stat
from pathlib import Path
from typing import Union

from image_derivatives.core.exceptions import (
    BadNameError,
    InvalidPathError,
    NotADirError,
    NotAFileError,
    PathNotFoundError,
)

PathLike = Union[str, Path]


def validate_file(path: PathLike) -> Path:
    """确认路径为绝对路径、指向普通文件，且扩展名与文件名主体均非空。"""

    candidate = Path(path)
    if not candidate.is_absolute():
        raise InvalidPathError(f"图片路径必须为绝对路径: {path}")

    mode = _lstat_mode(candidate)
    if not stat.S_ISREG(mode):
        raise NotAFileError(f"路径不是文件: {candidate}")

    # "name." 的扩展名只有一个点，同样视为无扩展名。
    suffix = candidate.suffix
    if len(suffix) < 2:
        raise BadNameError(f"文件必须带有效扩展名: {candidate.name}")
    if not candidate.name[: -len(suffix)]:
        raise BadNameError(f"去掉扩展名后文件名为空: {candidate.name}")

    return candidate


def validate_directory(path: PathLike) -> Path:
    """确认路径为已存在的绝对目录，不会自动创建。"""

    candidate = Path(path)
    if not candidate.is_absolute():
        raise InvalidPathError(f"目录路径必须为绝对路径: {path}")

    mode = _lstat_mode(candidate)
    if not stat.S_ISDIR(mode):
        raise NotADirError(f"路径不是目录: {candidate}")

    return candidate


# 输出目录与源目录使用同一套规则。
validate_output_directory = validate_directory


def _lstat_mode(path: Path) -> int:
    try:
        return path.lstat().st_mode
    except OSError as exc:
        raise PathNotFoundError(f"无法访问路径 {path}: {exc.strerror or exc}") from exc
