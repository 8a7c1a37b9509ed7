"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

from image_derivatives.core.exceptions import InvalidConfigurationError

ORIGINAL_KEY = "original"

# 版本键（"original" 或高度字符串）到输出文件名的映射。
ProcessingResult = Dict[str, str]
# 源文件名到单文件结果的映射。
DirectoryResult = Dict[str, ProcessingResult]


@dataclass(frozen=True, slots=True)
class VersionSpec:
    """按目标高度描述的衍生版本。"""

    height: int

    def __post_init__(self) -> None:
        if isinstance(self.height, bool) or not isinstance(self.height, int) or self.height <= 0:
            raise InvalidConfigurationError(f"版本高度必须为正整数: {self.height!r}")

    @property
    def key(self) -> str:
        return str(self.height)


VersionLike = Union[VersionSpec, int, Mapping[str, int]]


def variant_key(version: Optional[VersionSpec]) -> str:
    """返回结果映射中使用的版本键。"""

    return ORIGINAL_KEY if version is None else version.key


def normalize_versions(versions: Optional[Iterable[VersionLike]]) -> list[VersionSpec]:
    """将整数、{"height": n} 或 VersionSpec 统一转换为 VersionSpec 列表。

    保留顺序与重复项，重复高度会写到同一个文件上。
    """

    normalized: list[VersionSpec] = []
    for item in versions or ():
        if isinstance(item, VersionSpec):
            normalized.append(item)
        elif isinstance(item, Mapping):
            if "height" not in item:
                raise InvalidConfigurationError(f"版本描述缺少 height 字段: {item!r}")
            normalized.append(VersionSpec(height=item["height"]))
        else:
            normalized.append(VersionSpec(height=item))
    return normalized


@dataclass(frozen=True, slots=True)
class SourceImage:
    """探测阶段得到的源图片信息，创建后不再修改。"""

    path: Path
    width: int
    height: int
    format: str
    size_kb: float


@dataclass(frozen=True, slots=True)
class RenderedVariant:
    """单个衍生版本的写入结果。"""

    key: str
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name
