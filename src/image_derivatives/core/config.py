"""处理任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

from image_derivatives.core.models import VersionSpec


@dataclass(slots=True)
class PostProcessConfig:
    """所有衍生图共用的后处理参数。"""

    unsharp_radius: float = 0.25
    unsharp_sigma: float = 0.25
    unsharp_amount: float = 8.0
    unsharp_threshold: float = 0.065
    quality: int = 82
    png_compress_level: int = 9
    interlace: bool = False


@dataclass(slots=True)
class ResizePolicy:
    """版本图是否需要缩放的经验规则。"""

    threshold_height: int = 400
    threshold_kb: float = 70.0

    def should_resize(self, target_height: int, size_kb: float) -> bool:
        """小尺寸版本总是缩放；大尺寸版本只在源文件足够大时缩放。"""

        if target_height < self.threshold_height:
            return True
        return size_kb >= self.threshold_kb


@dataclass(slots=True)
class OptimizerConfig:
    """输出文件压缩优化配置。"""

    gif_colors: int = 256
    gif_interlace: bool = True
    jpeg_progressive: bool = True
    png_colors: int = 256
    png_quality: Tuple[float, float] = (0.85, 1.0)


@dataclass(slots=True)
class PipelineSettings:
    """显式传递给各处理环节的引擎配置。"""

    post_process: PostProcessConfig = field(default_factory=PostProcessConfig)
    resize_policy: ResizePolicy = field(default_factory=ResizePolicy)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)


@dataclass(slots=True)
class JobConfig:
    """单次目录批处理任务的配置集合。"""

    source_dir: Path
    output_dir: Path
    versions: Sequence[VersionSpec] = field(default_factory=tuple)
    settings: PipelineSettings = field(default_factory=PipelineSettings)
    max_workers: Optional[int] = None
    report_path: Optional[Path] = None
