"""衍生文件命名规则。"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Optional, Union

from image_derivatives.core.exceptions import InvalidConfigurationError
from image_derivatives.core.models import VersionSpec

RATIO_PRECISION = Decimal("0.001")


def aspect_ratio(width: int, height: int) -> float:
    """宽高比保留三位小数（四舍五入，远离零）。"""

    if width <= 0 or height <= 0:
        raise InvalidConfigurationError(f"图片尺寸必须大于 0: {width}x{height}")

    ratio = (Decimal(width) / Decimal(height)).quantize(RATIO_PRECISION, rounding=ROUND_HALF_UP)
    return float(ratio)


def derive_filename(
    source_path: Union[str, Path],
    width: int,
    height: int,
    version: Optional[VersionSpec],
) -> str:
    """根据源文件名、源尺寸与版本高度生成确定性的输出文件名。

    width/height 始终是源图尺寸而非缩放后的尺寸，例如
    ``jovin.jpg`` 200x100 的 80 高版本为 ``jovin_aspR_2.0_w200_h100_e80.jpg``。
    """

    path = Path(source_path)
    ext = path.suffix
    base_name = path.name[: -len(ext)] if ext else path.name
    variant = "" if version is None else str(version.height)
    ratio = aspect_ratio(width, height)
    return f"{base_name}_aspR_{ratio}_w{width}_h{height}_e{variant}{ext}"
