"""衍生文件清单生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path

from image_derivatives.core.models import ORIGINAL_KEY, DirectoryResult

HEADER = ["source_name", "variant", "output_name"]


def write_csv_report(result: DirectoryResult, report_path: Path) -> Path:
    """将目录处理结果写入 CSV，每个衍生文件一行。"""

    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for source_name in sorted(result):
            variants = result[source_name]
            for key in sorted(variants, key=_variant_sort_key):
                writer.writerow([source_name, key, variants[key]])
    return report_path


def _variant_sort_key(key: str) -> tuple[int, int]:
    # original 排在最前，其余按高度升序。
    if key == ORIGINAL_KEY:
        return (0, 0)
    return (1, int(key))
