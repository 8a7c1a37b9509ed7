"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from image_derivatives.core.config import JobConfig
from image_derivatives.core.exceptions import ImageDerivativesError, InvalidConfigurationError
from image_derivatives.core.models import VersionSpec
from image_derivatives.processing.pipeline import process_batch
from image_derivatives.utils.logging import setup_logging

app = typer.Typer(help="批量生成图片的多尺寸衍生版本并压缩优化。")


def _parse_heights(values: Optional[List[int]]) -> list[VersionSpec]:
    try:
        return [VersionSpec(height=value) for value in values or []]
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--height") from exc


@app.command("run")
def run_cli(
    source: Path = typer.Argument(..., help="源图片目录（不递归）"),
    output: Path = typer.Option(..., "--output", "-o", help="输出目录，必须已存在"),
    heights: Optional[List[int]] = typer.Option(None, "--height", "-H", help="目标高度，可多次指定"),
    max_workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="同时处理的文件数上限，默认不限"),
    report: Optional[Path] = typer.Option(None, "--report", help="将结果清单写入 CSV 文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """执行目录批处理。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)
    logging.getLogger(__name__).debug("CLI 参数解析完成")

    job = JobConfig(
        source_dir=source.expanduser().resolve(),
        output_dir=output.expanduser().resolve(),
        versions=_parse_heights(heights),
        max_workers=max_workers,
        report_path=report.expanduser().resolve() if report else None,
    )

    console = Console()
    try:
        with console.status("正在生成衍生图片..."):
            result = process_batch(job)
    except ImageDerivativesError as exc:
        typer.echo(f"处理失败：{exc}", err=True)
        raise typer.Exit(code=1) from exc

    console.print_json(data=result)
    total = sum(len(variants) for variants in result.values())
    typer.echo(f"处理完成：{len(result)} 个源文件，共 {total} 个输出文件。")
    if job.report_path:
        typer.echo(f"清单文件：{job.report_path}")


if __name__ == "__main__":
    app()
