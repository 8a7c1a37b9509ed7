"""线程池并发执行工具。"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")


def gather(
    calls: Sequence[Callable[[], T]],
    max_workers: Optional[int] = None,
    thread_name_prefix: str = "",
) -> list[T]:
    """并发执行所有调用，按提交顺序返回结果。

    ``max_workers`` 为 None 时每个调用一个线程。任一调用失败即抛出最先观察到的异常；
    已在运行的兄弟任务不会被中断，只取消尚未开始的任务。
    """

    if not calls:
        return []

    workers = max_workers or len(calls)
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=thread_name_prefix)
    failed = False
    try:
        future_map = {executor.submit(call): index for index, call in enumerate(calls)}
        results: list = [None] * len(calls)
        for future in as_completed(future_map):
            results[future_map[future]] = future.result()
        return results
    except BaseException:
        failed = True
        raise
    finally:
        if failed:
            executor.shutdown(wait=False, cancel_futures=True)
        else:
            executor.shutdown(wait=True)
