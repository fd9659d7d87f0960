"""
rift/parallel/executor.py - 동시성 상한이 있는 워커 풀

역할별 클러스터 탐색(최대 8)과 클러스터별 네임스페이스 조회(최대 4)처럼
독립적인 작업을 고정 크기 풀에서 실행하고, 결과를 하나의 락으로 보호되는
공유 리스트에 모읍니다. 모든 워커가 끝난 뒤(barrier)에만 결과를 읽습니다.

실패 처리:
- 워커가 TaskResult(success=False)를 반환하면 soft failure → 계속 진행
- 워커에서 예외가 빠져나오면 hard failure → 취소 신호 설정,
  대기 중인 작업 취소, barrier 이후 예외 재전파
- 외부 취소 신호가 설정되면 OperationCancelledError

Example:
    def probe(cluster, cancel_event):
        ...
        return TaskResult.ok(cluster.kube_context, namespaces)

    result = run_bounded(clusters, probe, max_workers=4, label="namespaces")
    print(f"성공: {result.success_count}, 실패: {result.error_count}")
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TypeVar

from rift.exceptions import OperationCancelledError

from .types import ParallelExecutionResult, TaskResult

logger = logging.getLogger(__name__)

I = TypeVar("I")
T = TypeVar("T")

Worker = Callable[[I, threading.Event], TaskResult[T]]


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


def run_bounded(
    items: Iterable[I],
    worker: Worker,
    max_workers: int,
    cancel_event: threading.Event | None = None,
    label: str = "default",
) -> ParallelExecutionResult[T]:
    """작업 목록을 상한이 있는 스레드 풀에서 실행

    Args:
        items: 작업 입력 목록
        worker: (item, cancel_event) -> TaskResult 함수
        max_workers: 최대 동시 실행 수
        cancel_event: 상위 취소 신호 (None이면 내부 생성)
        label: 로깅/취소 메시지용 단계 이름

    Returns:
        ParallelExecutionResult: 완료된 작업 결과 (순서 보장 없음)

    Raises:
        OperationCancelledError: 취소 신호가 설정된 경우
        Exception: 워커의 hard failure (첫 번째 예외)
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    tasks = list(items)
    cancel = cancel_event if cancel_event is not None else threading.Event()
    if cancel.is_set():
        raise OperationCancelledError(label)
    if not tasks:
        return ParallelExecutionResult()

    logger.debug(f"병렬 실행 시작 [{label}]: {len(tasks)}개 작업, max_workers={max_workers}")

    results: list[TaskResult[T]] = []
    results_lock = threading.Lock()
    start_time = time.monotonic()

    def run_one(item: I) -> None:
        if cancel.is_set():
            return
        result = worker(item, cancel)
        with results_lock:
            results.append(result)

    first_error: Exception | None = None

    with ThreadPoolExecutor(max_workers=min(max_workers, len(tasks))) as executor:
        futures = [executor.submit(run_one, item) for item in tasks]

        for future in as_completed(futures):
            if future.cancelled():
                continue
            error = future.exception()
            if error is None:
                continue
            if first_error is None:
                first_error = error
                logger.error(f"작업 실행 중 예외 [{label}]: {error}")
                cancel.set()
                for pending in futures:
                    pending.cancel()

    if first_error is not None:
        raise first_error
    if cancel.is_set():
        raise OperationCancelledError(label)

    total_time = (time.monotonic() - start_time) * 1000
    exec_result: ParallelExecutionResult[T] = ParallelExecutionResult(results=results)
    for failed in exec_result.failed:
        if failed.error is not None and failed.error.original_exception is not None:
            _clear_exception_chain(failed.error.original_exception)

    logger.debug(
        f"병렬 실행 완료 [{label}]: 성공 {exec_result.success_count}, "
        f"실패 {exec_result.error_count}, 총 {total_time:.0f}ms"
    )
    return exec_result
