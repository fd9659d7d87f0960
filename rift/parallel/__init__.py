"""
rift/parallel - 병렬 처리 모듈

역할/클러스터 단위의 독립 작업을 동시성 상한 내에서 실행합니다.

Example:
    from rift.parallel import TaskResult, run_bounded

    def work(item, cancel_event):
        return TaskResult.ok(item.name, do_something(item))

    result = run_bounded(items, work, max_workers=8, label="clusters")
    all_data = result.get_flat_data()
"""

from .errors import categorize_error, get_error_code, to_task_error
from .executor import run_bounded
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

__all__: list[str] = [
    # Executor
    "run_bounded",
    # Error handling
    "categorize_error",
    "get_error_code",
    "to_task_error",
    # Types
    "ErrorCategory",
    "TaskError",
    "TaskResult",
    "ParallelExecutionResult",
]
