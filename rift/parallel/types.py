"""
rift/parallel/types.py - 병렬 실행 결과 타입

워커 하나의 결과를 Ok/Warn 태그로 표현하고, 전체 실행 결과를 집계합니다.
복구 가능한 실패는 예외 대신 TaskResult(success=False)로 전달되어
리듀서에서 카운터 갱신과 로깅만 수행됩니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """작업 실패 원인 분류"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    CREDENTIAL = "credential"
    UNKNOWN = "unknown"


@dataclass
class TaskError:
    """실패한 작업의 컨텍스트 정보

    Attributes:
        identifier: 작업 식별자 (계정/역할 또는 kube context)
        region: AWS 리전 (없으면 빈 문자열)
        category: 에러 카테고리
        error_code: 에러 코드 문자열
        message: 에러 메시지
        original_exception: 원본 예외
    """

    identifier: str
    region: str
    category: ErrorCategory
    error_code: str
    message: str
    original_exception: Exception | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.identifier}/{self.region}] {self.error_code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (로깅/직렬화용)"""
        return {
            "identifier": self.identifier,
            "region": self.region,
            "category": self.category.value,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class TaskResult(Generic[T]):
    """단일 작업 결과 (Ok 또는 Warn)

    Attributes:
        identifier: 작업 식별자
        region: AWS 리전
        success: 성공 여부
        data: 성공 시 결과 데이터
        error: 실패 시 에러 정보
        duration_ms: 실행 시간 (밀리초)
    """

    identifier: str
    region: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0

    def __str__(self) -> str:
        status = "OK" if self.success else "FAIL"
        return f"[{self.identifier}/{self.region}] {status} ({self.duration_ms:.0f}ms)"

    @classmethod
    def ok(cls, identifier: str, data: T, region: str = "", duration_ms: float = 0.0) -> TaskResult[T]:
        """성공 결과 생성"""
        return cls(identifier=identifier, region=region, success=True, data=data, duration_ms=duration_ms)

    @classmethod
    def warn(cls, error: TaskError, duration_ms: float = 0.0) -> TaskResult[T]:
        """복구 가능한 실패 결과 생성"""
        return cls(
            identifier=error.identifier,
            region=error.region,
            success=False,
            error=error,
            duration_ms=duration_ms,
        )


@dataclass
class ParallelExecutionResult(Generic[T]):
    """전체 병렬 실행 결과"""

    results: list[TaskResult[T]] = field(default_factory=list)

    @property
    def successful(self) -> list[TaskResult[T]]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[TaskResult[T]]:
        return [r for r in self.results if not r.success]

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def error_count(self) -> int:
        return len(self.failed)

    def get_data(self) -> list[T]:
        """성공한 작업의 데이터 목록 (None 제외)"""
        return [r.data for r in self.results if r.success and r.data is not None]

    def get_flat_data(self) -> list[Any]:
        """성공 데이터를 평탄화하여 반환"""
        flat: list[Any] = []
        for data in self.get_data():
            if isinstance(data, list):
                flat.extend(data)
            else:
                flat.append(data)
        return flat

    def get_errors(self) -> list[TaskError]:
        return [r.error for r in self.results if r.error is not None]

    def get_error_summary(self, max_per_category: int = 3) -> str:
        """카테고리별 에러 요약 문자열

        Args:
            max_per_category: 카테고리별 최대 표시 건수

        Returns:
            요약 문자열 (에러가 없으면 빈 문자열)
        """
        errors = self.get_errors()
        if not errors:
            return ""

        by_category: dict[ErrorCategory, list[TaskError]] = {}
        for error in errors:
            by_category.setdefault(error.category, []).append(error)

        lines = [f"총 {len(errors)}개 작업 실패"]
        for category, items in by_category.items():
            lines.append(f"  [{category.value}] {len(items)}건")
            for item in items[:max_per_category]:
                lines.append(f"    - {item.identifier}/{item.region}: {item.error_code}")
            if len(items) > max_per_category:
                lines.append(f"    ... 외 {len(items) - max_per_category}건")
        return "\n".join(lines)
