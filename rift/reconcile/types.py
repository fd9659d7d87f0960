"""
rift/reconcile/types.py - 동기화 결과 타입
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SyncResult:
    """설정 파일 하나의 동기화 결과

    Attributes:
        added: 새로 만든 항목 수
        updated: 값이 바뀐 항목 수
        removed: 삭제한 항목 수
    """

    added: int = 0
    updated: int = 0
    removed: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)

    def __str__(self) -> str:
        return f"+{self.added} ~{self.updated} -{self.removed}"
