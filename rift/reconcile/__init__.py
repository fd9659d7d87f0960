"""
rift/reconcile - AWS config / kubeconfig 동기화

두 파일 모두 같은 규칙을 따릅니다:
    1. 파일이 없으면 빈 파일로 간주
    2. rift- 접두사 항목만 관리 (그 외 항목은 읽지도 쓰지도 않음)
    3. 원하는 상태에 없는 관리 항목 삭제 → removed
    4. 원하는 항목 생성/갱신 → added / updated
    5. dry-run이면 저장하지 않음, 아니면 원자적 저장
"""

from .awsconfig import ensure_legacy_auth_profile, ensure_session, sync_profiles
from .kubeconfig import sync_contexts
from .types import SyncResult

__all__: list[str] = [
    "SyncResult",
    "sync_profiles",
    "ensure_session",
    "ensure_legacy_auth_profile",
    "sync_contexts",
]
