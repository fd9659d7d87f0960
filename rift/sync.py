"""
rift/sync.py - sync 명령 파이프라인

탐색 → State 생성 → 네임스페이스 조회 → AWS config → kubeconfig → State 저장
dry-run이면 State와 두 설정 파일 모두 저장하지 않습니다.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rift.discovery import discover
from rift.exceptions import StateError
from rift.inventory import build_state
from rift.namespaces import EnrichResult, enrich
from rift.reconcile import SyncResult, sync_contexts, sync_profiles
from rift.state import State, load_state, save_state

if TYPE_CHECKING:
    from rift.auth.credentials import CredentialProvider
    from rift.config import Config
    from rift.discovery.types import Inventory

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """sync 1회 결과"""

    inventory: Inventory
    state: State
    namespaces: EnrichResult = field(default_factory=lambda: EnrichResult(enabled=False))
    aws: SyncResult = field(default_factory=SyncResult)
    kube: SyncResult = field(default_factory=SyncResult)
    dry_run: bool = False


def _load_previous(state_path: Path) -> State | None:
    try:
        return load_state(state_path)
    except StateError as e:
        logger.debug(f"이전 상태를 사용하지 않음: {e}")
        return None


def run_sync(
    config: Config,
    state_path: str | Path,
    aws_config_path: str | Path,
    kube_config_path: str | Path,
    dry_run: bool = False,
    credential_provider: CredentialProvider | None = None,
    cancel_event: threading.Event | None = None,
    inventory: Inventory | None = None,
) -> SyncReport:
    """전체 동기화 실행

    Args:
        config: 설정
        state_path: 상태 파일 경로
        aws_config_path: AWS config 경로
        kube_config_path: kubeconfig 경로
        dry_run: True면 어떤 파일도 저장하지 않음
        credential_provider: 네임스페이스 조회용 토큰 공급자
        cancel_event: 상위 취소 신호
        inventory: 이미 탐색한 결과 (None이면 discover 실행)

    Raises:
        SSONotLoggedInError: 유효한 SSO 토큰 없음 (rift auth 필요)
        RiftError: 그 밖의 치명적 오류
    """
    state_path = Path(state_path)
    if inventory is None:
        inventory = discover(config, cancel_event=cancel_event)

    previous = _load_previous(state_path)
    state = build_state(config, inventory, previous=previous)
    report = SyncReport(inventory=inventory, state=state, dry_run=dry_run)

    if config.discover_namespaces:
        report.namespaces = enrich(
            state,
            credential_provider=credential_provider,
            cancel_event=cancel_event,
            previous=previous if previous is not None else State(),
        )

    report.aws = sync_profiles(aws_config_path, config, state, dry_run=dry_run)
    report.kube = sync_contexts(kube_config_path, state, dry_run=dry_run)

    if not dry_run:
        save_state(state_path, state)

    logger.info(
        f"sync 완료: 역할 {len(state.roles)}, 클러스터 {len(state.clusters)}, "
        f"aws {report.aws}, kube {report.kube}{' (dry-run)' if dry_run else ''}"
    )
    return report
