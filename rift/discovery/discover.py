"""
rift/discovery/discover.py - 탐색 파이프라인

토큰 조회 → 계정/역할 목록 → 역할별 클러스터 탐색을 묶어
이름이 부여되기 전의 Inventory를 만듭니다.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rift.auth.token_cache import resolve_token

from .client import create_sso_client
from .clusters import EksClientFactory, list_all_clusters
from .identity import list_accounts, list_roles
from .types import Inventory

if TYPE_CHECKING:
    from rift.config import Config

logger = logging.getLogger(__name__)


def discover(
    config: Config,
    cancel_event: threading.Event | None = None,
    sso_client: Any = None,
    cache_dir: str | Path | None = None,
    client_factory: EksClientFactory | None = None,
) -> Inventory:
    """SSO 세션으로 접근 가능한 역할/클러스터 전체 탐색

    Raises:
        TokenStoreUnreadableError: SSO 캐시를 읽을 수 없음
        SSONotLoggedInError: 유효한 토큰 없음
        DiscoveryError: 계정 목록 조회 실패
        OperationCancelledError: 취소됨
    """
    now = datetime.now(timezone.utc)
    token = resolve_token(config.sso_start_url, config.sso_region, now=now, cache_dir=cache_dir)

    client = sso_client if sso_client is not None else create_sso_client(config.sso_region)
    accounts = list_accounts(client, token.access_token)
    roles = list_roles(client, token.access_token, accounts)
    logger.info(f"계정 {len(accounts)}개, 역할 {len(roles)}개 발견")

    clusters = list_all_clusters(
        client,
        token.access_token,
        config.regions,
        roles,
        cancel_event=cancel_event,
        client_factory=client_factory,
    )

    roles.sort(key=lambda r: (r.account_name, r.role_name))
    return Inventory(generated_at=now, roles=roles, clusters=clusters)
