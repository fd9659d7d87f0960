"""
rift/discovery/clusters.py - 역할별 EKS 클러스터 탐색

역할마다 SSO 토큰을 임시 자격증명으로 교환한 뒤, 설정된 리전을 순서대로
돌며 클러스터 목록(list_clusters, 페이지네이션)과 상세(describe_cluster)를
조회합니다. 역할 단위 작업은 최대 8개까지 동시에 실행합니다.

실패 처리 (모두 soft failure):
- 자격증명 교환 실패/빈 응답 → 경고, 역할 전체 건너뜀
- 리전별 list_clusters 실패 → 경고, 해당 역할의 그 리전만 건너뜀
- describe_cluster 실패 → 해당 클러스터만 조용히 제외 (debug 로그)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from rift.exceptions import DiscoveryError
from rift.parallel import TaskResult, run_bounded, to_task_error

from .client import get_client, session_from_role_credentials
from .types import ClusterAccess, RoleAccess

logger = logging.getLogger(__name__)

MAX_ROLE_WORKERS = 8

# (roleCredentials, region) -> EKS client
EksClientFactory = Callable[[dict[str, Any], str], Any]


def default_eks_client_factory(role_credentials: dict[str, Any], region: str) -> Any:
    session = session_from_role_credentials(role_credentials)
    return get_client(session, "eks", region_name=region)


def get_role_credentials(sso_client: Any, access_token: str, role: RoleAccess) -> dict[str, Any]:
    """SSO 토큰을 역할 임시 자격증명으로 교환

    Raises:
        ClientError/BotoCoreError: API 실패
        DiscoveryError: 빈 자격증명
    """
    response = sso_client.get_role_credentials(
        roleName=role.role_name,
        accountId=role.account_id,
        accessToken=access_token,
    )
    credentials = response.get("roleCredentials") or {}
    if not credentials.get("accessKeyId") or not credentials.get("secretAccessKey"):
        raise DiscoveryError("get_role_credentials: 빈 자격증명")
    return credentials


def _list_cluster_names(eks_client: Any) -> list[str]:
    names: list[str] = []
    kwargs: dict[str, Any] = {}
    while True:
        response = eks_client.list_clusters(**kwargs)
        names.extend(response.get("clusters", []))
        next_token = response.get("nextToken")
        if not next_token:
            break
        kwargs["nextToken"] = next_token
    return names


def _build_cluster(role: RoleAccess, region: str, listed_name: str, described: dict[str, Any]) -> ClusterAccess:
    certificate = described.get("certificateAuthority") or {}
    return ClusterAccess(
        account_id=role.account_id,
        account_name=role.account_name,
        role_name=role.role_name,
        region=region,
        cluster_name=described.get("name") or listed_name,
        cluster_arn=described.get("arn", ""),
        cluster_endpoint=described.get("endpoint", ""),
        cluster_certificate_base64=certificate.get("data", ""),
    )


def list_clusters_for_region(eks_client: Any, role: RoleAccess, region: str) -> list[ClusterAccess]:
    """한 역할/리전의 클러스터 조회

    list_clusters 실패는 호출자에게 전파하고, describe 실패는 해당 클러스터만 제외합니다.
    """
    clusters: list[ClusterAccess] = []
    for name in _list_cluster_names(eks_client):
        try:
            response = eks_client.describe_cluster(name=name)
        except (ClientError, BotoCoreError) as e:
            logger.debug(f"[{role.identifier}/{region}] describe_cluster 실패, 제외: {name} ({e})")
            continue
        cluster = _build_cluster(role, region, name, response.get("cluster") or {})
        if not cluster.cluster_name:
            continue
        clusters.append(cluster)
    return clusters


def list_all_clusters(
    sso_client: Any,
    access_token: str,
    regions: list[str],
    roles: list[RoleAccess],
    cancel_event: threading.Event | None = None,
    client_factory: EksClientFactory | None = None,
) -> list[ClusterAccess]:
    """모든 역할 × 리전의 클러스터 탐색

    Args:
        sso_client: SSO Portal client
        access_token: SSO 액세스 토큰
        regions: 탐색할 리전 (순서대로)
        roles: 역할 목록
        cancel_event: 상위 취소 신호
        client_factory: 테스트용 EKS client 생성 함수

    Returns:
        (account_name, role_name, region, cluster_name) 순 정렬된 클러스터 목록

    Raises:
        OperationCancelledError: 취소된 경우
    """
    if not roles:
        return []
    factory = client_factory or default_eks_client_factory

    def discover_role(role: RoleAccess, cancel: threading.Event) -> TaskResult[list[ClusterAccess]]:
        start = time.monotonic()
        try:
            credentials = get_role_credentials(sso_client, access_token, role)
        except (ClientError, BotoCoreError, DiscoveryError) as e:
            logger.warning(f"[{role.account_id}/{role.account_name}/{role.role_name}] 역할 자격증명 조회 실패: {e}")
            return TaskResult.warn(to_task_error(e, role.identifier), (time.monotonic() - start) * 1000)

        found: list[ClusterAccess] = []
        for region in regions:
            if cancel.is_set():
                break
            try:
                eks_client = factory(credentials, region)
                found.extend(list_clusters_for_region(eks_client, role, region))
            except (ClientError, BotoCoreError) as e:
                logger.warning(
                    f"[{role.account_id}/{role.account_name}/{role.role_name}/{region}] 클러스터 목록 조회 실패: {e}"
                )
                continue

        return TaskResult.ok(role.identifier, found, duration_ms=(time.monotonic() - start) * 1000)

    result = run_bounded(roles, discover_role, MAX_ROLE_WORKERS, cancel_event=cancel_event, label="clusters")

    if result.error_count:
        logger.debug(result.get_error_summary())

    clusters: list[ClusterAccess] = result.get_flat_data()
    clusters.sort(key=lambda c: c.sort_key)
    logger.info(f"클러스터 {len(clusters)}개 탐색 (역할 {len(roles)}개, 자격증명 실패 {result.error_count}개)")
    return clusters
