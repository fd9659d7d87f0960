"""
rift/namespaces.py - 클러스터 네임스페이스 조회 (best-effort)

State의 각 클러스터에 EKS 토큰으로 접속하여 네임스페이스 목록을 가져오고,
기존에 알고 있던 목록 + 환경 기본 네임스페이스와 합칩니다.
조회에 실패한 클러스터는 오류 카운트만 올리고 기존 목록을 그대로 둡니다.

동시성: 클러스터 조회는 최대 4개까지 동시에 실행합니다.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from kubernetes import client
from kubernetes.config.kube_config import KubeConfigLoader

from rift.auth.credentials import AwsCliCredentialProvider, CredentialProvider
from rift.parallel import TaskResult, run_bounded, to_task_error
from rift.reconcile.kubeconfig import certificate_authority_data
from rift.state import ClusterRecord, State

logger = logging.getLogger(__name__)

MAX_PROBE_WORKERS = 4
REQUEST_TIMEOUT_SECONDS = 15

# (cluster, bearer token) -> CoreV1Api 호환 객체
ClientFactory = Callable[[ClusterRecord, str], Any]


@dataclass
class EnrichResult:
    """네임스페이스 조회 요약

    Attributes:
        enabled: 조회 수행 여부
        clusters_tried: 조회 대상 클러스터 수
        clusters_updated: 네임스페이스 목록이 바뀐 클러스터 수
        errors: 조회 실패 클러스터 수
    """

    enabled: bool = True
    clusters_tried: int = 0
    clusters_updated: int = 0
    errors: int = 0


def normalize_namespaces(values: Iterable[str]) -> list[str]:
    """공백 제거, 빈 값 제외, 중복 제거, 정렬"""
    return sorted({value.strip() for value in values if value and value.strip()})


def default_client_factory(cluster: ClusterRecord, token: str) -> Any:
    """클러스터 엔드포인트 + CA + 베어러 토큰으로 CoreV1Api 생성"""
    name = cluster.kube_context or cluster.cluster_name
    kube_config_dict = {
        "apiVersion": "v1",
        "clusters": [
            {
                "name": name,
                "cluster": {
                    "server": cluster.cluster_endpoint,
                    "certificate-authority-data": certificate_authority_data(cluster.cluster_certificate_base64),
                },
            }
        ],
        "contexts": [{"name": name, "context": {"cluster": name, "user": name}}],
        "current-context": name,
        "users": [{"name": name, "user": {"token": token}}],
    }
    loader = KubeConfigLoader(config_dict=kube_config_dict)
    configuration = client.Configuration()
    loader.load_and_set(configuration)
    return client.CoreV1Api(client.ApiClient(configuration=configuration))


def fetch_cluster_namespaces(
    cluster: ClusterRecord,
    credential_provider: CredentialProvider,
    client_factory: ClientFactory = default_client_factory,
) -> list[str]:
    """클러스터 하나의 네임스페이스 목록 조회"""
    token = credential_provider.get_token(cluster)
    core_v1 = client_factory(cluster, token)
    response = core_v1.list_namespace(_request_timeout=REQUEST_TIMEOUT_SECONDS)
    return normalize_namespaces(item.metadata.name for item in response.items if item.metadata is not None)


def merge_namespaces(cluster: ClusterRecord, discovered: Iterable[str]) -> list[str]:
    """기존 목록 + 기본 네임스페이스 + 새로 조회한 목록 합집합"""
    return normalize_namespaces([*cluster.namespaces, cluster.namespace, *discovered])


def enrich(
    state: State,
    credential_provider: CredentialProvider | None = None,
    cancel_event: threading.Event | None = None,
    client_factory: ClientFactory | None = None,
    previous: State | None = None,
) -> EnrichResult:
    """State의 클러스터 네임스페이스를 조회하여 제자리 갱신

    previous가 있으면 직전 State에 저장된 목록과 비교해 갱신 수를 셉니다.

    Raises:
        OperationCancelledError: 취소된 경우에만
    """
    result = EnrichResult(enabled=True)
    if not state.clusters:
        return result

    provider = credential_provider or AwsCliCredentialProvider()
    factory = client_factory or default_client_factory

    targets = [
        (index, cluster)
        for index, cluster in enumerate(state.clusters)
        if cluster.cluster_endpoint.strip() and cluster.cluster_name.strip()
    ]
    result.clusters_tried = len(targets)

    def probe(target: tuple[int, ClusterRecord], cancel: threading.Event) -> TaskResult[tuple[int, list[str]]]:
        index, cluster = target
        start = time.monotonic()
        try:
            namespaces = fetch_cluster_namespaces(cluster, provider, factory)
        except Exception as e:
            return TaskResult.warn(
                to_task_error(e, cluster.kube_context, cluster.region),
                (time.monotonic() - start) * 1000,
            )
        return TaskResult.ok(cluster.kube_context, (index, namespaces), cluster.region, (time.monotonic() - start) * 1000)

    outcome = run_bounded(targets, probe, MAX_PROBE_WORKERS, cancel_event=cancel_event, label="namespaces")

    clusters_by_context = {cluster.kube_context: cluster for _, cluster in targets}
    for error in outcome.get_errors():
        result.errors += 1
        cluster = clusters_by_context.get(error.identifier)
        cluster_name = cluster.cluster_name if cluster else ""
        logger.warning(f"[{error.identifier}/{cluster_name}/{error.region}] 네임스페이스 조회 실패: {error.message}")

    stored = {c.key: c.namespaces for c in previous.clusters} if previous is not None else None

    for index, discovered in outcome.get_data():
        cluster = state.clusters[index]
        merged = merge_namespaces(cluster, discovered)
        baseline = cluster.namespaces if stored is None else stored.get(cluster.key, [])
        changed = merged != normalize_namespaces(baseline)
        cluster.namespaces = merged
        if changed:
            result.clusters_updated += 1

    logger.info(
        f"네임스페이스 조회: 대상 {result.clusters_tried}, 갱신 {result.clusters_updated}, 실패 {result.errors}"
    )
    return result
