"""
tests/rift/test_namespaces.py - 네임스페이스 조회 테스트

토큰 공급자와 CoreV1Api는 가짜 구현을 주입합니다.
"""

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from rift.auth.credentials import CredentialProvider
from rift.exceptions import CredentialError, OperationCancelledError
from rift.namespaces import (
    REQUEST_TIMEOUT_SECONDS,
    default_client_factory,
    enrich,
    fetch_cluster_namespaces,
    merge_namespaces,
    normalize_namespaces,
)
from rift.state import State


class FakeProvider(CredentialProvider):
    """context별로 토큰을 반환하거나 실패하는 공급자"""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []
        self._lock = threading.Lock()

    def get_token(self, cluster):
        with self._lock:
            self.calls.append(cluster.kube_context)
        if cluster.kube_context in self.failing:
            raise CredentialError("aws eks get-token", "expired")
        return f"token-{cluster.cluster_name}"


def _namespace_list(*names):
    return SimpleNamespace(items=[SimpleNamespace(metadata=SimpleNamespace(name=name)) for name in names])


def _factory(namespaces_by_cluster):
    def factory(cluster, token):
        api = MagicMock()
        api.list_namespace.return_value = _namespace_list(*namespaces_by_cluster[cluster.cluster_name])
        return api

    return factory


class TestHelpers:
    """정규화/병합 헬퍼 테스트"""

    def test_normalize(self):
        assert normalize_namespaces([" b", "a", "", "b ", "  "]) == ["a", "b"]

    def test_merge_includes_default_and_existing(self, make_cluster):
        cluster = make_cluster(namespace="payments", namespaces=["legacy"])
        assert merge_namespaces(cluster, ["kube-system"]) == ["kube-system", "legacy", "payments"]

    def test_fetch_uses_token_and_timeout(self, make_cluster):
        cluster = make_cluster()
        api = MagicMock()
        api.list_namespace.return_value = _namespace_list("default", "payments", "default")
        seen = {}

        def factory(c, token):
            seen["token"] = token
            return api

        result = fetch_cluster_namespaces(cluster, FakeProvider(), factory)

        assert result == ["default", "payments"]
        assert seen["token"] == "token-payments"
        api.list_namespace.assert_called_once_with(_request_timeout=REQUEST_TIMEOUT_SECONDS)

    def test_default_client_factory_configures_bearer_token(self, make_cluster):
        api = default_client_factory(make_cluster(), "secret-token")

        configuration = api.api_client.configuration
        assert configuration.host == "https://ABC.gr7.us-east-1.eks.amazonaws.com"
        assert configuration.api_key["authorization"] == "Bearer secret-token"


class TestEnrich:
    """enrich 테스트"""

    def test_merges_discovered_namespaces(self, make_cluster):
        state = State(clusters=[make_cluster(namespace="payments", namespaces=["payments"])])

        result = enrich(
            state,
            credential_provider=FakeProvider(),
            client_factory=_factory({"payments": ["default", "kube-system"]}),
        )

        assert state.clusters[0].namespaces == ["default", "kube-system", "payments"]
        assert result.enabled is True
        assert result.clusters_tried == 1
        assert result.clusters_updated == 1
        assert result.errors == 0

    def test_unchanged_namespaces_not_counted(self, make_cluster):
        state = State(clusters=[make_cluster(namespace="payments", namespaces=["default", "payments"])])

        result = enrich(
            state,
            credential_provider=FakeProvider(),
            client_factory=_factory({"payments": ["default"]}),
        )

        assert result.clusters_updated == 0
        assert state.clusters[0].namespaces == ["default", "payments"]

    def test_new_default_namespace_counted_against_previous_state(self, make_cluster):
        """기본 네임스페이스가 새로 설정되면 직전 State 대비 갱신으로 집계"""
        previous = State(clusters=[make_cluster(namespace="", namespaces=["default"])])
        # build_state가 이미 새 기본값(payments)을 합쳐 둔 상태
        state = State(clusters=[make_cluster(namespace="payments", namespaces=["default", "payments"])])

        result = enrich(
            state,
            credential_provider=FakeProvider(),
            client_factory=_factory({"payments": ["default"]}),
            previous=previous,
        )

        assert state.clusters[0].namespaces == ["default", "payments"]
        assert result.clusters_updated == 1

    def test_unchanged_against_previous_state(self, make_cluster):
        previous = State(clusters=[make_cluster(namespaces=["default", "payments"])])
        state = State(clusters=[make_cluster(namespaces=["default", "payments"])])

        result = enrich(
            state,
            credential_provider=FakeProvider(),
            client_factory=_factory({"payments": ["default"]}),
            previous=previous,
        )

        assert result.clusters_updated == 0

    def test_failure_keeps_existing_namespaces(self, make_cluster, caplog):
        """조회 실패 클러스터는 기존 목록 유지, errors만 증가"""
        failing = make_cluster(cluster_name="broken", kube_context="rift-prod-acme-broken", namespaces=["a", "b"])
        healthy = make_cluster(cluster_name="payments", kube_context="rift-prod-acme-payments", namespaces=[])
        state = State(clusters=[failing, healthy])

        result = enrich(
            state,
            credential_provider=FakeProvider(failing={"rift-prod-acme-broken"}),
            client_factory=_factory({"payments": ["default"]}),
        )

        assert failing.namespaces == ["a", "b"]
        assert healthy.namespaces == ["default", "payments"]
        assert result.clusters_tried == 2
        assert result.clusters_updated == 1
        assert result.errors == 1
        assert "[rift-prod-acme-broken/broken/us-east-1]" in caplog.text

    def test_api_failure_counts_as_error(self, make_cluster):
        state = State(clusters=[make_cluster(namespaces=["a"])])

        def factory(cluster, token):
            api = MagicMock()
            api.list_namespace.side_effect = RuntimeError("connection refused")
            return api

        result = enrich(state, credential_provider=FakeProvider(), client_factory=factory)

        assert result.errors == 1
        assert state.clusters[0].namespaces == ["a"]

    def test_skips_clusters_without_endpoint(self, make_cluster):
        provider = FakeProvider()
        state = State(clusters=[make_cluster(cluster_endpoint="  ")])

        result = enrich(state, credential_provider=provider, client_factory=_factory({}))

        assert result.clusters_tried == 0
        assert provider.calls == []

    def test_empty_state(self):
        result = enrich(State(), credential_provider=FakeProvider())
        assert (result.clusters_tried, result.clusters_updated, result.errors) == (0, 0, 0)

    def test_cancelled(self, make_cluster):
        cancel = threading.Event()
        cancel.set()
        state = State(clusters=[make_cluster()])

        with pytest.raises(OperationCancelledError):
            enrich(state, credential_provider=FakeProvider(), cancel_event=cancel, client_factory=_factory({}))
