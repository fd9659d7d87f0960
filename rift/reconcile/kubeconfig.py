"""
rift/reconcile/kubeconfig.py - kubeconfig 동기화

이름이 "rift-"로 시작하는 context와 같은 이름의 cluster/user 항목만 관리합니다.
사용자 항목에는 자격증명을 넣지 않고 `aws eks get-token` exec 설정을 씁니다.

생성되는 항목 예시:
    clusters:
    - name: rift-prod-acme-payments
      cluster:
        server: https://ABC.gr7.us-east-1.eks.amazonaws.com
        certificate-authority-data: LS0t...
    users:
    - name: rift-prod-acme-payments
      user:
        exec:
          apiVersion: client.authentication.k8s.io/v1beta1
          command: aws
          args: [eks, get-token, --profile, rift-prod-acme-admin, --cluster-name, payments, --region, us-east-1]
    contexts:
    - name: rift-prod-acme-payments
      context: {cluster: rift-prod-acme-payments, user: rift-prod-acme-payments, namespace: payments}
"""

from __future__ import annotations

import base64
import binascii
import copy
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]

from rift.auth.credentials import get_token_args
from rift.exceptions import ReconcileError
from rift.io import atomic_write_text, read_text_if_exists
from rift.naming import NAME_PREFIX

from .types import SyncResult

if TYPE_CHECKING:
    from rift.state import ClusterRecord, State

logger = logging.getLogger(__name__)

STORE_NAME = "kubeconfig"

EXEC_API_VERSION = "client.authentication.k8s.io/v1beta1"
EXEC_COMMAND = "aws"

# 목록 키 → 항목 내부 키
_SECTIONS = {
    "clusters": "cluster",
    "users": "user",
    "contexts": "context",
}


def certificate_authority_data(value: str) -> str:
    """kubeconfig용 CA 데이터 (base64)

    유효한 base64면 디코딩 후 다시 인코딩하고, 아니면 원문을 PEM으로 보고 인코딩합니다.
    """
    try:
        decoded = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        decoded = value.encode("utf-8")
    return base64.b64encode(decoded).decode("ascii")


def empty_config() -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "preferences": {},
        "clusters": [],
        "users": [],
        "contexts": [],
        "current-context": "",
    }


# =============================================================================
# 항목 조회/변경
# =============================================================================


def _entries(data: dict[str, Any], section: str) -> list[dict[str, Any]]:
    entries = data.get(section)
    if not isinstance(entries, list):
        entries = []
        data[section] = entries
    return entries


def _find(data: dict[str, Any], section: str, name: str) -> dict[str, Any] | None:
    """이름으로 항목 내용(cluster/user/context 딕셔너리) 조회"""
    inner = _SECTIONS[section]
    for entry in _entries(data, section):
        if isinstance(entry, dict) and entry.get("name") == name:
            value = entry.get(inner)
            return value if isinstance(value, dict) else {}
    return None


def _upsert(data: dict[str, Any], section: str, name: str, value: dict[str, Any]) -> None:
    inner = _SECTIONS[section]
    entries = _entries(data, section)
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name") == name:
            entry[inner] = value
            return
    entries.append({"name": name, inner: value})


def _remove(data: dict[str, Any], section: str, name: str) -> None:
    data[section] = [
        entry for entry in _entries(data, section) if not (isinstance(entry, dict) and entry.get("name") == name)
    ]


def context_names(data: dict[str, Any]) -> list[str]:
    return [
        entry["name"]
        for entry in _entries(data, "contexts")
        if isinstance(entry, dict) and isinstance(entry.get("name"), str)
    ]


# =============================================================================
# 원하는 항목
# =============================================================================


def desired_cluster(record: ClusterRecord) -> dict[str, Any]:
    return {
        "server": record.cluster_endpoint,
        "certificate-authority-data": certificate_authority_data(record.cluster_certificate_base64),
    }


def desired_user(record: ClusterRecord) -> dict[str, Any]:
    return {
        "exec": {
            "apiVersion": EXEC_API_VERSION,
            "command": EXEC_COMMAND,
            "args": get_token_args(record),
        }
    }


def desired_context(record: ClusterRecord) -> dict[str, Any]:
    context = {"cluster": record.kube_context, "user": record.kube_context}
    if record.namespace:
        context["namespace"] = record.namespace
    return context


def _cluster_equal(existing: dict[str, Any] | None, desired: dict[str, Any]) -> bool:
    if existing is None:
        return False
    return existing.get("server") == desired["server"] and existing.get("certificate-authority-data") == desired[
        "certificate-authority-data"
    ]


def _user_equal(existing: dict[str, Any] | None, desired: dict[str, Any]) -> bool:
    if existing is None or not isinstance(existing.get("exec"), dict):
        return False
    current, wanted = existing["exec"], desired["exec"]
    return (
        current.get("apiVersion") == wanted["apiVersion"]
        and current.get("command") == wanted["command"]
        and list(current.get("args") or []) == wanted["args"]
    )


def _context_equal(existing: dict[str, Any] | None, desired: dict[str, Any]) -> bool:
    if existing is None:
        return False
    return (
        existing.get("cluster") == desired["cluster"]
        and existing.get("user") == desired["user"]
        and (existing.get("namespace") or "") == desired.get("namespace", "")
    )


# =============================================================================
# 로드 / 저장
# =============================================================================


def load_kubeconfig(path: str | Path) -> dict[str, Any]:
    """kubeconfig 로드 (없거나 비어 있으면 빈 설정)

    Raises:
        ReconcileError: 읽기/파싱 실패
    """
    path = Path(path)
    try:
        text = read_text_if_exists(path)
        data = yaml.safe_load(text) if text else None
    except (OSError, UnicodeDecodeError) as e:
        raise ReconcileError(STORE_NAME, str(path), "파일을 읽을 수 없습니다", e) from e
    except yaml.YAMLError as e:
        raise ReconcileError(STORE_NAME, str(path), "YAML 파싱 실패", e) from e

    if data is None:
        return empty_config()
    if not isinstance(data, dict):
        raise ReconcileError(STORE_NAME, str(path), "kubeconfig 형식이 올바르지 않습니다")

    data.setdefault("apiVersion", "v1")
    data.setdefault("kind", "Config")
    for section in _SECTIONS:
        _entries(data, section)
    return data


def save_kubeconfig(path: str | Path, data: dict[str, Any]) -> None:
    path = Path(path)
    content = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    try:
        atomic_write_text(path, content, mode=0o600)
    except OSError as e:
        raise ReconcileError(STORE_NAME, str(path), "파일을 저장할 수 없습니다", e) from e


# =============================================================================
# 공개 API
# =============================================================================


def sync_contexts(path: str | Path, state: State, dry_run: bool = False) -> SyncResult:
    """State의 클러스터 목록을 rift context에 반영

    Args:
        path: kubeconfig 경로
        state: 원하는 상태
        dry_run: True면 변경 수만 계산하고 저장하지 않음

    Raises:
        ReconcileError: 파일 읽기/쓰기 실패
    """
    path = Path(path)
    data = load_kubeconfig(path)
    original = copy.deepcopy(data)
    result = SyncResult()

    desired = {cluster.kube_context: cluster for cluster in state.clusters}

    for name in context_names(data):
        if name.startswith(NAME_PREFIX) and name not in desired:
            for section in _SECTIONS:
                _remove(data, section, name)
            result.removed += 1
            logger.debug(f"context 삭제: {name}")

    names = sorted(desired)
    for name in names:
        record = desired[name]
        wanted = {
            "clusters": desired_cluster(record),
            "users": desired_user(record),
            "contexts": desired_context(record),
        }
        existing = {section: _find(data, section, name) for section in _SECTIONS}

        if existing["contexts"] is None:
            result.added += 1
        elif not (
            _cluster_equal(existing["clusters"], wanted["clusters"])
            and _user_equal(existing["users"], wanted["users"])
            and _context_equal(existing["contexts"], wanted["contexts"])
        ):
            result.updated += 1

        if not _cluster_equal(existing["clusters"], wanted["clusters"]):
            _upsert(data, "clusters", name, wanted["clusters"])
        if not _user_equal(existing["users"], wanted["users"]):
            _upsert(data, "users", name, wanted["users"])
        if not _context_equal(existing["contexts"], wanted["contexts"]):
            _upsert(data, "contexts", name, wanted["contexts"])

    previous_current = data.get("current-context") or ""
    current = previous_current
    if current and current not in context_names(data):
        current = ""
    if not current and names:
        current = names[0]
    if current != previous_current:
        data["current-context"] = current

    if not dry_run and data != original:
        save_kubeconfig(path, data)

    logger.info(f"{STORE_NAME} 동기화 {result}{' (dry-run)' if dry_run else ''}: {path}")
    return result
