"""
rift/state.py - 이름이 부여된 인벤토리 (State) 모델과 저장

State는 매 sync마다 새 Inventory로부터 전체 재생성되며,
AWS config / kubeconfig 동기화와 list/use 명령의 유일한 입력입니다.

파일 위치: ~/.config/rift/state.json

파일 형식:
    {
      "generated_at": "2024-01-01T00:00:00Z",
      "regions": ["us-east-1"],
      "roles": [{"env": "prod", "account_id": "...", ...}],
      "clusters": [{"env": "prod", "kube_context": "rift-prod-...", ...}]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rift.exceptions import StateError, StateNotFoundError
from rift.io import atomic_write_text

logger = logging.getLogger(__name__)


@dataclass
class RoleRecord:
    """AWS 프로파일 하나에 대응하는 역할 레코드

    식별 키: (account_id, role_name)
    """

    env: str
    account_id: str
    account_name: str
    role_name: str
    role_slug: str
    aws_profile: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.account_id, self.role_name)


@dataclass
class ClusterRecord:
    """kube context 하나에 대응하는 클러스터 레코드

    식별 키: (account_id, role_name, region, cluster_name)
    """

    env: str
    account_id: str
    account_name: str
    role_name: str
    aws_profile: str
    region: str
    cluster_name: str
    cluster_arn: str = ""
    cluster_endpoint: str = ""
    cluster_certificate_base64: str = ""
    kube_context: str = ""
    namespace: str = ""
    namespaces: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.account_id, self.role_name, self.region, self.cluster_name)


_ROLE_FIELDS = {f.name for f in fields(RoleRecord)}
_CLUSTER_FIELDS = {f.name for f in fields(ClusterRecord)}


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_time(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class State:
    """영속화되는 인벤토리"""

    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    regions: list[str] = field(default_factory=list)
    roles: list[RoleRecord] = field(default_factory=list)
    clusters: list[ClusterRecord] = field(default_factory=list)

    def normalize(self) -> None:
        """표시 안정성을 위한 정렬 (제자리 수정)"""
        self.roles.sort(key=lambda r: (r.env, r.account_name, r.role_name))
        self.clusters.sort(key=lambda c: (c.env, c.account_name, c.role_name, c.region, c.cluster_name))

    def to_dict(self) -> dict[str, Any]:
        clusters = []
        for cluster in self.clusters:
            data = asdict(cluster)
            if not data["namespaces"]:
                del data["namespaces"]
            clusters.append(data)
        return {
            "generated_at": _format_time(self.generated_at),
            "regions": list(self.regions),
            "roles": [asdict(role) for role in self.roles],
            "clusters": clusters,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> State:
        """JSON 딕셔너리에서 생성 (알 수 없는 필드는 무시)"""
        roles = [RoleRecord(**{k: v for k, v in raw.items() if k in _ROLE_FIELDS}) for raw in data.get("roles") or []]
        clusters = []
        for raw in data.get("clusters") or []:
            filtered = {k: v for k, v in raw.items() if k in _CLUSTER_FIELDS}
            filtered["namespaces"] = list(filtered.get("namespaces") or [])
            clusters.append(ClusterRecord(**filtered))

        generated_raw = data.get("generated_at")
        generated_at = _parse_time(generated_raw) if generated_raw else datetime.now(timezone.utc)
        return cls(
            generated_at=generated_at,
            regions=list(data.get("regions") or []),
            roles=roles,
            clusters=clusters,
        )


def load_state(path: str | Path) -> State:
    """상태 파일 로드

    Raises:
        StateNotFoundError: 파일 없음
        StateError: 읽기/파싱 실패
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise StateNotFoundError(str(path)) from e
    except OSError as e:
        raise StateError(str(path), "파일을 읽을 수 없습니다", e) from e

    try:
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("최상위 값이 객체가 아닙니다")
        state = State.from_dict(data)
    except (ValueError, TypeError, AttributeError) as e:
        raise StateError(str(path), "파싱 실패", e) from e

    state.normalize()
    return state


def save_state(path: str | Path, state: State) -> None:
    """상태 파일을 정렬 후 원자적으로 저장

    Raises:
        StateError: 쓰기 실패
    """
    path = Path(path)
    state.normalize()
    content = json.dumps(state.to_dict(), ensure_ascii=False, indent=2) + "\n"
    try:
        atomic_write_text(path, content)
    except OSError as e:
        raise StateError(str(path), "파일을 저장할 수 없습니다", e) from e
    logger.debug(f"상태 저장: {path} (roles={len(state.roles)}, clusters={len(state.clusters)})")
