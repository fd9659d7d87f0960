"""
rift/discovery/types.py - 탐색 결과 타입 (이름 부여 전)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class AccountInfo:
    """SSO로 접근 가능한 AWS 계정"""

    id: str
    name: str


@dataclass(frozen=True)
class RoleAccess:
    """역할 위임 권한 (계정 + Permission Set)"""

    account_id: str
    account_name: str
    role_name: str

    @property
    def identifier(self) -> str:
        return f"{self.account_name or self.account_id}/{self.role_name}"


@dataclass(frozen=True)
class ClusterAccess:
    """역할 하나로 특정 리전에서 보이는 EKS 클러스터"""

    account_id: str
    account_name: str
    role_name: str
    region: str
    cluster_name: str
    cluster_arn: str = ""
    cluster_endpoint: str = ""
    cluster_certificate_base64: str = ""

    @property
    def sort_key(self) -> tuple[str, str, str, str]:
        return (self.account_name, self.role_name, self.region, self.cluster_name)


@dataclass
class Inventory:
    """탐색 원본 결과 (sync 1회 동안만 사용)"""

    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    roles: list[RoleAccess] = field(default_factory=list)
    clusters: list[ClusterAccess] = field(default_factory=list)
