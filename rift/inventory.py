"""
rift/inventory.py - Inventory → State 변환

탐색 결과를 결정적인 순서로 정렬한 뒤 이름을 부여합니다.
레지스트리는 호출마다 새로 만들어 프로파일/컨텍스트 번호가 서로 영향을 주지 않습니다.

처리 순서:
    1. 역할 정렬 (account_name, account_id, role_name) → 프로파일 이름 부여
    2. 클러스터 정렬 (account_name, role_name, region, cluster_name) → 컨텍스트 이름 부여
    3. 프로파일이 없는 (계정, 역할)의 클러스터는 역할 레코드를 보충
    4. 역할 중복 제거 → 정렬된 State 반환
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rift.naming import NameRegistry, context_base, infer_env, profile_base, slug
from rift.state import ClusterRecord, RoleRecord, State

if TYPE_CHECKING:
    from rift.config import Config
    from rift.discovery.types import Inventory

logger = logging.getLogger(__name__)


def _dedupe_roles(roles: list[RoleRecord]) -> list[RoleRecord]:
    seen: set[tuple[str, str, str]] = set()
    unique: list[RoleRecord] = []
    for role in roles:
        key = (role.account_id, role.role_name, role.aws_profile)
        if key in seen:
            continue
        seen.add(key)
        unique.append(role)
    return unique


def _initial_namespaces(default: str, previous: ClusterRecord | None) -> list[str]:
    namespaces = {default} if default else set()
    if previous is not None:
        namespaces.update(ns.strip() for ns in previous.namespaces if ns.strip())
    return sorted(namespaces)


def build_state(config: Config, inventory: Inventory, previous: State | None = None) -> State:
    """Inventory에 이름을 부여하여 State 생성

    Args:
        config: 설정 (리전, 환경별 기본 네임스페이스)
        inventory: 탐색 결과
        previous: 직전 State (있으면 클러스터별 네임스페이스를 이어받음)

    Returns:
        정렬된 새 State
    """
    profiles = NameRegistry()
    contexts = NameRegistry()

    role_profiles: dict[tuple[str, str], str] = {}
    roles: list[RoleRecord] = []

    for access in sorted(inventory.roles, key=lambda r: (r.account_name, r.account_id, r.role_name)):
        env = infer_env(access.account_name, access.role_name)
        profile = profiles.next(profile_base(env, access.account_name, access.account_id, access.role_name))
        role_profiles[(access.account_id, access.role_name)] = profile
        roles.append(
            RoleRecord(
                env=env,
                account_id=access.account_id,
                account_name=access.account_name,
                role_name=access.role_name,
                role_slug=slug(access.role_name),
                aws_profile=profile,
            )
        )

    previous_clusters = {c.key: c for c in previous.clusters} if previous is not None else {}

    clusters: list[ClusterRecord] = []
    for access in sorted(inventory.clusters, key=lambda c: c.sort_key):
        env = infer_env(access.account_name, access.role_name, access.cluster_name)
        context = contexts.next(context_base(env, access.account_name, access.account_id, access.cluster_name))

        role_key = (access.account_id, access.role_name)
        profile = role_profiles.get(role_key, "")
        if not profile:
            profile = profiles.next(profile_base(env, access.account_name, access.account_id, access.role_name))
            role_profiles[role_key] = profile
            roles.append(
                RoleRecord(
                    env=env,
                    account_id=access.account_id,
                    account_name=access.account_name,
                    role_name=access.role_name,
                    role_slug=slug(access.role_name),
                    aws_profile=profile,
                )
            )
            logger.debug(f"클러스터 {access.cluster_name}의 역할 레코드 보충: {profile}")

        namespace = config.namespace_for_env(env)
        key = (access.account_id, access.role_name, access.region, access.cluster_name)
        clusters.append(
            ClusterRecord(
                env=env,
                account_id=access.account_id,
                account_name=access.account_name,
                role_name=access.role_name,
                aws_profile=profile,
                region=access.region,
                cluster_name=access.cluster_name,
                cluster_arn=access.cluster_arn,
                cluster_endpoint=access.cluster_endpoint,
                cluster_certificate_base64=access.cluster_certificate_base64,
                kube_context=context,
                namespace=namespace,
                namespaces=_initial_namespaces(namespace, previous_clusters.get(key)),
            )
        )

    state = State(
        generated_at=inventory.generated_at,
        regions=list(config.regions),
        roles=_dedupe_roles(roles),
        clusters=clusters,
    )
    state.normalize()
    return state
