"""
rift/naming.py - 프로파일/컨텍스트 이름 생성

이름 형식:
    프로파일: rift-<env>-<accountSlug>-<roleSlug>
    컨텍스트: rift-<env>-<accountSlug>-<clusterSlug>

accountSlug는 계정 이름이 "unknown"으로 슬러그화되면 계정 ID를 사용합니다.
같은 기본 이름이 다시 나오면 -2, -3 ... 을 붙입니다.

Note:
    환경 추론은 단어 경계를 보지 않는 부분 문자열 비교입니다.
    ("print-service" → int). 기존 이름과의 호환을 위해 그대로 유지합니다.
"""

from __future__ import annotations

import re

NAME_PREFIX = "rift-"
UNKNOWN = "unknown"

_NON_SLUG = re.compile(r"[^a-z0-9]+")

# (환경, 검사할 부분 문자열) - 순서가 우선순위
_ENV_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("prod", ("prod",)),
    ("staging", ("staging", "stage")),
    ("dev", ("development", "dev")),
    ("int", ("integration", "int")),
)


def slug(text: str) -> str:
    """소문자 + 영숫자 외 연속 문자를 하이픈 하나로 치환"""
    value = _NON_SLUG.sub("-", text.strip().lower()).strip("-")
    return value or UNKNOWN


def infer_env(*parts: str) -> str:
    """이름 조각들에서 환경(prod/staging/dev/int/other) 추론"""
    combined = " ".join(parts).lower()
    for env, needles in _ENV_RULES:
        if any(needle in combined for needle in needles):
            return env
    return "other"


def account_slug(account_name: str, account_id: str) -> str:
    value = slug(account_name)
    if value == UNKNOWN:
        value = slug(account_id)
    return value


def profile_base(env: str, account_name: str, account_id: str, role_name: str) -> str:
    return f"{NAME_PREFIX}{env}-{account_slug(account_name, account_id)}-{slug(role_name)}"


def context_base(env: str, account_name: str, account_id: str, cluster_name: str) -> str:
    return f"{NAME_PREFIX}{env}-{account_slug(account_name, account_id)}-{slug(cluster_name)}"


class NameRegistry:
    """sync 1회 동안 기본 이름별 등장 횟수를 세는 레지스트리

    프로파일용과 컨텍스트용을 따로 생성합니다.
    """

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._issued: set[str] = set()

    def next(self, base: str) -> str:
        """충돌 없는 이름 반환 (첫 번째는 그대로, 이후 -N)"""
        key = slug(base)
        while True:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
            name = key if count == 1 else f"{key}-{count}"
            # 다른 기본 이름이 이미 같은 접미사 이름을 받은 경우 다음 번호 사용
            if name not in self._issued:
                self._issued.add(name)
                return name
