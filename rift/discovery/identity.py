"""
rift/discovery/identity.py - SSO 계정/역할 목록 조회

- list_accounts: 계정 목록 (NextToken 끝까지, 실패 시 치명적)
- list_roles: 계정별 역할 목록 (계정 단위 실패는 경고 후 건너뜀)

결과 순서는 보장하지 않습니다. 정렬은 이후 단계에서 수행합니다.
"""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from rift.exceptions import DiscoveryError

from .types import AccountInfo, RoleAccess

logger = logging.getLogger(__name__)


def list_accounts(sso_client: Any, access_token: str) -> list[AccountInfo]:
    """접근 가능한 모든 계정 조회

    Raises:
        DiscoveryError: 계정 목록 조회 실패
    """
    accounts: list[AccountInfo] = []
    kwargs: dict[str, Any] = {"accessToken": access_token}
    while True:
        try:
            response = sso_client.list_accounts(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise DiscoveryError("list_accounts", e) from e

        for account in response.get("accountList", []):
            accounts.append(
                AccountInfo(
                    id=account.get("accountId", ""),
                    name=account.get("accountName", ""),
                )
            )

        next_token = response.get("nextToken")
        if not next_token:
            break
        kwargs["nextToken"] = next_token

    logger.debug(f"계정 {len(accounts)}개 조회")
    return accounts


def _list_account_roles(sso_client: Any, access_token: str, account: AccountInfo) -> list[RoleAccess]:
    roles: list[RoleAccess] = []
    kwargs: dict[str, Any] = {"accessToken": access_token, "accountId": account.id}
    while True:
        response = sso_client.list_account_roles(**kwargs)
        for role in response.get("roleList", []):
            roles.append(
                RoleAccess(
                    account_id=account.id,
                    account_name=account.name,
                    role_name=role.get("roleName", ""),
                )
            )
        next_token = response.get("nextToken")
        if not next_token:
            break
        kwargs["nextToken"] = next_token
    return roles


def list_roles(sso_client: Any, access_token: str, accounts: list[AccountInfo]) -> list[RoleAccess]:
    """계정별 역할 조회 (실패한 계정은 건너뜀)"""
    roles: list[RoleAccess] = []
    for account in accounts:
        try:
            roles.extend(_list_account_roles(sso_client, access_token, account))
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"[{account.id}/{account.name}] 역할 목록 조회 실패: {e}")
            continue
    logger.debug(f"역할 {len(roles)}개 조회 (계정 {len(accounts)}개)")
    return roles
