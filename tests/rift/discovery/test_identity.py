"""
tests/rift/discovery/test_identity.py - SSO 계정/역할 목록 조회 테스트
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from rift.discovery.identity import list_accounts, list_roles
from rift.discovery.types import AccountInfo
from rift.exceptions import DiscoveryError


def _client_error(code="AccessDeniedException"):
    return ClientError({"Error": {"Code": code, "Message": "denied"}}, "ListAccountRoles")


class TestListAccounts:
    """list_accounts 테스트"""

    def test_single_page(self, mock_sso_client):
        accounts = list_accounts(mock_sso_client, "token")

        assert accounts == [
            AccountInfo(id="111111111111", name="acme-production"),
            AccountInfo(id="222222222222", name="acme-staging"),
        ]
        mock_sso_client.list_accounts.assert_called_once_with(accessToken="token")

    def test_pagination(self):
        client = MagicMock()
        client.list_accounts.side_effect = [
            {"accountList": [{"accountId": "1", "accountName": "a"}], "nextToken": "page2"},
            {"accountList": [{"accountId": "2", "accountName": "b"}]},
        ]

        accounts = list_accounts(client, "token")

        assert [a.id for a in accounts] == ["1", "2"]
        second_call = client.list_accounts.call_args_list[1]
        assert second_call.kwargs == {"accessToken": "token", "nextToken": "page2"}

    def test_failure_is_fatal(self):
        client = MagicMock()
        client.list_accounts.side_effect = _client_error("UnauthorizedException")

        with pytest.raises(DiscoveryError) as exc_info:
            list_accounts(client, "token")

        assert exc_info.value.operation == "list_accounts"


class TestListRoles:
    """list_roles 테스트"""

    def test_roles_per_account(self, mock_sso_client):
        accounts = list_accounts(mock_sso_client, "token")

        roles = list_roles(mock_sso_client, "token", accounts)

        assert {(r.account_id, r.account_name, r.role_name) for r in roles} == {
            ("111111111111", "acme-production", "Admin"),
            ("222222222222", "acme-staging", "Admin"),
        }

    def test_pagination(self):
        client = MagicMock()
        client.list_account_roles.side_effect = [
            {"roleList": [{"roleName": "Admin"}], "nextToken": "n"},
            {"roleList": [{"roleName": "ReadOnly"}]},
        ]

        roles = list_roles(client, "token", [AccountInfo("1", "a")])

        assert [r.role_name for r in roles] == ["Admin", "ReadOnly"]
        assert client.list_account_roles.call_args_list[1].kwargs["nextToken"] == "n"

    def test_failing_account_is_skipped(self, caplog):
        """계정 하나의 실패는 경고 후 다른 계정 계속"""
        client = MagicMock()

        def list_account_roles(**kwargs):
            if kwargs["accountId"] == "1":
                raise _client_error()
            return {"roleList": [{"roleName": "Admin"}]}

        client.list_account_roles.side_effect = list_account_roles

        roles = list_roles(client, "token", [AccountInfo("1", "broken"), AccountInfo("2", "ok")])

        assert [(r.account_id, r.role_name) for r in roles] == [("2", "Admin")]
        assert "[1/broken]" in caplog.text

    def test_no_accounts(self):
        assert list_roles(MagicMock(), "token", []) == []
