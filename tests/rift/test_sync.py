"""
tests/rift/test_sync.py - sync 파이프라인 테스트

탐색 결과(Inventory)를 직접 주입하므로 AWS 호출은 없습니다.
"""

import configparser
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import yaml

from rift.auth.credentials import CredentialProvider
from rift.discovery.types import ClusterAccess, Inventory, RoleAccess
from rift.exceptions import SSONotLoggedInError
from rift.state import load_state, save_state
from rift.sync import run_sync


class StaticProvider(CredentialProvider):
    def get_token(self, cluster):
        return "token"


@pytest.fixture
def inventory():
    return Inventory(
        generated_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        roles=[
            RoleAccess("111111111111", "acme-production", "Admin"),
            RoleAccess("222222222222", "acme-staging", "Admin"),
        ],
        clusters=[
            ClusterAccess(
                account_id="111111111111",
                account_name="acme-production",
                role_name="Admin",
                region="us-east-1",
                cluster_name="payments",
                cluster_endpoint="https://payments.eks.amazonaws.com",
                cluster_certificate_base64="Q0E=",
            )
        ],
    )


@pytest.fixture
def paths(tmp_path):
    return {
        "state_path": tmp_path / "state.json",
        "aws_config_path": tmp_path / "aws" / "config",
        "kube_config_path": tmp_path / "kube" / "config",
    }


class TestRunSync:
    """run_sync 테스트"""

    def test_full_sync(self, config, inventory, paths):
        config.discover_namespaces = False

        report = run_sync(config, inventory=inventory, **paths)

        assert (report.aws.added, report.aws.updated) == (2, 1)
        assert report.kube.added == 1
        assert report.namespaces.enabled is False

        state = load_state(paths["state_path"])
        assert [c.kube_context for c in state.clusters] == ["rift-prod-acme-production-payments"]

        parser = configparser.ConfigParser(interpolation=None)
        parser.read(paths["aws_config_path"], encoding="utf-8")
        assert parser.has_section("profile rift-staging-acme-staging-admin")

        kube = yaml.safe_load(paths["kube_config_path"].read_text(encoding="utf-8"))
        assert kube["current-context"] == "rift-prod-acme-production-payments"

    def test_second_sync_has_no_changes(self, config, inventory, paths):
        config.discover_namespaces = False
        run_sync(config, inventory=inventory, **paths)

        report = run_sync(config, inventory=inventory, **paths)

        assert report.aws.changed is False
        assert report.kube.changed is False

    def test_dry_run_writes_nothing(self, config, inventory, paths):
        config.discover_namespaces = False

        report = run_sync(config, inventory=inventory, dry_run=True, **paths)

        assert report.dry_run is True
        assert report.aws.added == 2
        for path in paths.values():
            assert not path.exists()

    def test_namespace_enrichment(self, config, inventory, paths):
        with patch("rift.sync.enrich") as mock_enrich:
            mock_enrich.return_value.enabled = True
            report = run_sync(config, inventory=inventory, credential_provider=StaticProvider(), **paths)

        mock_enrich.assert_called_once()
        assert mock_enrich.call_args.kwargs["credential_provider"].__class__ is StaticProvider
        assert report.namespaces.enabled is True
        assert mock_enrich.call_args.kwargs["previous"].clusters == []

    def test_enrichment_compares_with_saved_state(self, config, inventory, paths):
        config.discover_namespaces = False
        run_sync(config, inventory=inventory, **paths)
        config.discover_namespaces = True

        with patch("rift.sync.enrich") as mock_enrich:
            run_sync(config, inventory=inventory, credential_provider=StaticProvider(), **paths)

        previous = mock_enrich.call_args.kwargs["previous"]
        assert previous == load_state(paths["state_path"])

    def test_previous_namespaces_carried_over(self, config, inventory, paths):
        config.discover_namespaces = False
        run_sync(config, inventory=inventory, **paths)
        state = load_state(paths["state_path"])
        state.clusters[0].namespaces = ["kube-system", "payments"]
        save_state(paths["state_path"], state)

        report = run_sync(config, inventory=inventory, **paths)

        assert report.state.clusters[0].namespaces == ["kube-system", "payments"]

    def test_corrupt_previous_state_ignored(self, config, inventory, paths):
        config.discover_namespaces = False
        paths["state_path"].write_text("{broken", encoding="utf-8")

        report = run_sync(config, inventory=inventory, **paths)

        assert len(report.state.clusters) == 1

    def test_discovery_errors_propagate(self, config, paths):
        with patch("rift.sync.discover", side_effect=SSONotLoggedInError()):
            with pytest.raises(SSONotLoggedInError):
                run_sync(config, **paths)

        assert not paths["aws_config_path"].exists()
