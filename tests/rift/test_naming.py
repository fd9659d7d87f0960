"""
tests/rift/test_naming.py - 이름 생성 규칙 테스트
"""

import pytest

from rift.naming import NameRegistry, account_slug, context_base, infer_env, profile_base, slug


class TestSlug:
    """slug 함수 테스트"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Team/Platform@EKS", "team-platform-eks"),
            ("  Admin  ", "admin"),
            ("AWSAdministratorAccess", "awsadministratoraccess"),
            ("a__b--c", "a-b-c"),
            ("-edge-", "edge"),
        ],
    )
    def test_slug(self, text, expected):
        assert slug(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "@@@", "---"])
    def test_empty_becomes_unknown(self, text):
        """영숫자가 없으면 unknown"""
        assert slug(text) == "unknown"


class TestInferEnv:
    """환경 추론 테스트"""

    @pytest.mark.parametrize(
        "parts,expected",
        [
            (("acme-production", "Admin"), "prod"),
            (("acme-staging", "Dev"), "staging"),
            (("acme-stage", "ReadOnly"), "staging"),
            (("acme-development", "Admin"), "dev"),
            (("acme", "DevOps"), "dev"),
            (("acme-integration", "Admin"), "int"),
            (("sandbox", "ops"), "other"),
        ],
    )
    def test_rules(self, parts, expected):
        assert infer_env(*parts) == expected

    def test_case_insensitive(self):
        assert infer_env("ACME-PROD", "ADMIN") == "prod"

    def test_priority_order(self):
        """prod가 staging보다 우선"""
        assert infer_env("prod-and-staging", "Admin") == "prod"

    def test_substring_match_without_word_boundary(self):
        """단어 경계를 보지 않음 (print → int)"""
        assert infer_env("print-service") == "int"

    def test_cluster_name_participates(self):
        assert infer_env("acme", "Admin", "payments-dev") == "dev"


class TestNames:
    """프로파일/컨텍스트 기본 이름 테스트"""

    def test_profile_base(self):
        assert profile_base("prod", "Acme Production", "111111111111", "Admin") == "rift-prod-acme-production-admin"

    def test_context_base(self):
        assert context_base("dev", "acme-dev", "222222222222", "Payments API") == "rift-dev-acme-dev-payments-api"

    def test_account_slug_falls_back_to_id(self):
        """계정 이름이 unknown이 되면 계정 ID 사용"""
        assert account_slug("", "111111111111") == "111111111111"
        assert account_slug("!!!", "111111111111") == "111111111111"
        assert profile_base("other", "", "111111111111", "Admin") == "rift-other-111111111111-admin"


class TestNameRegistry:
    """NameRegistry 테스트"""

    def test_first_name_unchanged(self):
        registry = NameRegistry()
        assert registry.next("rift-prod-acme-admin") == "rift-prod-acme-admin"

    def test_collisions_get_suffix(self):
        registry = NameRegistry()
        names = [registry.next("rift-prod-acme-admin") for _ in range(3)]
        assert names == ["rift-prod-acme-admin", "rift-prod-acme-admin-2", "rift-prod-acme-admin-3"]

    def test_base_is_slugged(self):
        registry = NameRegistry()
        assert registry.next("Rift Prod Acme") == "rift-prod-acme"
        assert registry.next("rift-prod-acme") == "rift-prod-acme-2"

    def test_registries_are_independent(self):
        """프로파일/컨텍스트 레지스트리는 서로 영향 없음"""
        profiles = NameRegistry()
        contexts = NameRegistry()
        assert profiles.next("rift-prod-acme-x") == "rift-prod-acme-x"
        assert contexts.next("rift-prod-acme-x") == "rift-prod-acme-x"

    def test_suffixed_name_already_issued(self):
        """다른 기본 이름이 이미 받은 접미사 이름은 건너뜀"""
        registry = NameRegistry()
        assert registry.next("rift-a-2") == "rift-a-2"
        assert registry.next("rift-a") == "rift-a"
        assert registry.next("rift-a") == "rift-a-3"

    def test_all_names_unique(self):
        registry = NameRegistry()
        bases = ["rift-x", "rift-x", "rift-x-2", "rift-x", "rift-y"]
        names = [registry.next(base) for base in bases]
        assert len(names) == len(set(names))
