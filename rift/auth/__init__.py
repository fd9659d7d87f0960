"""
rift/auth - SSO 토큰 조회 및 클러스터 자격증명 모듈

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    # Token cache
    "CachedToken",
    "resolve_token",
    "validate_sso_login",
    "parse_expiry",
    # Credential providers
    "CredentialProvider",
    "AwsCliCredentialProvider",
]

_IMPORT_MAPPING = {
    "CachedToken": (".token_cache", "CachedToken"),
    "resolve_token": (".token_cache", "resolve_token"),
    "validate_sso_login": (".token_cache", "validate_sso_login"),
    "parse_expiry": (".token_cache", "parse_expiry"),
    "CredentialProvider": (".credentials", "CredentialProvider"),
    "AwsCliCredentialProvider": (".credentials", "AwsCliCredentialProvider"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
