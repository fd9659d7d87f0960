"""
rift/config.py - rift 설정 파일 (YAML)

설정 파일 위치:
    ~/.config/rift/config.yaml

설정 예시:
    sso_start_url: https://acme.awsapps.com/start
    sso_region: us-east-1
    regions: [us-east-1, us-west-2]
    namespace_defaults:
      prod: payments
      stg: payments-stg
    discover_namespaces: true

경로 결정 우선순위:
    AWS config: AWS_CONFIG_FILE 환경변수 → ~/.aws/config
    kubeconfig: KUBECONFIG 환경변수의 첫 번째 항목 → ~/.kube/config
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from rift.exceptions import ConfigError
from rift.io import atomic_write_text

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".config/rift"
CONFIG_FILE_NAME = "config.yaml"
STATE_FILE_NAME = "state.json"

DEFAULT_REGIONS = ("us-east-1", "us-west-2")

# 환경변수 키
ENV_AWS_CONFIG_FILE = "AWS_CONFIG_FILE"
ENV_KUBECONFIG = "KUBECONFIG"


@dataclass
class Config:
    """rift 사용자 설정

    Attributes:
        sso_start_url: IAM Identity Center 시작 URL
        sso_region: SSO 리전
        regions: 클러스터를 탐색할 리전 목록
        namespace_defaults: 환경(prod/staging/dev/...)별 기본 네임스페이스
        discover_namespaces: 클러스터 네임스페이스 조회 여부
    """

    sso_start_url: str = ""
    sso_region: str = ""
    regions: list[str] = field(default_factory=lambda: list(DEFAULT_REGIONS))
    namespace_defaults: dict[str, str] = field(default_factory=dict)
    discover_namespaces: bool = True

    @classmethod
    def default(cls) -> Config:
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """YAML 딕셔너리에서 생성 (알 수 없는 키는 무시)

        Raises:
            ConfigError: regions가 목록이 아니거나 namespace_defaults가 매핑이 아님
        """
        config = cls.default()
        if "sso_start_url" in data:
            config.sso_start_url = str(data["sso_start_url"] or "")
        if "sso_region" in data:
            config.sso_region = str(data["sso_region"] or "")
        if "regions" in data:
            regions = data["regions"] or []
            if not isinstance(regions, list):
                raise ConfigError("regions", "리전 목록이어야 합니다 (예: [us-east-1, us-west-2])")
            config.regions = [str(r) for r in regions]
        if "namespace_defaults" in data:
            defaults = data["namespace_defaults"] or {}
            if not isinstance(defaults, dict):
                raise ConfigError("namespace_defaults", "환경: 네임스페이스 형식의 매핑이어야 합니다")
            config.namespace_defaults = {str(k): str(v or "") for k, v in defaults.items()}
        if "discover_namespaces" in data:
            config.discover_namespaces = bool(data["discover_namespaces"])
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "sso_start_url": self.sso_start_url,
            "sso_region": self.sso_region,
            "regions": list(self.regions),
            "namespace_defaults": dict(self.namespace_defaults),
            "discover_namespaces": self.discover_namespaces,
        }

    def normalize(self) -> None:
        """리전/네임스페이스 기본값 정규화 (제자리 수정)"""
        regions: list[str] = []
        for region in self.regions or DEFAULT_REGIONS:
            region = region.strip().lower()
            if region and region not in regions:
                regions.append(region)
        self.regions = sorted(regions) or list(DEFAULT_REGIONS)

        normalized: dict[str, str] = {}
        for key, value in (self.namespace_defaults or {}).items():
            key = key.strip().lower()
            if not key:
                continue
            normalized[key] = value.strip()
        self.namespace_defaults = normalized

        self.sso_start_url = self.sso_start_url.strip()
        self.sso_region = self.sso_region.strip().lower()

    def validate(self) -> None:
        """필수 항목 검증

        Raises:
            ConfigError: 필수 항목 누락
        """
        if not self.sso_start_url:
            raise ConfigError("sso_start_url", "값이 없습니다")
        if not self.sso_region:
            raise ConfigError("sso_region", "값이 없습니다")
        if not self.regions:
            raise ConfigError("regions", "값이 없습니다")

    def namespace_for_env(self, env: str) -> str:
        """환경별 기본 네임스페이스 (staging ↔ stg 상호 대체)"""
        key = env.strip().lower()
        if not key:
            return ""
        value = self.namespace_defaults.get(key, "").strip()
        if value:
            return value
        if key == "staging":
            return self.namespace_defaults.get("stg", "").strip()
        if key == "stg":
            return self.namespace_defaults.get("staging", "").strip()
        return ""


# =============================================================================
# 경로
# =============================================================================


def resolve_path(path: str | Path) -> Path:
    """~ 확장 후 절대 경로로 변환

    Raises:
        ConfigError: 빈 경로
    """
    if not str(path).strip():
        raise ConfigError("path", "경로가 비어 있습니다")
    return Path(path).expanduser().absolute()


def _config_dir() -> Path:
    return Path.home() / CONFIG_DIR_NAME


def default_config_path() -> Path:
    return _config_dir() / CONFIG_FILE_NAME


def default_state_path() -> Path:
    return _config_dir() / STATE_FILE_NAME


def default_aws_config_path() -> Path:
    """AWS CLI config 경로 (AWS_CONFIG_FILE 우선)"""
    override = os.environ.get(ENV_AWS_CONFIG_FILE, "").strip()
    if override:
        return resolve_path(override)
    return Path.home() / ".aws" / "config"


def default_kube_config_path() -> Path:
    """kubeconfig 경로 (KUBECONFIG 첫 번째 항목 우선)"""
    env_value = os.environ.get(ENV_KUBECONFIG, "")
    for entry in env_value.split(os.pathsep):
        if entry.strip():
            return resolve_path(entry.strip())
    return Path.home() / ".kube" / "config"


# =============================================================================
# 로드 / 저장
# =============================================================================


def load_config(path: str | Path) -> Config:
    """설정 파일 로드 → 정규화 → 검증

    Raises:
        ConfigError: 파일 없음/파싱 실패/필수 항목 누락
    """
    resolved = resolve_path(path)
    try:
        with resolved.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigError("path", f"설정 파일이 없습니다 ({resolved}). rift init 을 먼저 실행하세요", e) from e
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError("path", f"설정 파일을 읽을 수 없습니다 ({resolved})", e) from e

    if not isinstance(raw, dict):
        raise ConfigError("path", f"설정 파일 형식이 올바르지 않습니다 ({resolved})")

    config = Config.from_dict(raw)
    config.normalize()
    config.validate()
    logger.debug(f"설정 로드: {resolved} (regions={config.regions})")
    return config


def save_config(path: str | Path, config: Config) -> Path:
    """설정 파일 저장 (정규화/검증 후 원자적 쓰기)

    Returns:
        저장된 파일 경로
    """
    resolved = resolve_path(path)
    config.normalize()
    config.validate()
    content = yaml.safe_dump(config.to_dict(), sort_keys=False, allow_unicode=True)
    try:
        atomic_write_text(resolved, content)
    except OSError as e:
        raise ConfigError("path", f"설정 파일을 저장할 수 없습니다 ({resolved})", e) from e
    logger.debug(f"설정 저장: {resolved}")
    return resolved
