"""
rift/discovery/client.py - boto3 client 생성 헬퍼

Retry(adaptive 모드) + 타임아웃이 설정된 boto3 client를 생성합니다.
역할 자격증명으로 만든 세션은 역할 워커 하나에서만 사용합니다.

Example:
    session = session_from_role_credentials(creds)
    eks = get_client(session, "eks", region_name="us-east-1")
"""

from __future__ import annotations

from typing import Any, Literal, cast

import boto3
from botocore.config import Config

RetryMode = Literal["legacy", "standard", "adaptive"]

# 기본 retry 설정
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_MODE: RetryMode = "adaptive"
DEFAULT_CONNECT_TIMEOUT = 10  # 초
DEFAULT_READ_TIMEOUT = 30  # 초
DEFAULT_MAX_POOL_CONNECTIONS = 10  # 역할 워커(8) 이상


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: int = DEFAULT_READ_TIMEOUT,
    **kwargs: Any,
) -> Any:
    """Retry가 적용된 boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름 (sso, eks)
        region_name: 리전 (None이면 세션 기본값)
        max_attempts: 최대 시도 횟수
        retry_mode: 재시도 모드
        connect_timeout: 연결 타임아웃 (초)
        read_timeout: 읽기 타임아웃 (초)
        **kwargs: session.client()에 전달할 추가 인자
    """
    config = Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        max_pool_connections=DEFAULT_MAX_POOL_CONNECTIONS,
    )

    if "config" in kwargs:
        config = config.merge(kwargs.pop("config"))

    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=config,
        **kwargs,
    )


def create_sso_client(region: str) -> Any:
    """SSO Portal API client (자격증명 없이 액세스 토큰으로 호출)"""
    return get_client(boto3.Session(), "sso", region_name=region)


def session_from_role_credentials(role_credentials: dict[str, Any]) -> boto3.Session:
    """sso.get_role_credentials 응답의 roleCredentials로 세션 생성"""
    return boto3.Session(
        aws_access_key_id=role_credentials["accessKeyId"],
        aws_secret_access_key=role_credentials["secretAccessKey"],
        aws_session_token=role_credentials.get("sessionToken"),
    )
