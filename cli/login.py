"""
cli/login.py - `aws sso login` 실행

기본은 `aws sso login --sso-session rift`를 실행합니다.
sso-session 옵션을 모르는 구버전 AWS CLI는 출력에 "unknown options"와
"--sso-session"을 함께 남기므로, 이 경우 [profile rift-auth]를 만들고
`--profile rift-auth`로 다시 시도합니다.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rift.exceptions import AuthError, CredentialError
from rift.reconcile.awsconfig import (
    LEGACY_AUTH_PROFILE,
    SESSION_NAME,
    ensure_legacy_auth_profile,
    ensure_session,
)

if TYPE_CHECKING:
    from rift.config import Config

logger = logging.getLogger(__name__)

# (args) -> (returncode, combined output)
Runner = Callable[[list[str]], tuple[int, str]]


@dataclass
class LoginResult:
    """로그인 결과

    Attributes:
        legacy: 구버전 CLI용 프로파일로 로그인했는지 여부
        output: AWS CLI 출력 (마지막 시도)
    """

    legacy: bool
    output: str


def run_aws(args: list[str]) -> tuple[int, str]:
    """aws CLI 실행 (stdin은 터미널 그대로 사용)"""
    try:
        completed = subprocess.run(  # noqa: S603
            ["aws", *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise CredentialError("aws", "PATH에서 aws CLI를 찾을 수 없습니다", e) from e
    return completed.returncode, completed.stdout or ""


def supports_only_profile(output: str) -> bool:
    """구버전 CLI가 --sso-session 옵션을 거부했는지 확인"""
    text = output.lower()
    return "unknown options" in text and "--sso-session" in text


def sso_login(
    aws_config_path: str | Path,
    config: Config,
    no_browser: bool = False,
    runner: Runner = run_aws,
) -> LoginResult:
    """SSO 로그인 (필요 시 구버전 프로파일 방식으로 재시도)

    Raises:
        AuthError: 로그인 실패
        ReconcileError: AWS config 저장 실패
    """
    ensure_session(aws_config_path, config)

    args = ["sso", "login", "--sso-session", SESSION_NAME]
    if no_browser:
        args.append("--no-browser")

    code, output = runner(args)
    if code == 0:
        return LoginResult(legacy=False, output=output)

    if not supports_only_profile(output):
        raise AuthError(f"aws sso login 실패 (종료 코드 {code})", details={"output": output.strip()})

    logger.info("구버전 AWS CLI 감지: --profile 방식으로 재시도")
    ensure_legacy_auth_profile(aws_config_path, config)

    fallback_args = ["sso", "login", "--profile", LEGACY_AUTH_PROFILE]
    if no_browser:
        fallback_args.append("--no-browser")

    code, output = runner(fallback_args)
    if code != 0:
        raise AuthError(f"aws sso login 실패 (종료 코드 {code})", details={"output": output.strip()})
    return LoginResult(legacy=True, output=output)
