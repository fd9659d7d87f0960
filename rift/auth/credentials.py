"""
rift/auth/credentials.py - 클러스터 API 베어러 토큰 공급자

네임스페이스 조회에 필요한 EKS 토큰을 얻는 방법을 추상화합니다.
기본 구현은 AWS CLI(`aws eks get-token`)를 실행하고 JSON 출력의
status.token 값을 사용합니다. 테스트에서는 가짜 구현을 주입합니다.
"""

from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from rift.exceptions import CredentialError

if TYPE_CHECKING:
    from rift.state import ClusterRecord

logger = logging.getLogger(__name__)

GET_TOKEN_TIMEOUT_SECONDS = 60


class CredentialProvider(ABC):
    """클러스터 베어러 토큰 공급 인터페이스"""

    @abstractmethod
    def get_token(self, cluster: ClusterRecord) -> str:
        """클러스터 API 호출용 베어러 토큰을 반환합니다.

        Raises:
            CredentialError: 토큰 발급 실패
        """
        pass


def get_token_args(cluster: ClusterRecord) -> list[str]:
    """`aws` 뒤에 붙는 eks get-token 인자 (kubeconfig exec 항목과 동일)"""
    return [
        "eks",
        "get-token",
        "--profile",
        cluster.aws_profile,
        "--cluster-name",
        cluster.cluster_name,
        "--region",
        cluster.region,
    ]


class AwsCliCredentialProvider(CredentialProvider):
    """`aws eks get-token --output json` 실행 결과를 사용하는 구현"""

    def __init__(self, executable: str = "aws", timeout: float = GET_TOKEN_TIMEOUT_SECONDS):
        self.executable = executable
        self.timeout = timeout

    def get_token(self, cluster: ClusterRecord) -> str:
        command = [self.executable, *get_token_args(cluster), "--output", "json"]
        label = f"{self.executable} eks get-token"
        try:
            completed = subprocess.run(  # noqa: S603
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise CredentialError(label, "실행 실패", e) from e

        output = completed.stdout or ""
        if completed.returncode != 0:
            message = output.strip() or f"종료 코드 {completed.returncode}"
            raise CredentialError(label, message)

        try:
            parsed = json.loads(output)
        except json.JSONDecodeError as e:
            raise CredentialError(label, "JSON 출력 파싱 실패", e) from e

        status = parsed.get("status") if isinstance(parsed, dict) else None
        token = str((status or {}).get("token") or "").strip()
        if not token:
            raise CredentialError(label, "빈 토큰이 반환되었습니다")
        logger.debug(f"EKS 토큰 발급: {cluster.kube_context}")
        return token
