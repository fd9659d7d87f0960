"""
rift/exceptions.py - 통합 예외 계층 구조

동기화 파이프라인 전체에서 사용되는 예외 클래스들을 정의합니다.

예외 계층 구조:
    RiftError (베이스)
    ├── ConfigError (설정 파일 관련)
    ├── AuthError (인증 관련)
    │   ├── TokenStoreUnreadableError   # SSO 캐시 디렉토리를 읽을 수 없음
    │   ├── SSONotLoggedInError         # 유효한 토큰 없음 - 사용자 조치 필요
    │   └── CredentialError             # 외부 자격증명 명령 실패
    ├── DiscoveryError (계정 목록 조회 실패 등 치명적 탐색 오류)
    ├── StateError (상태 파일)
    │   └── StateNotFoundError
    ├── ReconcileError (설정 파일 저장 실패)
    └── OperationCancelledError (실행 취소)

복구 가능한 오류(역할별 자격증명 실패, 리전별 클러스터 조회 실패 등)는
예외로 전파하지 않고 rift.parallel의 TaskResult로 수집합니다.

Usage:
    from rift.exceptions import SSONotLoggedInError

    try:
        inventory = discover(config)
    except SSONotLoggedInError:
        print("rift auth 를 먼저 실행하세요")
"""

from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class RiftError(Exception):
    """rift 기본 예외 클래스

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(RiftError):
    """설정 관련 예외"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


# =============================================================================
# 인증 관련 예외
# =============================================================================


class AuthError(RiftError):
    """인증 관련 기본 예외"""


class TokenStoreUnreadableError(AuthError):
    """SSO 토큰 캐시 디렉토리를 나열할 수 없을 때 발생"""

    def __init__(self, path: str, cause: Optional[Exception] = None):
        super().__init__(f"SSO 캐시를 읽을 수 없습니다 ({path})", cause)
        self.path = path
        self.details["path"] = path


class SSONotLoggedInError(AuthError):
    """유효한 SSO 토큰이 없을 때 발생

    다른 치명적 오류와 구분되는 사용자 조치 필요 상태입니다.
    호출자는 재인증(rift auth)을 안내해야 합니다.
    """

    def __init__(self, message: str = "AWS SSO 토큰이 없거나 만료되었습니다"):
        super().__init__(message)


class CredentialError(AuthError):
    """외부 자격증명 명령(aws eks get-token 등) 실패"""

    def __init__(
        self,
        command: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(f"{command}: {message}", cause)
        self.command = command
        self.details["command"] = command


# =============================================================================
# 탐색 / 상태 / 동기화 관련 예외
# =============================================================================


class DiscoveryError(RiftError):
    """계정 목록 조회 등 치명적인 탐색 오류"""

    def __init__(
        self,
        operation: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(f"탐색 실패 [{operation}]", cause)
        self.operation = operation
        self.details["operation"] = operation


class StateError(RiftError):
    """상태 파일 관련 예외"""

    def __init__(
        self,
        path: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(f"상태 파일 오류 [{path}]: {message}", cause)
        self.path = path
        self.details["path"] = path


class StateNotFoundError(StateError):
    """상태 파일이 아직 없을 때 발생 (rift sync 필요)"""

    def __init__(self, path: str):
        super().__init__(path, "파일이 없습니다. rift sync 를 먼저 실행하세요")


class ReconcileError(RiftError):
    """설정 파일 로드/저장 실패"""

    def __init__(
        self,
        store: str,
        path: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(f"{store} 동기화 실패 [{path}]: {message}", cause)
        self.store = store
        self.path = path
        self.details.update({"store": store, "path": path})


class OperationCancelledError(RiftError):
    """상위 취소 신호로 실행이 중단된 경우"""

    def __init__(self, stage: str = "unknown"):
        super().__init__(f"작업이 취소되었습니다 [{stage}]")
        self.stage = stage
        self.details["stage"] = stage


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================

ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedAccess",
    "UnauthorizedException",
    "ForbiddenException",
}

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
}

NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "NotFoundException",
}


def _client_error_code(error: Exception) -> str:
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code", "")
    return ""


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인"""
    return _client_error_code(error) in ACCESS_DENIED_CODES


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return _client_error_code(error) in THROTTLING_CODES


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    return _client_error_code(error) in NOT_FOUND_CODES


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    if isinstance(error, SSONotLoggedInError):
        return f"{error}. 다음을 실행하세요: rift auth"

    if isinstance(error, RiftError):
        return str(error)

    if hasattr(error, "response"):
        error_info = error.response.get("Error", {})
        code = error_info.get("Code", "UnknownError")
        message = error_info.get("Message", str(error))

        friendly_messages = {
            "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
            "UnauthorizedException": "SSO 세션이 유효하지 않습니다. rift auth 로 다시 로그인하세요.",
            "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
            "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
        }

        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)
