"""
rift/parallel/errors.py - 에러 분류 유틸리티

워커 내부에서 잡은 예외를 TaskError로 변환할 때 사용합니다.
"""

import logging

from rift.exceptions import CredentialError, is_access_denied, is_not_found, is_throttling

from .types import ErrorCategory, TaskError

logger = logging.getLogger(__name__)


def categorize_error(error: Exception) -> ErrorCategory:
    """예외 객체를 분석하여 ErrorCategory로 분류

    Args:
        error: 분류할 예외

    Returns:
        에러 카테고리
    """
    if is_throttling(error):
        return ErrorCategory.THROTTLING
    if is_access_denied(error):
        return ErrorCategory.ACCESS_DENIED
    if is_not_found(error):
        return ErrorCategory.NOT_FOUND
    if isinstance(error, CredentialError):
        return ErrorCategory.CREDENTIAL

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_code = response.get("Error", {}).get("Code", "")

        if "Timeout" in error_code:
            return ErrorCategory.TIMEOUT

        if error_code in ("ExpiredToken", "ExpiredTokenException"):
            return ErrorCategory.EXPIRED_TOKEN

    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN


def get_error_code(error: Exception) -> str:
    """예외 객체에서 에러 코드 문자열 추출

    ClientError의 경우 response에서 Code를 추출하고,
    그 외에는 예외 클래스명을 반환합니다.
    """
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        code: str = response.get("Error", {}).get("Code", "Unknown")
        return code
    return error.__class__.__name__


def to_task_error(error: Exception, identifier: str, region: str = "") -> TaskError:
    """예외를 TaskError로 변환"""
    return TaskError(
        identifier=identifier,
        region=region,
        category=categorize_error(error),
        error_code=get_error_code(error),
        message=str(error),
        original_exception=error,
    )
