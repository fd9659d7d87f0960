"""
tests/rift/parallel/test_parallel_types.py - 결과 타입 및 에러 분류 테스트
"""

import pytest
from botocore.exceptions import ClientError

from rift.exceptions import CredentialError
from rift.parallel import (
    ErrorCategory,
    ParallelExecutionResult,
    TaskResult,
    categorize_error,
    get_error_code,
    to_task_error,
)


def _client_error(code):
    return ClientError({"Error": {"Code": code, "Message": "msg"}}, "Op")


class TestCategorizeError:
    """categorize_error 테스트"""

    @pytest.mark.parametrize(
        "code,category",
        [
            ("ThrottlingException", ErrorCategory.THROTTLING),
            ("AccessDeniedException", ErrorCategory.ACCESS_DENIED),
            ("UnauthorizedException", ErrorCategory.ACCESS_DENIED),
            ("ResourceNotFoundException", ErrorCategory.NOT_FOUND),
            ("ExpiredTokenException", ErrorCategory.EXPIRED_TOKEN),
            ("RequestTimeout", ErrorCategory.TIMEOUT),
            ("SomethingElse", ErrorCategory.UNKNOWN),
        ],
    )
    def test_client_errors(self, code, category):
        assert categorize_error(_client_error(code)) == category

    def test_credential_error(self):
        assert categorize_error(CredentialError("aws eks get-token", "failed")) == ErrorCategory.CREDENTIAL

    def test_timeout_error(self):
        assert categorize_error(TimeoutError()) == ErrorCategory.TIMEOUT

    def test_connection_error(self):
        assert categorize_error(ConnectionRefusedError()) == ErrorCategory.NETWORK

    def test_generic(self):
        assert categorize_error(ValueError("x")) == ErrorCategory.UNKNOWN


class TestErrorCode:
    def test_client_error_code(self):
        assert get_error_code(_client_error("AccessDenied")) == "AccessDenied"

    def test_class_name(self):
        assert get_error_code(ValueError("x")) == "ValueError"

    def test_to_task_error(self):
        error = _client_error("AccessDenied")
        task_error = to_task_error(error, "acme/Admin", "us-east-1")

        assert task_error.identifier == "acme/Admin"
        assert task_error.region == "us-east-1"
        assert task_error.category == ErrorCategory.ACCESS_DENIED
        assert task_error.original_exception is error
        assert str(task_error).startswith("[acme/Admin/us-east-1] AccessDenied")
        assert task_error.to_dict()["category"] == "access_denied"


class TestParallelExecutionResult:
    """ParallelExecutionResult 집계 테스트"""

    def _result(self):
        return ParallelExecutionResult(
            results=[
                TaskResult.ok("a", [1, 2]),
                TaskResult.ok("b", [3]),
                TaskResult.ok("c", None),
                TaskResult.warn(to_task_error(_client_error("AccessDenied"), "d", "us-east-1")),
                TaskResult.warn(to_task_error(_client_error("Throttling"), "e", "us-west-2")),
            ]
        )

    def test_counts(self):
        result = self._result()
        assert result.total_count == 5
        assert result.success_count == 3
        assert result.error_count == 2

    def test_get_data_excludes_none(self):
        assert self._result().get_data() == [[1, 2], [3]]

    def test_get_flat_data(self):
        assert self._result().get_flat_data() == [1, 2, 3]

    def test_error_summary(self):
        summary = self._result().get_error_summary()
        assert summary.startswith("총 2개 작업 실패")
        assert "[access_denied] 1건" in summary
        assert "[throttling] 1건" in summary

    def test_error_summary_empty(self):
        assert ParallelExecutionResult().get_error_summary() == ""
