# cli/ui - CLI 출력/선택 컴포넌트 (questionary, rich)
"""
CLI 전용 UI 컴포넌트 (콘솔 출력, context 검색)
"""

# Direct imports (rich/rapidfuzz are commonly used, no lazy import needed)
from .console import (
    SYMBOL_ERROR,
    SYMBOL_INFO,
    SYMBOL_SUCCESS,
    SYMBOL_WARNING,
    console,
    err_console,
    get_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    setup_logging,
)
from .search import ContextMatch, match_contexts, pick_unambiguous

__all__: list[str] = [
    "console",
    "err_console",
    "get_console",
    "setup_logging",
    "print_success",
    "print_error",
    "print_warning",
    "print_info",
    "print_table",
    "SYMBOL_SUCCESS",
    "SYMBOL_ERROR",
    "SYMBOL_WARNING",
    "SYMBOL_INFO",
    "ContextMatch",
    "match_contexts",
    "pick_unambiguous",
]
