"""
rift - AWS SSO 역할/EKS 클러스터 탐색 및 AWS config / kubeconfig 동기화

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "Config",
    "load_config",
    "save_config",
    "State",
    "load_state",
    "save_state",
    "discover",
    "build_state",
    "run_sync",
    "SyncReport",
]

_IMPORT_MAPPING = {
    "Config": (".config", "Config"),
    "load_config": (".config", "load_config"),
    "save_config": (".config", "save_config"),
    "State": (".state", "State"),
    "load_state": (".state", "load_state"),
    "save_state": (".state", "save_state"),
    "discover": (".discovery", "discover"),
    "build_state": (".inventory", "build_state"),
    "run_sync": (".sync", "run_sync"),
    "SyncReport": (".sync", "SyncReport"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
