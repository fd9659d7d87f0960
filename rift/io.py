"""
rift/io.py - 파일 I/O 유틸리티

상태 파일, AWS config, kubeconfig 모두 같은 방식으로 저장합니다:
대상 디렉토리에 임시 파일을 만들고 rename으로 교체합니다.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def ensure_parent_dir(path: str | Path) -> Path:
    """상위 디렉토리 생성 후 경로 객체 반환"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def read_text_if_exists(path: str | Path, encoding: str = "utf-8") -> str | None:
    """파일 읽기 (없으면 None)

    파일이 없는 것 외의 I/O 오류(권한 등)는 그대로 전파됩니다.
    """
    try:
        return Path(path).read_text(encoding=encoding)
    except FileNotFoundError:
        return None


def atomic_write_text(path: str | Path, content: str, encoding: str = "utf-8", mode: int = 0o644) -> None:
    """파일에 원자적으로 저장 (write-to-temp-then-rename)

    Args:
        path: 대상 파일 경로
        content: 저장할 내용
        encoding: 인코딩
        mode: 새 파일 권한 (기존 파일이 있으면 기존 권한 유지)

    Raises:
        OSError: 디렉토리 생성/쓰기/교체 실패
    """
    target = ensure_parent_dir(path)
    try:
        mode = target.stat().st_mode & 0o777
    except FileNotFoundError:
        pass

    fd, tmp_path = tempfile.mkstemp(dir=target.parent, suffix=".tmp", prefix=f".{target.name}.")
    try:
        with open(fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
        os.chmod(tmp_path, mode)
        Path(tmp_path).replace(target)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise
