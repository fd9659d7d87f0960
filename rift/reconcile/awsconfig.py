"""
rift/reconcile/awsconfig.py - ~/.aws/config 동기화

rift가 관리하는 섹션:
    [sso-session rift]          # 공유 SSO 세션
    [profile rift-*]            # 역할별 프로파일
    [profile rift-auth]         # 구버전 AWS CLI 로그인용 (sync에서는 유지)

파일은 섹션 단위 블록으로 나눠 다룹니다. 관리 대상이 아닌 섹션과
첫 섹션 앞의 내용(주석 등)은 파싱하지 않고 원문 그대로 다시 씁니다.
관리 섹션만 configparser로 읽어 값을 비교하고, 바뀐 경우에만 다시 렌더링합니다.

파일 예시:
    [sso-session rift]
    sso_start_url = https://acme.awsapps.com/start
    sso_region = us-east-1
    sso_registration_scopes = sso:account:access

    [profile rift-prod-acme-admin]
    sso_session = rift
    sso_account_id = 111111111111
    sso_role_name = Admin
    region = us-east-1
    output = json
"""

from __future__ import annotations

import configparser
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rift.exceptions import ReconcileError
from rift.io import atomic_write_text, read_text_if_exists

from .types import SyncResult

if TYPE_CHECKING:
    from rift.config import Config
    from rift.state import RoleRecord, State

logger = logging.getLogger(__name__)

STORE_NAME = "AWS config"

SESSION_NAME = "rift"
SESSION_SECTION = f"sso-session {SESSION_NAME}"
PROFILE_PREFIX = "profile rift-"
LEGACY_AUTH_PROFILE = "rift-auth"
LEGACY_AUTH_SECTION = f"profile {LEGACY_AUTH_PROFILE}"
REGISTRATION_SCOPES = "sso:account:access"

# configparser와 같이 "]" 뒤의 내용(인라인 주석 등)은 헤더 판별에 영향 없음
_SECTION_HEADER = re.compile(r"^\s*\[(?P<header>[^\]]+)\]")
_COMMENT_PREFIXES = ("#", ";")


def is_owned_section(name: str) -> bool:
    return name == SESSION_SECTION or name.startswith(PROFILE_PREFIX)


def _split_tail(text: str) -> tuple[str, str]:
    """블록 끝의 주석 묶음을 분리 (다음 섹션에 붙은 주석으로 간주)

    Returns:
        (본문, 마지막 주석 줄부터 끝까지)
    """
    lines = text.splitlines(keepends=True)
    start = len(lines)
    tail_start = len(lines)
    while start > 1:
        stripped = lines[start - 1].strip()
        if stripped and not stripped.startswith(_COMMENT_PREFIXES):
            break
        start -= 1
        if stripped:
            tail_start = start
    return "".join(lines[:tail_start]), "".join(lines[tail_start:])


# =============================================================================
# 섹션 블록 문서
# =============================================================================


@dataclass
class _Block:
    """섹션 헤더부터 다음 헤더 직전까지의 원문"""

    name: str
    text: str
    values: dict[str, str] | None = None
    dirty: bool = False

    def rendered_text(self) -> str:
        """관리 섹션 재작성. 끝의 빈 줄과 주석 묶음은 유지"""
        body, tail = _split_tail(self.text)
        stripped = body.rstrip("\n")
        trailing = "\n" if len(body) - len(stripped) > 1 else ""
        return _render(self.name, self.values or {}) + trailing + tail


def _parse_values(block: _Block) -> dict[str, str]:
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read_string(block.text)
    except configparser.Error as e:
        logger.warning(f"관리 섹션 파싱 실패, 다시 작성합니다 [{block.name}]: {e}")
        return {}
    if not parser.has_section(block.name):
        return {}
    return dict(parser.items(block.name))


def _render(name: str, values: dict[str, str]) -> str:
    lines = [f"[{name}]"]
    lines.extend(f"{key} = {value}" for key, value in values.items())
    return "\n".join(lines) + "\n"


@dataclass
class AwsConfigDocument:
    """INI 파일을 섹션 블록 목록으로 보관하는 편집기"""

    preamble: str = ""
    blocks: list[_Block] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> AwsConfigDocument:
        doc = cls()
        current: _Block | None = None
        preamble: list[str] = []
        seen: set[str] = set()
        duplicates: list[_Block] = []

        for line in text.splitlines(keepends=True):
            match = _SECTION_HEADER.match(line)
            if match:
                name = match.group("header").strip()
                current = _Block(name=name, text=line)
                # 같은 이름의 관리 섹션이 또 나오면 첫 번째만 유지
                if is_owned_section(name) and name in seen:
                    duplicates.append(current)
                seen.add(name)
                doc.blocks.append(current)
                continue
            if current is None:
                preamble.append(line)
            else:
                current.text += line

        for block in duplicates:
            logger.debug(f"중복 관리 섹션 제거: {block.name}")
            doc._drop(block)

        doc.preamble = "".join(preamble)
        return doc

    def section_names(self) -> list[str]:
        return [block.name for block in self.blocks if block.name]

    def _find(self, name: str) -> _Block | None:
        for block in self.blocks:
            if block.name and block.name == name:
                return block
        return None

    def _drop(self, block: _Block) -> None:
        """블록 제거. 끝의 주석 묶음은 이름 없는 블록으로 남김"""
        index = next(i for i, candidate in enumerate(self.blocks) if candidate is block)
        _, tail = _split_tail(block.text)
        if tail:
            self.blocks[index] = _Block(name="", text=tail)
        else:
            del self.blocks[index]

    def has_section(self, name: str) -> bool:
        return self._find(name) is not None

    def get(self, name: str) -> dict[str, str] | None:
        """관리 섹션 값 조회 (foreign 섹션은 읽지 않음)"""
        if not is_owned_section(name):
            raise ValueError(f"관리 대상이 아닌 섹션입니다: {name}")
        block = self._find(name)
        if block is None:
            return None
        if block.values is None:
            block.values = _parse_values(block)
        return dict(block.values)

    def set_values(self, name: str, values: dict[str, str]) -> bool:
        """섹션 값 설정 (없으면 생성). 변경 여부 반환"""
        current = self.get(name)
        if current is None:
            self.blocks.append(_Block(name=name, text="", values=dict(values), dirty=True))
            return True

        changed = any(current.get(key) != value for key, value in values.items())
        if changed:
            block = self._find(name)
            assert block is not None
            current.update(values)
            block.values = current
            block.dirty = True
        return changed

    def delete(self, name: str) -> bool:
        block = self._find(name)
        if block is None:
            return False
        self._drop(block)
        return True

    def render(self) -> str:
        parts = [self.preamble]
        for block in self.blocks:
            is_new = not block.text
            if not block.dirty:
                text = block.text
            else:
                text = (_render(block.name, block.values or {}) + "\n") if is_new else block.rendered_text()
                block.text = text
                block.dirty = False

            previous = "".join(parts)
            if previous and not previous.endswith("\n"):
                parts.append("\n")
            # 새 섹션은 앞 섹션과 빈 줄로 구분
            if is_new and previous.strip() and not previous.endswith("\n\n"):
                parts.append("\n")
            parts.append(text)
        return "".join(parts)


# =============================================================================
# 로드 / 저장
# =============================================================================


def _load(path: Path) -> tuple[AwsConfigDocument, str]:
    try:
        text = read_text_if_exists(path) or ""
    except (OSError, UnicodeDecodeError) as e:
        raise ReconcileError(STORE_NAME, str(path), "파일을 읽을 수 없습니다", e) from e
    return AwsConfigDocument.parse(text), text


def _save(path: Path, doc: AwsConfigDocument, original: str) -> None:
    content = doc.render()
    if content == original:
        return
    try:
        atomic_write_text(path, content, mode=0o600)
    except OSError as e:
        raise ReconcileError(STORE_NAME, str(path), "파일을 저장할 수 없습니다", e) from e


def _session_values(config: Config) -> dict[str, str]:
    return {
        "sso_start_url": config.sso_start_url,
        "sso_region": config.sso_region,
        "sso_registration_scopes": REGISTRATION_SCOPES,
    }


def _profile_values(role: RoleRecord, default_region: str) -> dict[str, str]:
    values = {
        "sso_session": SESSION_NAME,
        "sso_account_id": role.account_id,
        "sso_role_name": role.role_name,
    }
    if default_region:
        values["region"] = default_region
    values["output"] = "json"
    return values


# =============================================================================
# 공개 API
# =============================================================================


def ensure_session(path: str | Path, config: Config, dry_run: bool = False) -> bool:
    """[sso-session rift] 섹션 생성/갱신. 변경 여부 반환"""
    path = Path(path)
    doc, original = _load(path)
    changed = doc.set_values(SESSION_SECTION, _session_values(config))
    if changed and not dry_run:
        _save(path, doc, original)
    return changed


def ensure_legacy_auth_profile(path: str | Path, config: Config, dry_run: bool = False) -> bool:
    """[profile rift-auth] 섹션 생성/갱신 (sso-session을 모르는 구버전 CLI용)"""
    path = Path(path)
    doc, original = _load(path)
    changed = doc.set_values(
        LEGACY_AUTH_SECTION,
        {
            "sso_start_url": config.sso_start_url,
            "sso_region": config.sso_region,
            "output": "json",
        },
    )
    if changed and not dry_run:
        _save(path, doc, original)
    return changed


def sync_profiles(path: str | Path, config: Config, state: State, dry_run: bool = False) -> SyncResult:
    """State의 역할 목록을 rift 프로파일 섹션에 반영

    Args:
        path: AWS config 파일 경로 (없으면 빈 파일로 간주)
        config: 설정 (SSO 세션 값, 기본 리전)
        state: 원하는 상태
        dry_run: True면 변경 수만 계산하고 저장하지 않음

    Raises:
        ReconcileError: 파일 읽기/쓰기 실패
    """
    path = Path(path)
    doc, original = _load(path)
    result = SyncResult()

    if doc.set_values(SESSION_SECTION, _session_values(config)):
        result.updated += 1

    desired = {f"profile {role.aws_profile}": role for role in state.roles}

    for name in doc.section_names():
        if not name.startswith(PROFILE_PREFIX) or name == LEGACY_AUTH_SECTION:
            continue
        if name not in desired:
            doc.delete(name)
            result.removed += 1
            logger.debug(f"프로파일 삭제: {name}")

    default_region = config.regions[0] if config.regions else ""
    for name in sorted(desired):
        existed = doc.has_section(name)
        changed = doc.set_values(name, _profile_values(desired[name], default_region))
        if not existed:
            result.added += 1
        elif changed:
            result.updated += 1

    if not dry_run:
        _save(path, doc, original)

    logger.info(f"{STORE_NAME} 동기화 {result}{' (dry-run)' if dry_run else ''}: {path}")
    return result
