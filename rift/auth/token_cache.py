"""
rift/auth/token_cache.py - AWS CLI SSO 토큰 캐시 조회

`aws sso login`이 남긴 ~/.aws/sso/cache/*.json 파일에서 설정의
start URL / 리전과 일치하는 유효한 액세스 토큰을 찾습니다.

캐시 파일 형식 (AWS CLI 호환):
    {
        "startUrl": "https://acme.awsapps.com/start",
        "region": "us-east-1",
        "accessToken": "...",
        "expiresAt": "2024-01-01T00:00:00Z"
    }

토큰 발급/갱신은 하지 않습니다. 읽기 전용입니다.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from rift.exceptions import SSONotLoggedInError, TokenStoreUnreadableError

if TYPE_CHECKING:
    from rift.config import Config

logger = logging.getLogger(__name__)

# 만료 임박 토큰 제외 기준
EXPIRY_BUFFER = timedelta(seconds=60)

# RFC3339 다음으로 시도하는 expiresAt 형식 (타임존 없으면 UTC)
_LEGACY_EXPIRY_FORMATS = (
    "%Y-%m-%dT%H:%M:%SUTC",
    "%Y-%m-%d %H:%M:%S",
)

# 소수 초 (fromisoformat은 3.11 미만에서 3/6자리만 허용)
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d{2}:\d{2}$)")


def _normalize_fraction(text: str) -> str:
    return _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)


def default_cache_dir() -> Path:
    return Path.home() / ".aws" / "sso" / "cache"


@dataclass(frozen=True)
class CachedToken:
    """캐시에서 선택된 SSO 토큰

    Attributes:
        access_token: SSO 액세스 토큰
        expires_at: 만료 시간 (UTC)
        start_url: SSO 시작 URL
        region: SSO 리전
    """

    access_token: str
    expires_at: datetime
    start_url: str = ""
    region: str = ""

    def is_expired(self, now: datetime | None = None, buffer: timedelta = EXPIRY_BUFFER) -> bool:
        """만료(또는 버퍼 내 만료 예정) 여부"""
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now + buffer


def parse_expiry(value: str) -> datetime:
    """expiresAt 문자열을 UTC datetime으로 변환

    Raises:
        ValueError: 지원하지 않는 형식
    """
    text = value.strip()
    if "T" in text and (text.endswith("Z") or text[-6:-5] in ("+", "-")):
        try:
            iso = text[:-1] + "+00:00" if text.endswith("Z") else text
            parsed = datetime.fromisoformat(_normalize_fraction(iso))
            return parsed.astimezone(timezone.utc)
        except ValueError:
            pass

    for fmt in _LEGACY_EXPIRY_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise ValueError(f"지원하지 않는 expiresAt 형식: {value!r}")


def _read_record(path: Path) -> dict | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.debug(f"토큰 캐시 파일 스킵 (읽기 실패): {path.name}")
        return None
    return data if isinstance(data, dict) else None


def resolve_token(
    start_url: str,
    region: str,
    now: datetime | None = None,
    cache_dir: str | Path | None = None,
) -> CachedToken:
    """조건에 맞는 유효 토큰 중 만료가 가장 늦은 것을 반환

    Args:
        start_url: SSO 시작 URL (빈 값이면 필터하지 않음)
        region: SSO 리전 (대소문자 무시, 빈 값이면 필터하지 않음)
        now: 기준 시각 (기본: 현재 UTC)
        cache_dir: 캐시 디렉토리 (기본: ~/.aws/sso/cache)

    Raises:
        TokenStoreUnreadableError: 캐시 디렉토리를 나열할 수 없음
        SSONotLoggedInError: 유효한 토큰 없음
    """
    now = now or datetime.now(timezone.utc)
    directory = Path(cache_dir) if cache_dir is not None else default_cache_dir()
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        raise TokenStoreUnreadableError(str(directory), e) from e

    start_url = start_url.strip()
    region = region.strip().lower()

    candidates: list[CachedToken] = []
    for entry in entries:
        if entry.is_dir() or entry.suffix != ".json":
            continue
        record = _read_record(entry)
        if record is None:
            continue

        access_token = record.get("accessToken") or ""
        expires_raw = record.get("expiresAt") or ""
        if not isinstance(access_token, str) or not isinstance(expires_raw, str):
            continue
        if not access_token or not expires_raw:
            continue

        record_url = record.get("startUrl") or ""
        record_region = record.get("region") or ""
        if start_url and record_url != start_url:
            continue
        if region and str(record_region).lower() != region:
            continue

        try:
            expires_at = parse_expiry(expires_raw)
        except ValueError:
            logger.debug(f"토큰 캐시 파일 스킵 (만료 시간 형식): {entry.name}")
            continue

        token = CachedToken(
            access_token=access_token,
            expires_at=expires_at,
            start_url=str(record_url),
            region=str(record_region),
        )
        if token.is_expired(now):
            continue
        candidates.append(token)

    if not candidates:
        raise SSONotLoggedInError()

    best = max(candidates, key=lambda t: t.expires_at)
    logger.debug(f"SSO 토큰 선택: 만료 {best.expires_at.isoformat()} (후보 {len(candidates)}개)")
    return best


def validate_sso_login(config: Config, now: datetime | None = None, cache_dir: str | Path | None = None) -> CachedToken:
    """설정의 SSO 세션으로 로그인되어 있는지 확인 (rift init 용)"""
    return resolve_token(config.sso_start_url, config.sso_region, now=now, cache_dir=cache_dir)
