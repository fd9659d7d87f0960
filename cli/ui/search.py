"""
cli/ui/search.py - kube context 검색

`rift use <filter>`에서 State의 context 이름을 점수순으로 찾습니다.

우선순위:
    1. 정확히 일치 (1.0)
    2. 접두사 일치 (0.95)
    3. 포함 (0.85)
    4. 글자 순서 일치 (subsequence, 0.5~0.8)
    5. Fuzzy 매칭 (0.4~0.7, 오타 허용)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from rift.state import ClusterRecord

# Fuzzy 검색 상수
FUZZY_MIN_SCORE = 80  # 최소 유사도 (%)
FUZZY_SCORE_BASE = 0.4  # fuzzy 기본 점수
FUZZY_SCORE_MAX = 0.7  # fuzzy 최대 점수
SUBSEQUENCE_SCORE_BASE = 0.5
SUBSEQUENCE_SCORE_MAX = 0.8


@dataclass
class ContextMatch:
    """검색 결과 항목"""

    context: str
    cluster: ClusterRecord
    score: float  # 매칭 점수 (0-1)
    match_type: str  # exact, prefix, contains, subsequence, fuzzy
    distance: int = 0


def _is_subsequence(query: str, target: str) -> bool:
    it = iter(target)
    return all(char in it for char in query)


def _calculate_score(query: str, target: str) -> tuple[float, str]:
    if query == target:
        return 1.0, "exact"
    if target.startswith(query):
        return 0.95, "prefix"
    if query in target:
        return 0.85, "contains"

    if _is_subsequence(query, target):
        coverage = len(query) / len(target) if target else 0
        return SUBSEQUENCE_SCORE_BASE + (SUBSEQUENCE_SCORE_MAX - SUBSEQUENCE_SCORE_BASE) * coverage, "subsequence"

    # 짧은 쿼리는 fuzzy 검색 효과가 낮음
    if len(query) >= 3:
        ratio = fuzz.partial_ratio(query, target)
        if ratio >= FUZZY_MIN_SCORE:
            normalized = (ratio - FUZZY_MIN_SCORE) / (100 - FUZZY_MIN_SCORE)
            return FUZZY_SCORE_BASE + (FUZZY_SCORE_MAX - FUZZY_SCORE_BASE) * normalized, "fuzzy"

    return 0, ""


def match_contexts(query: str, clusters: list[ClusterRecord]) -> list[ContextMatch]:
    """query와 일치하는 context 목록 (점수 내림차순, 중복 context 제외)"""
    norm_query = query.strip().lower()
    if not norm_query:
        return []

    matches: list[ContextMatch] = []
    seen: set[str] = set()
    for cluster in clusters:
        context = cluster.kube_context
        if not context or context in seen:
            continue
        seen.add(context)

        target = context.lower()
        score, match_type = _calculate_score(norm_query, target)
        if score <= 0:
            continue
        matches.append(
            ContextMatch(
                context=context,
                cluster=cluster,
                score=score,
                match_type=match_type,
                distance=Levenshtein.distance(norm_query, target),
            )
        )

    matches.sort(key=lambda m: (-m.score, m.distance, m.context))
    return matches


def pick_unambiguous(query: str, matches: list[ContextMatch]) -> ContextMatch | None:
    """선택 UI 없이 결정 가능한 경우의 결과 (단일 결과 또는 정확히 일치)"""
    if len(matches) == 1:
        return matches[0]
    for match in matches:
        if match.match_type == "exact" or match.context.lower() == query.strip().lower():
            return match
    return None
