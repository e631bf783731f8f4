"""
스냅샷을 화면 모델로 변환하는 모듈.

이 모듈은 순수 함수만 포함합니다. 실제 화면 출력(Streamlit 호출)은 dashboard.py 한 곳에서만 합니다.
"""

from dataclasses import dataclass

from roblox_pulse.formatting import format_count, format_number, format_timestamp
from roblox_pulse.pipeline.models import GameRecord, Snapshot

GAME_PAGE_URL = "https://www.roblox.com/games/{place_id}"
ERROR_TEXT = "Error"


@dataclass(frozen=True)
class GameCard:
    name: str
    link_url: str | None
    thumbnail_url: str
    active_text: str
    visits_text: str
    active_count: int
    description: str | None = None


@dataclass(frozen=True)
class DashboardView:
    total_active_text: str
    total_visits_text: str
    last_updated_text: str
    cards: tuple[GameCard, ...] = ()
    source: str | None = None
    error: str | None = None


def build_card(game: GameRecord, placeholder_url: str) -> GameCard:
    # place ID가 없으면 링크를 만들지 않음
    link_url = (
        GAME_PAGE_URL.format(place_id=game.place_id)
        if game.place_id is not None
        else None
    )
    return GameCard(
        name=game.name,
        link_url=link_url,
        thumbnail_url=game.thumbnail_url or placeholder_url,
        active_text=format_count(game.active_count),
        visits_text=format_number(game.visit_count),
        active_count=game.active_count,
        description=game.description,
    )


def build_view(
    snapshot: Snapshot,
    placeholder_url: str,
    source: str | None = None,
) -> DashboardView:
    """
    스냅샷을 대시보드 화면 모델로 변환합니다.

    Args:
        snapshot: 표시할 스냅샷
        placeholder_url: 썸네일이 없는 게임에 사용할 이미지 URL
        source: 스냅샷 출처 ('live' 또는 'cache')

    Returns:
        DashboardView: 요약 카운터, 갱신 시각, 게임 카드 목록
    """
    return DashboardView(
        total_active_text=format_count(snapshot.total_active),
        total_visits_text=format_count(snapshot.total_visits),
        last_updated_text=format_timestamp(snapshot.generated_at),
        cards=tuple(build_card(game, placeholder_url) for game in snapshot.games),
        source=source,
    )


def error_view(message: str | None = None) -> DashboardView:
    """집계와 캐시 조회가 모두 실패했을 때의 화면 모델."""
    return DashboardView(
        total_active_text=ERROR_TEXT,
        total_visits_text=ERROR_TEXT,
        last_updated_text="-",
        error=message,
    )
