"""매핑, 통계, 썸네일을 하나의 스냅샷으로 조인/집계하는 모듈."""

from collections.abc import Iterable
from datetime import UTC, datetime

from loguru import logger

from roblox_pulse.pipeline.models import (
    GameRecord,
    IdentifierMap,
    Snapshot,
    StatRecord,
    ThumbnailRecord,
)


def aggregate(
    id_map: IdentifierMap,
    stats: Iterable[StatRecord],
    thumbnails: Iterable[ThumbnailRecord],
    generated_at: datetime | None = None,
) -> Snapshot:
    """
    조회 결과를 게임별 레코드로 조인하고 합계를 계산합니다.

    - StatRecord 하나당 GameRecord 하나를 만듭니다.
    - 매핑에 없는 universe ID는 place_id=None으로 유지합니다.
    - 썸네일이 없으면 thumbnail_url=None입니다.
    - 결과는 active_count 내림차순이며, 동점이면 통계 응답 순서를 따릅니다.

    Args:
        id_map: place ID <-> universe ID 매핑
        stats: 통계 레코드 (응답 순서)
        thumbnails: 썸네일 레코드
        generated_at: 스냅샷 생성 시각 (기본값: 현재 UTC 시각)

    Returns:
        Snapshot: 정렬된 게임 목록과 합계
    """
    thumbnail_urls = {
        thumbnail.universe_id: thumbnail.image_url for thumbnail in thumbnails
    }

    games: list[GameRecord] = []
    total_active = 0
    total_visits = 0

    for stat in stats:
        place_id = id_map.place_id_for(stat.universe_id)
        if place_id is None:
            logger.warning(
                f"universe {stat.universe_id} ({stat.name})에 대응하는 place ID가 없습니다."
            )

        active_count = stat.active_count or 0
        visit_count = stat.visit_count or 0
        total_active += active_count
        total_visits += visit_count

        games.append(
            GameRecord(
                universe_id=stat.universe_id,
                place_id=place_id,
                name=stat.name,
                active_count=active_count,
                visit_count=visit_count,
                thumbnail_url=thumbnail_urls.get(stat.universe_id),
                description=stat.description,
            )
        )

    # sort는 안정 정렬이므로 동점은 응답 순서 유지
    games.sort(key=lambda game: game.active_count, reverse=True)

    return Snapshot(
        generated_at=generated_at or datetime.now(UTC),
        total_active=total_active,
        total_visits=total_visits,
        games=tuple(games),
    )
