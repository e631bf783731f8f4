import httpx
import pytest

from roblox_pulse.pipeline.aggregator import aggregate
from roblox_pulse.pipeline.extractors import (
    GameStatsExtractor,
    GameThumbnailExtractor,
    fetch_datasets,
)
from roblox_pulse.pipeline.resolver import UniverseIdResolver

pytestmark = pytest.mark.integration

# Adopt Me!, Jailbreak
PLACE_IDS = [920587237, 606849621]


@pytest.mark.asyncio
async def test_pipeline_it_fetches_real_data():
    """
    [INTEGRATION]
    - 실제 Roblox 공개 API로 조회 → 추출 → 집계가 동작하는지 테스트합니다.
    - 실제 API 호출이므로 네트워크 상태에 따라 테스트 결과가 달라질 수 있습니다.
    """
    async with httpx.AsyncClient(timeout=httpx.Timeout(10.0)) as client:
        id_map = await UniverseIdResolver(client=client).resolve(PLACE_IDS)
        stats, thumbnails = await fetch_datasets(
            GameStatsExtractor(client=client),
            GameThumbnailExtractor(client=client),
            id_map.universe_ids,
        )

    snapshot = aggregate(id_map, stats, thumbnails)

    assert len(snapshot.games) == len(PLACE_IDS)
    assert {g.place_id for g in snapshot.games} == set(PLACE_IDS)
    assert snapshot.total_visits > 0
