import asyncio
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from loguru import logger

from roblox_pulse.config import Settings, settings
from roblox_pulse.pipeline.clients import create_http_client
from roblox_pulse.pipeline.extractors import GameStatsExtractor, GameThumbnailExtractor
from roblox_pulse.pipeline.interfaces import SnapshotStore
from roblox_pulse.pipeline.orchestrator import SnapshotPipeline, SnapshotResult
from roblox_pulse.pipeline.rate_limiter import ApiRateLimiter
from roblox_pulse.pipeline.resolver import UniverseIdResolver
from roblox_pulse.pipeline.stores import open_snapshot_store


def setup_logging() -> None:
    """
    로깅 설정을 초기화합니다.
    """
    logger.remove()
    log_level = settings.log_level.upper()
    logger.add(sys.stderr, level=log_level)

    logger.add(
        "logs/snapshot_{time:YYYY-MM-DD-HH-mm-ss}.log",
        rotation="10 MB",
        compression="zip",
        level=log_level,
    )


def build_pipeline(
    http_client: httpx.AsyncClient,
    store: SnapshotStore,
    config: Settings,
) -> SnapshotPipeline:
    """설정값으로 조회기, 추출기, 요청 게이트를 묶어 파이프라인을 만듭니다."""
    rate_limiter = ApiRateLimiter(
        requests_per_second=config.rate_limit_requests_per_second,
        max_concurrency=config.max_concurrency,
    )
    return SnapshotPipeline(
        resolver=UniverseIdResolver(
            client=http_client,
            rate_limiter=rate_limiter,
            max_attempts=config.lookup_max_attempts,
        ),
        stats_extractor=GameStatsExtractor(
            client=http_client,
            rate_limiter=rate_limiter,
            chunk_size=config.fetch_chunk_size,
        ),
        thumbnail_extractor=GameThumbnailExtractor(
            client=http_client,
            rate_limiter=rate_limiter,
            chunk_size=config.fetch_chunk_size,
        ),
        store=store,
        games_file=config.games_file,
    )


@asynccontextmanager
async def open_pipeline(
    config: Settings = settings,
) -> AsyncGenerator[SnapshotPipeline, None]:
    """HTTP 클라이언트와 스냅샷 저장소 세션을 열고 파이프라인을 제공합니다."""
    async with (
        create_http_client(config.request_timeout_seconds) as http_client,
        open_snapshot_store(config) as store,
    ):
        yield build_pipeline(http_client, store, config)


async def load_dashboard_snapshot(config: Settings = settings) -> SnapshotResult:
    """
    대시보드용 스냅샷을 가져옵니다. 실시간 집계가 실패하면 저장된 스냅샷을 사용합니다.

    Raises:
        SnapshotNotFoundError: 실시간 집계도 실패하고 저장된 스냅샷도 없는 경우
    """
    async with open_pipeline(config) as pipeline:
        return await pipeline.build_or_load_cached()


async def run(config: Settings = settings) -> int:
    """
    스냅샷 생성 배치의 실행 진입점입니다.

    Returns:
        int: 프로세스 종료 코드 (성공 0, 실패 1)
    """
    logger.info("=== 스냅샷 생성 파이프라인 시작 ===")

    try:
        async with open_pipeline(config) as pipeline:
            result = await pipeline.run()
    except Exception as e:
        logger.exception(f"스냅샷 생성 실패: {e!r}")
        return 1

    logger.success("=== 스냅샷 생성 파이프라인 완료 ===")
    logger.success(
        f"총 동시 접속자: {result.total_active}, 총 방문 수: {result.total_visits}"
    )
    return 0


def main() -> None:
    setup_logging()
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
