from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Literal

from loguru import logger

from roblox_pulse.pipeline.aggregator import aggregate
from roblox_pulse.pipeline.extractors import fetch_datasets
from roblox_pulse.pipeline.inputs import load_place_ids
from roblox_pulse.pipeline.interfaces import DatasetExtractor, SnapshotStore
from roblox_pulse.pipeline.models import Snapshot
from roblox_pulse.pipeline.resolver import UniverseIdResolver


@dataclass
class PipelineResult:
    """
    스냅샷 생성 실행 결과를 나타내는 데이터 클래스입니다.
    """

    game_count: int
    total_active: int
    total_visits: int
    elapsed_seconds: float


@dataclass(frozen=True)
class SnapshotResult:
    """대시보드에 보여줄 스냅샷과 그 출처('live' 또는 'cache')."""

    snapshot: Snapshot
    source: Literal["live", "cache"]


class SnapshotPipeline:
    """
    조회 → 추출 → 집계 흐름을 담당하는 클래스입니다.

    배치 실행(run)과 대시보드(build_or_load_cached)가 같은 파이프라인을 공유합니다.
    """

    def __init__(
        self,
        resolver: UniverseIdResolver,
        stats_extractor: DatasetExtractor,
        thumbnail_extractor: DatasetExtractor,
        store: SnapshotStore,
        games_file: Path,
    ) -> None:
        self._resolver = resolver
        self._stats_extractor = stats_extractor
        self._thumbnail_extractor = thumbnail_extractor
        self._store = store
        self._games_file = games_file

    async def build_snapshot(self) -> Snapshot:
        """
        게임 목록을 읽고 실시간 데이터로 스냅샷을 만듭니다.

        Returns:
            Snapshot: 집계된 스냅샷

        Raises:
            InvalidGameListError: 게임 목록 파일 문제
            NoIdentifiersResolvedError: universe ID 변환이 모두 실패한 경우
            ExceptionGroup: 통계 또는 썸네일 추출이 실패한 경우
        """
        place_ids = load_place_ids(self._games_file)
        logger.info(f"게임 {len(place_ids)}개 처리 시작...")

        id_map = await self._resolver.resolve(place_ids)
        stats, thumbnails = await fetch_datasets(
            self._stats_extractor,
            self._thumbnail_extractor,
            id_map.universe_ids,
        )
        return aggregate(id_map, stats, thumbnails)

    async def run(self) -> PipelineResult:
        """
        스냅샷을 만들어 저장소에 저장합니다.

        Returns:
            PipelineResult: 게임 수, 합계, 소요 시간
        """
        start_time = perf_counter()

        snapshot = await self.build_snapshot()
        await self._store.save(snapshot)

        elapsed = perf_counter() - start_time
        logger.success(
            f"스냅샷 생성 완료 - 게임 수: {len(snapshot.games)}, "
            f"총 동시 접속자: {snapshot.total_active}, 총 방문 수: {snapshot.total_visits}, "
            f"소요 시간: {elapsed:.2f}초"
        )

        return PipelineResult(
            game_count=len(snapshot.games),
            total_active=snapshot.total_active,
            total_visits=snapshot.total_visits,
            elapsed_seconds=elapsed,
        )

    async def build_or_load_cached(self) -> SnapshotResult:
        """
        실시간 스냅샷을 시도하고, 실패하면 마지막으로 저장된 스냅샷으로 대체합니다.

        Returns:
            SnapshotResult: 스냅샷과 출처

        Raises:
            SnapshotNotFoundError: 실시간 집계가 실패했고 저장된 스냅샷도 없는 경우
        """
        try:
            snapshot = await self.build_snapshot()
        except Exception as e:
            logger.warning(f"실시간 집계 실패, 저장된 스냅샷으로 대체합니다: {e!r}")
            cached = await self._store.load()
            logger.info(
                f"저장된 스냅샷 사용 (생성 시각: {cached.generated_at.isoformat()})"
            )
            return SnapshotResult(snapshot=cached, source="cache")

        return SnapshotResult(snapshot=snapshot, source="live")
