import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from loguru import logger

from roblox_pulse.pipeline.exceptions import MalformedResponseError
from roblox_pulse.pipeline.interfaces import DatasetExtractor
from roblox_pulse.pipeline.models import StatRecord, ThumbnailRecord
from roblox_pulse.pipeline.rate_limiter import ApiRateLimiter, optional_rate_limiter


class BaseRobloxExtractor(DatasetExtractor, ABC):
    """
    Roblox 배치 조회 API Extractor의 공통 로직 베이스 클래스.
    universe ID 배치 파라미터 구성, 응답 검증, 레코드 변환을 처리합니다.
    """

    # === 서브클래스에서 정의해야 하는 속성 ===
    @property
    @abstractmethod
    def api_url(self) -> str:
        """API 엔드포인트 URL. 서브클래스에서 정의해야 함."""
        pass

    @property
    def extra_params(self) -> dict[str, str]:
        """universeIds 외에 항상 함께 보내는 쿼리 파라미터."""
        return {}

    @abstractmethod
    def parse_item(self, item: dict[str, Any]) -> Any:
        """응답의 data 항목 하나를 레코드로 변환합니다."""
        pass

    def __init__(
        self,
        client: Any,
        rate_limiter: ApiRateLimiter | None = None,
        chunk_size: int | None = None,
    ) -> None:
        """
        Args:
            client: HTTP 클라이언트 (httpx.AsyncClient 등)
            rate_limiter: 요청 게이트 (기본값: None)
            chunk_size: 요청당 최대 universe ID 수 (기본값: None, 전체를 한 번에 요청)
        """
        self._client = client
        self._rate_limiter = rate_limiter
        self._chunk_size = chunk_size

    def _chunks(self, universe_ids: Sequence[int]) -> list[Sequence[int]]:
        if not self._chunk_size:
            return [universe_ids]
        return [
            universe_ids[i : i + self._chunk_size]
            for i in range(0, len(universe_ids), self._chunk_size)
        ]

    async def fetch(self, universe_ids: Sequence[int]) -> list[Any]:
        """
        universe ID 배치에 해당하는 레코드를 추출합니다.

        Args:
            universe_ids: 조회할 universe ID 목록

        Returns:
            list[Any]: 응답 순서를 유지한 레코드 목록

        Raises:
            httpx.HTTPError: 네트워크 오류 또는 2xx가 아닌 응답
            MalformedResponseError: 응답 구조가 예상과 다른 경우
        """
        entity_name = self.__class__.__name__
        logger.info(f"{entity_name} 추출 시작: universe {len(universe_ids)}개")

        records: list[Any] = []
        for chunk in self._chunks(universe_ids):
            params = {
                "universeIds": ",".join(str(universe_id) for universe_id in chunk),
                **self.extra_params,
            }

            try:
                async with optional_rate_limiter(self._rate_limiter):
                    response = await self._client.get(self.api_url, params=params)
                    response.raise_for_status()
                records.extend(self._parse_payload(response.json()))
            except Exception as e:
                logger.error(
                    f"{entity_name} 추출 중 오류 발생 "
                    f"(chunk={len(chunk)}, extracted={len(records)}): {e!r}"
                )
                raise

        logger.info(f"{entity_name} 추출 완료: 총 {len(records)}개 레코드")
        return records

    def _parse_payload(self, payload: Any) -> list[Any]:
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"{self.__class__.__name__} 응답에 data 목록이 없습니다: {payload!r}"
            )

        try:
            return [self.parse_item(item) for item in data]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedResponseError(
                f"{self.__class__.__name__} 응답 항목 해석 실패: {e!r}"
            ) from e


class GameStatsExtractor(BaseRobloxExtractor):
    """Roblox games API로부터 이름, 동시 접속자 수, 방문 수를 추출하는 Extractor 구현체."""

    @property
    def api_url(self) -> str:
        return "https://games.roblox.com/v1/games"

    def parse_item(self, item: dict[str, Any]) -> StatRecord:
        playing = item.get("playing")
        visits = item.get("visits")
        return StatRecord(
            universe_id=int(item["id"]),
            name=str(item.get("name") or ""),
            active_count=int(playing) if playing is not None else None,
            visit_count=int(visits) if visits is not None else None,
            description=item.get("description"),
        )


class GameThumbnailExtractor(BaseRobloxExtractor):
    """Roblox thumbnails API로부터 게임 아이콘 URL을 추출하는 Extractor 구현체."""

    @property
    def api_url(self) -> str:
        return "https://thumbnails.roblox.com/v1/games/icons"

    @property
    def extra_params(self) -> dict[str, str]:
        return {
            "returnPolicy": "PlaceHolder",
            "size": "512x512",
            "format": "Png",
            "isCircular": "false",
        }

    async def fetch(self, universe_ids: Sequence[int]) -> list[ThumbnailRecord]:
        # imageUrl이 비어 있는 항목(차단, 처리 중 등)은 썸네일 없음으로 간주
        records = await super().fetch(universe_ids)
        return [record for record in records if record is not None]

    def parse_item(self, item: dict[str, Any]) -> ThumbnailRecord | None:
        image_url = item.get("imageUrl")
        if not image_url:
            logger.debug(
                f"universe {item.get('targetId')} 썸네일 없음 (state={item.get('state')})"
            )
            return None
        return ThumbnailRecord(universe_id=int(item["targetId"]), image_url=image_url)


async def fetch_datasets(
    stats_extractor: DatasetExtractor,
    thumbnail_extractor: DatasetExtractor,
    universe_ids: Sequence[int],
) -> tuple[list[StatRecord], list[ThumbnailRecord]]:
    """
    통계 데이터셋과 썸네일 데이터셋을 병렬로 추출합니다.

    한쪽이 실패하면 TaskGroup이 나머지 요청을 취소하고 ExceptionGroup을 발생시킵니다.
    부분 데이터로 진행하지 않습니다.

    Args:
        stats_extractor: 통계 Extractor
        thumbnail_extractor: 썸네일 Extractor
        universe_ids: 조회할 universe ID 목록

    Returns:
        tuple[list[StatRecord], list[ThumbnailRecord]]: (통계 레코드, 썸네일 레코드)
    """
    try:
        async with asyncio.TaskGroup() as tg:
            stats_task = tg.create_task(stats_extractor.fetch(universe_ids))
            thumbnails_task = tg.create_task(thumbnail_extractor.fetch(universe_ids))
    except* Exception as e:
        for exc in e.exceptions:
            logger.error(f"데이터셋 병렬 추출 중 오류 발생: {exc!r}")
        raise

    return stats_task.result(), thumbnails_task.result()
