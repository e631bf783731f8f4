import asyncio
from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from roblox_pulse.pipeline.exceptions import (
    MalformedResponseError,
    NoIdentifiersResolvedError,
)
from roblox_pulse.pipeline.models import GameIdentifierPair, IdentifierMap
from roblox_pulse.pipeline.rate_limiter import ApiRateLimiter, optional_rate_limiter

UNIVERSE_LOOKUP_URL = "https://apis.roblox.com/universes/v1/places/{place_id}/universe"


def is_transient_error(exc: BaseException) -> bool:
    """재시도할 가치가 있는 오류인지 판단합니다. (네트워크 오류, 타임아웃, 429, 5xx)"""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        return status_code == 429 or status_code >= 500
    return False


class UniverseIdResolver:
    """
    place ID 목록을 universe ID로 변환합니다.

    place ID마다 조회 요청을 한 번씩 동시에 보내며, 개별 조회 실패는
    로그만 남기고 결과에서 제외합니다. 하나도 변환되지 않으면 예외를 발생시킵니다.
    """

    def __init__(
        self,
        client: Any,
        rate_limiter: ApiRateLimiter | None = None,
        max_attempts: int = 3,
        retry_wait_seconds: float = 1.0,
    ) -> None:
        """
        Args:
            client: HTTP 클라이언트 (httpx.AsyncClient 등)
            rate_limiter: 요청 게이트 (기본값: None, 제한 없음)
            max_attempts: 일시적 오류에 대한 재시도 포함 최대 시도 횟수
            retry_wait_seconds: 지수 백오프 대기 시간의 배수
        """
        self._client = client
        self._rate_limiter = rate_limiter
        self._max_attempts = max_attempts
        self._retry_wait_seconds = retry_wait_seconds

    async def resolve(self, place_ids: Sequence[int]) -> IdentifierMap:
        """
        place ID 목록을 동시에 조회하여 양방향 매핑을 만듭니다.

        Args:
            place_ids: 조회할 place ID 목록 (중복 허용)

        Returns:
            IdentifierMap: 조회에 성공한 place ID만 담긴 매핑

        Raises:
            NoIdentifiersResolvedError: 조회에 성공한 place ID가 하나도 없는 경우
        """
        logger.info(f"universe ID 조회 시작: place {len(place_ids)}개")

        results = await asyncio.gather(
            *(self._resolve_one(place_id) for place_id in place_ids)
        )
        pairs = [pair for pair in results if pair is not None]

        if not pairs:
            raise NoIdentifiersResolvedError(
                f"place {len(place_ids)}개 중 universe ID로 변환된 항목이 없습니다."
            )

        id_map = IdentifierMap.from_pairs(pairs)
        logger.info(
            f"universe ID 조회 완료: 매핑 {len(id_map)}개, 실패 {len(place_ids) - len(pairs)}개"
        )
        return id_map

    async def _resolve_one(self, place_id: int) -> GameIdentifierPair | None:
        try:
            universe_id = await self._lookup(place_id)
        except Exception as e:
            logger.error(f"place {place_id}의 universe ID 조회 실패: {e!r}")
            return None

        logger.debug(f"place {place_id} → universe {universe_id}")
        return GameIdentifierPair(place_id=place_id, universe_id=universe_id)

    async def _lookup(self, place_id: int) -> int:
        url = UNIVERSE_LOOKUP_URL.format(place_id=place_id)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait_seconds, max=10),
            retry=retry_if_exception(is_transient_error),
            reraise=True,
        ):
            with attempt:
                async with optional_rate_limiter(self._rate_limiter):
                    response = await self._client.get(url)
                    response.raise_for_status()

        payload = response.json()
        universe_id = payload.get("universeId") if isinstance(payload, dict) else None
        if not universe_id:
            raise MalformedResponseError(
                f"place {place_id} 응답에 universeId가 없습니다: {payload!r}"
            )
        return int(universe_id)
