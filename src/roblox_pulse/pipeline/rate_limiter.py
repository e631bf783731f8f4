import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Self

from aiolimiter import AsyncLimiter


class ApiRateLimiter:
    """
    Roblox API 요청 게이트.

    place ID마다 조회 요청이 하나씩 나가므로 추적하는 게임이 많아지면 팬아웃이 커집니다.
    동시 요청 수는 Semaphore로, 초당 요청 수는 AsyncLimiter로 묶어 둡니다.

    Example:
        >>> limiter = ApiRateLimiter(requests_per_second=5)
        >>> async with limiter:
        ...     response = await client.get(url)
    """

    def __init__(
        self,
        requests_per_second: float = 10.0,
        max_concurrency: int = 8,
    ) -> None:
        """
        Args:
            requests_per_second: 초당 요청 수. 1 미만이면 몇 초에 한 번으로 해석합니다.
            max_concurrency: 동시에 진행 중일 수 있는 요청 수.
        """
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second는 양수여야 합니다: {requests_per_second}")

        # AsyncLimiter는 max_rate보다 큰 양을 획득할 수 없으므로 버킷 크기는 최소 1
        max_rate = max(requests_per_second, 1.0)
        self._rate_limiter = AsyncLimiter(
            max_rate, time_period=max_rate / requests_per_second
        )
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> Self:
        """슬롯을 먼저 잡고, 토큰을 기다리다 취소되면 슬롯을 돌려놓습니다."""
        await self._semaphore.acquire()
        try:
            await self._rate_limiter.acquire()
        except BaseException:
            self._semaphore.release()
            raise
        return self

    async def __aexit__(self, *args: object) -> None:
        self._semaphore.release()


@asynccontextmanager
async def optional_rate_limiter(
    limiter: ApiRateLimiter | None,
) -> AsyncGenerator[None, None]:
    """limiter가 None이면 제한 없이 통과시킵니다."""
    if limiter is not None:
        async with limiter:
            yield
    else:
        yield
