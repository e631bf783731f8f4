from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from roblox_pulse.pipeline.models import Snapshot


class DatasetExtractor(ABC):
    """
    DatasetExtractor 인터페이스.

    universe ID 배치를 받아 하나의 데이터셋을 비동기적으로 추출하는 메서드를 정의합니다.
    """

    @abstractmethod
    async def fetch(self, universe_ids: Sequence[int]) -> list[Any]:
        """
        외부 API로부터 universe ID 배치에 해당하는 레코드를 추출합니다.

        Args:
            universe_ids (Sequence[int]): 조회할 universe ID 목록.

        Returns:
            list[Any]: 추출된 레코드 목록. 플랫폼이 모르는 ID는 빠질 수 있습니다.
        """
        raise NotImplementedError


class SnapshotStore(ABC):
    """
    SnapshotStore 인터페이스.

    집계된 스냅샷 하나를 캐시로 보관합니다. 이력은 남기지 않습니다.
    """

    @abstractmethod
    async def save(self, snapshot: Snapshot) -> None:
        """
        스냅샷을 새 캐시 값으로 저장합니다. 기존 값은 통째로 교체됩니다.

        Args:
            snapshot: 저장할 스냅샷
        """
        raise NotImplementedError

    @abstractmethod
    async def load(self) -> Snapshot:
        """
        가장 최근에 저장된 스냅샷을 반환합니다.

        Raises:
            SnapshotNotFoundError: 저장된 스냅샷이 없는 경우
        """
        raise NotImplementedError
