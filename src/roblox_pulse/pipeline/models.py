"""파이프라인 단계 사이를 오가는 데이터 모델."""

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, NotRequired, TypedDict

from loguru import logger

from roblox_pulse.pipeline.exceptions import MalformedSnapshotError


@dataclass(frozen=True)
class GameIdentifierPair:
    """place ID 하나를 universe ID로 변환한 결과."""

    place_id: int
    universe_id: int


@dataclass
class IdentifierMap:
    """
    place ID <-> universe ID 양방향 매핑.

    universe ID는 조인 키이므로 유일해야 합니다. 서로 다른 place ID가
    같은 universe ID로 변환되면 입력 순서상 먼저 온 place ID가 유지됩니다.
    """

    place_to_universe: dict[int, int] = field(default_factory=dict)
    universe_to_place: dict[int, int] = field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: Iterable[GameIdentifierPair]) -> "IdentifierMap":
        id_map = cls()
        for pair in pairs:
            if pair.place_id in id_map.place_to_universe:
                continue

            existing = id_map.universe_to_place.get(pair.universe_id)
            if existing is not None:
                logger.warning(
                    f"universe {pair.universe_id}가 place {existing}, {pair.place_id}에 "
                    f"중복 매핑되었습니다. place {existing}를 유지합니다."
                )
                continue

            id_map.place_to_universe[pair.place_id] = pair.universe_id
            id_map.universe_to_place[pair.universe_id] = pair.place_id
        return id_map

    @property
    def universe_ids(self) -> list[int]:
        """입력 순서를 유지한 universe ID 목록."""
        return list(self.universe_to_place)

    def place_id_for(self, universe_id: int) -> int | None:
        return self.universe_to_place.get(universe_id)

    def universe_id_for(self, place_id: int) -> int | None:
        return self.place_to_universe.get(place_id)

    def __len__(self) -> int:
        return len(self.universe_to_place)


@dataclass(frozen=True)
class StatRecord:
    """games API 응답 항목. 플레이 수/방문 수는 상류에서 비어 있을 수 있습니다."""

    universe_id: int
    name: str
    active_count: int | None
    visit_count: int | None
    description: str | None = None


@dataclass(frozen=True)
class ThumbnailRecord:
    universe_id: int
    image_url: str


class GameRecordDict(TypedDict):
    secondaryId: int
    primaryId: int | None
    name: str
    activeCount: int
    visitCount: int
    thumbnailUrl: NotRequired[str]
    description: str | None


class SnapshotDict(TypedDict):
    generatedAt: str
    totalActive: int
    totalVisits: int
    games: list[GameRecordDict]


@dataclass(frozen=True)
class GameRecord:
    """조인이 끝난 게임 한 개의 레코드. 집계 결과의 단위입니다."""

    universe_id: int
    place_id: int | None
    name: str
    active_count: int
    visit_count: int
    thumbnail_url: str | None = None
    description: str | None = None

    def to_dict(self) -> GameRecordDict:
        data: GameRecordDict = {
            "secondaryId": self.universe_id,
            "primaryId": self.place_id,
            "name": self.name,
            "activeCount": self.active_count,
            "visitCount": self.visit_count,
            "description": self.description,
        }
        # 썸네일이 없으면 키 자체를 생략
        if self.thumbnail_url:
            data["thumbnailUrl"] = self.thumbnail_url
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameRecord":
        place_id = data.get("primaryId")
        return cls(
            universe_id=int(data["secondaryId"]),
            place_id=int(place_id) if place_id is not None else None,
            name=str(data.get("name") or ""),
            active_count=int(data.get("activeCount") or 0),
            visit_count=int(data.get("visitCount") or 0),
            thumbnail_url=data.get("thumbnailUrl") or None,
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    한 번의 집계 실행 결과.

    games는 active_count 내림차순으로 정렬되어 있으며,
    total_active / total_visits는 games의 합계와 항상 일치합니다.
    """

    generated_at: datetime
    total_active: int
    total_visits: int
    games: tuple[GameRecord, ...]

    def to_dict(self) -> SnapshotDict:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "totalActive": self.total_active,
            "totalVisits": self.total_visits,
            "games": [game.to_dict() for game in self.games],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        """
        저장된 스냅샷 문서를 Snapshot으로 변환합니다.

        Raises:
            MalformedSnapshotError: 필수 키가 없거나 값의 타입이 잘못된 경우
        """
        try:
            games = tuple(GameRecord.from_dict(item) for item in data["games"])
            return cls(
                generated_at=datetime.fromisoformat(data["generatedAt"]),
                total_active=int(data["totalActive"]),
                total_visits=int(data["totalVisits"]),
                games=games,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedSnapshotError(f"스냅샷 문서 해석 실패: {e!r}") from e

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, body: str | bytes) -> "Snapshot":
        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedSnapshotError(f"스냅샷 JSON 해석 실패: {e}") from e
        return cls.from_dict(data)
