"""파이프라인 전용 예외 계층."""


class RobloxPulseError(Exception):
    """모든 파이프라인 예외의 베이스 클래스."""


class InvalidGameListError(RobloxPulseError):
    """추적 대상 place ID 목록 파일이 비어 있거나 형식이 잘못된 경우."""


class NoIdentifiersResolvedError(RobloxPulseError):
    """universe ID로 변환된 place ID가 하나도 없는 경우."""


class MalformedResponseError(RobloxPulseError):
    """Roblox API 응답이 예상한 구조가 아닌 경우."""


class SnapshotNotFoundError(RobloxPulseError):
    """저장된 스냅샷이 아직 없는 경우."""


class MalformedSnapshotError(RobloxPulseError):
    """저장된 스냅샷 문서를 해석할 수 없는 경우."""
