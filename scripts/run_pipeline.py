"""스냅샷 생성 배치 실행 스크립트. 인자 없이 실행하며, 실패 시 0이 아닌 코드로 종료합니다."""

from roblox_pulse.main import main

if __name__ == "__main__":
    main()
