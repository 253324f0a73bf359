#!/usr/bin/env python3
"""
FitTrack Backend Startup Script

Usage:
    python start.py              # 백엔드 실행 후 헬스 체크 대기
    python start.py --port 9000  # 포트 지정
    python start.py --reload     # 개발용 자동 리로드
"""

import argparse
import os
import subprocess
import sys
import time
from pathlib import Path

import requests

PROJECT_ROOT = Path(__file__).parent


# =============================================================================
# 환경 확인
# =============================================================================

def check_env_file():
    """환경 변수 파일 존재 확인"""
    env_path = PROJECT_ROOT / ".env"
    if not env_path.exists():
        print("⚠️ .env 파일이 없습니다.")
        print("   .env.example을 복사하여 .env 파일을 생성하세요.")
        return False
    print("✅ .env 파일 확인됨")
    return True


def create_directories():
    """필요한 디렉토리 생성"""
    for dir_path in ["db", "logs"]:
        (PROJECT_ROOT / dir_path).mkdir(parents=True, exist_ok=True)
    print("✅ 디렉토리 구조 확인됨")


# =============================================================================
# 프로세스 시작
# =============================================================================

def start_backend(host, port, reload=False):
    """백엔드 서버 시작"""
    print("🔧 백엔드 서버 시작 중...")

    command = [
        sys.executable, "-m", "uvicorn", "fittrack.main:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        command.append("--reload")

    try:
        process = subprocess.Popen(command, cwd=str(PROJECT_ROOT))
    except OSError as e:
        print(f"❌ 백엔드 시작 오류: {e}")
        return None

    time.sleep(2)
    if process.poll() is None:
        print("✅ 백엔드 서버 프로세스 시작됨")
        return process

    print("❌ 백엔드 서버 시작 실패")
    return None


def wait_for_backend_server(base_url, max_wait=60):
    """백엔드 서버 준비 대기"""
    print("⏳ 백엔드 서버 응답 대기 중...")

    for _ in range(max_wait):
        try:
            response = requests.get(f"{base_url}/api/v1/health", timeout=2)
            if response.status_code == 200:
                print("✅ 백엔드 서버 준비 완료")
                if not response.json().get("ai_gateway_configured"):
                    print("⚠️ AI_GATEWAY_API_KEY가 없어 AI 추천이 비활성화됩니다.")
                return True
        except requests.exceptions.RequestException:
            pass
        time.sleep(1)

    print("❌ 백엔드 서버 응답 시간 초과")
    return False


# =============================================================================
# 메인 함수
# =============================================================================

def main():
    """메인 함수"""
    parser = argparse.ArgumentParser(description="FitTrack Backend")
    parser.add_argument("--host", default=os.getenv("API_HOST", "0.0.0.0"), help="바인딩 호스트")
    parser.add_argument("--port", type=int, default=int(os.getenv("API_PORT", "8000")), help="포트")
    parser.add_argument("--reload", action="store_true", help="코드 변경 시 자동 리로드")
    parser.add_argument("--skip-env-check", action="store_true", help=".env 파일 확인 건너뛰기")
    args = parser.parse_args()

    print("🏃 FitTrack Backend")
    print("=" * 60)

    os.chdir(PROJECT_ROOT)

    if not args.skip_env_check and not check_env_file():
        return 1

    create_directories()

    backend_process = start_backend(args.host, args.port, reload=args.reload)
    if not backend_process:
        return 1

    probe_host = "127.0.0.1" if args.host in ("0.0.0.0", "::") else args.host
    if not wait_for_backend_server(f"http://{probe_host}:{args.port}"):
        backend_process.terminate()
        return 1

    print(f"\n📖 API 문서: http://{probe_host}:{args.port}/docs")
    print("종료하려면 Ctrl+C를 누르세요.")
    try:
        backend_process.wait()
    except KeyboardInterrupt:
        print("\n🛑 종료 중...")
        backend_process.terminate()
        backend_process.wait(timeout=10)
    return 0


if __name__ == "__main__":
    sys.exit(main())
