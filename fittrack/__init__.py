"""FitTrack - 운동/식단 기록과 AI 코칭 추천 백엔드"""

__version__ = "1.0.0"
