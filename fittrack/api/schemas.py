"""
요청/응답 스키마
"""
from datetime import date as DateType, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# 인증
# ============================================================================

class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("invalid email address")
        return value


class SignInRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    email: str


class UserInfoResponse(BaseModel):
    user_id: int
    email: str
    created_at: str


# ============================================================================
# 운동 기록
# ============================================================================

class ExerciseIn(BaseModel):
    name: str = ""
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)


class WorkoutCreate(BaseModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    duration_minutes: int = Field(default=30, ge=0)
    calories_burned: int = Field(default=200, ge=0)
    completed_at: Optional[datetime] = None
    exercises: List[ExerciseIn] = []


# ============================================================================
# 식단 기록
# ============================================================================

class MealIn(BaseModel):
    name: str = ""
    calories: float = Field(default=0, ge=0)
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    time: Optional[str] = None


class NutritionCreate(BaseModel):
    date: Optional[DateType] = None
    notes: Optional[str] = None
    meals: List[MealIn] = []


# ============================================================================
# 건강 지표
# ============================================================================

class HealthMetricIn(BaseModel):
    metric_type: str = Field(min_length=1)
    value: float
    unit: Optional[str] = None
    recorded_at: Optional[datetime] = None
    source: Optional[str] = None


class HealthSyncRequest(BaseModel):
    """기기 건강 데이터 동기화 (일괄 가져오기)"""
    source: str = "apple_health"
    metrics: List[HealthMetricIn] = []
