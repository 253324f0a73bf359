"""
인증 API 엔드포인트 (이메일/비밀번호 + JWT Bearer 토큰)
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from ..config.settings import Settings
from ..core.errors import AuthenticationError
from ..database.sqlite import SQLite
from .schemas import AuthResponse, SignInRequest, SignUpRequest, UserInfoResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# ============================================================================
# 의존성
# ============================================================================

def get_db(request: Request) -> SQLite:
    return request.app.state.db


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# ============================================================================
# 보조 함수
# ============================================================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


def create_access_token(user_id: int, settings: Settings) -> str:
    """JWT 토큰 생성 (폐기용 jti 포함)"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRATION_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def resolve_token(token: Optional[str], db: SQLite, settings: Settings) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Bearer 토큰으로 호출자 식별 ("현재 사용자" 조회)

    Returns:
        (사용자 행, 토큰 페이로드)

    Raises:
        AuthenticationError: 토큰 누락/무효/만료/폐기 또는 사용자 없음
    """
    if not token:
        raise AuthenticationError("Missing authorization header")

    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"토큰 검증 실패: {e}")
        raise AuthenticationError("Invalid or expired token") from e

    jti = payload.get("jti")
    if jti and db.is_token_revoked(jti):
        raise AuthenticationError("Token has been revoked")

    user_id = payload.get("user_id")
    user = db.get_user_by_id(user_id) if isinstance(user_id, int) else None
    if not user:
        raise AuthenticationError("No user found")
    return user, payload


def parse_authorization_header(authorization: Optional[str]) -> Optional[str]:
    """'Bearer <token>' 헤더에서 토큰 추출 (형식이 다르면 None)"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_user(authorization: Optional[str], db: SQLite, settings: Settings) -> Dict[str, Any]:
    """Authorization 헤더 값으로 사용자 행 조회"""
    user, _ = resolve_token(parse_authorization_header(authorization), db, settings)
    return user


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: SQLite = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    token = credentials.credentials if credentials else None
    return resolve_token(token, db, settings)


def get_current_user(current: Tuple[Dict[str, Any], Dict[str, Any]] = Depends(get_current_token)) -> Dict[str, Any]:
    """요청 헤더의 JWT 토큰을 검증하고 사용자 행을 반환하는 의존성"""
    return current[0]


def get_current_user_id(user: Dict[str, Any] = Depends(get_current_user)) -> int:
    return user["user_id"]


# ============================================================================
# API 엔드포인트
# ============================================================================

@router.post("/signup", response_model=AuthResponse, status_code=201)
async def sign_up(
    request: SignUpRequest,
    db: SQLite = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """이메일/비밀번호로 가입 후 토큰 발급"""
    user = db.create_user(request.email, hash_password(request.password))
    logger.info(f"👤 신규 사용자 가입: user_id={user['user_id']}")
    return AuthResponse(
        access_token=create_access_token(user["user_id"], settings),
        user_id=user["user_id"],
        email=user["email"],
    )


@router.post("/signin", response_model=AuthResponse)
async def sign_in(
    request: SignInRequest,
    db: SQLite = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """이메일/비밀번호 로그인"""
    user = db.get_user_by_email(request.email)
    if not user or not verify_password(request.password, user["password_hash"]):
        raise AuthenticationError("Invalid login credentials")

    return AuthResponse(
        access_token=create_access_token(user["user_id"], settings),
        user_id=user["user_id"],
        email=user["email"],
    )


@router.post("/signout")
async def sign_out(
    current: Tuple[Dict[str, Any], Dict[str, Any]] = Depends(get_current_token),
    db: SQLite = Depends(get_db),
):
    """현재 토큰 폐기"""
    user, payload = current
    if not payload.get("jti"):
        raise AuthenticationError("Token cannot be revoked")
    expires_at = None
    if payload.get("exp"):
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    db.revoke_token(payload["jti"], user["user_id"], expires_at)
    logger.info(f"👋 로그아웃: user_id={user['user_id']}")
    return {"success": True}


@router.get("/me", response_model=UserInfoResponse)
async def get_current_user_info(user: Dict[str, Any] = Depends(get_current_user)):
    """현재 로그인한 사용자 정보"""
    return UserInfoResponse(
        user_id=user["user_id"],
        email=user["email"],
        created_at=user["created_at"],
    )
