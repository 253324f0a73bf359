#sqlite.py
"""
SQLite 데이터 저장소 모듈
- 단일 DB 파일, 모든 사용자 데이터 행은 user_id 컬럼으로 소유자를 표시
- 접근 제어: 모든 조회/생성은 호출자의 user_id로 필터링 (타인의 행은 '없음'으로 보임)
- 자식 행(exercises, meals)은 소유한 부모 행을 통해서만 접근
- 마이그레이션: PRAGMA user_version 기반 스키마 버전 관리
"""
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config.settings import settings
from ..core.errors import ConflictError, PersistenceError

logger = logging.getLogger(__name__)

# =============================================================================
# Schema Version & Migration Scripts
# =============================================================================
CURRENT_DB_VERSION = 2

# 마이그레이션 스크립트: version -> (description, [sql_statements])
MIGRATION_SCRIPTS: Dict[int, tuple] = {
    2: ("Add unit/source columns to health_metrics", [
        "ALTER TABLE health_metrics ADD COLUMN unit TEXT",
        "ALTER TABLE health_metrics ADD COLUMN source TEXT DEFAULT 'manual'",
    ]),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """datetime을 UTC ISO-8601 문자열로 변환 (naive 값은 UTC로 간주)"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class SQLite:
    """SQLite 데이터베이스 관리 클래스

    Tables:
        - users, revoked_tokens: 인증 서비스
        - workouts, exercises: 운동 기록
        - nutrition, meals: 식단 기록
        - health_metrics: 건강 지표
        - ai_recommendations: AI 추천 (생성 후 변경 없음, 만료 후 정리)
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = str(db_path or settings.DATABASE_PATH)
        self._thread_local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._lock = threading.Lock()
        self._ensure_db_dir()
        self._init_db()

    # =========================================================================
    # Connection Management
    # =========================================================================

    def _ensure_db_dir(self):
        """데이터베이스 디렉토리 생성"""
        db_dir = Path(self.db_path).parent
        if not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"데이터베이스 디렉토리 생성: {db_dir}")

    def _create_connection(self) -> sqlite3.Connection:
        """SQLite 연결 생성 (공통 설정 적용)"""
        connection = sqlite3.connect(self.db_path, check_same_thread=False)
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA foreign_keys=ON")
        connection.row_factory = sqlite3.Row
        return connection

    @property
    def conn(self) -> sqlite3.Connection:
        """현재 스레드의 연결 반환 (스레드별 연결)"""
        conn = getattr(self._thread_local, 'conn', None)
        if conn is None:
            conn = self._create_connection()
            self._thread_local.conn = conn
            with self._lock:
                self._connections.append(conn)
        return conn

    def close(self):
        """열린 모든 연결 종료"""
        with self._lock:
            for conn in self._connections:
                conn.close()
            self._connections = []
        self._thread_local = threading.local()

    # =========================================================================
    # Database Initialization
    # =========================================================================

    def _init_db(self):
        """테이블 생성 및 마이그레이션"""
        conn = self.conn
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                user_id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS revoked_tokens (
                jti TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                revoked_at TEXT NOT NULL,
                expires_at TEXT
            );

            CREATE TABLE IF NOT EXISTS workouts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
                title TEXT NOT NULL,
                notes TEXT,
                duration_minutes INTEGER,
                calories_burned INTEGER,
                completed_at TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS exercises (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                workout_id INTEGER NOT NULL REFERENCES workouts(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                sets INTEGER,
                reps INTEGER,
                weight REAL
            );

            CREATE TABLE IF NOT EXISTS nutrition (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
                date TEXT NOT NULL,
                total_calories REAL DEFAULT 0,
                total_protein REAL DEFAULT 0,
                total_carbs REAL DEFAULT 0,
                total_fat REAL DEFAULT 0,
                notes TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS meals (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                nutrition_id INTEGER NOT NULL REFERENCES nutrition(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                calories REAL DEFAULT 0,
                protein REAL DEFAULT 0,
                carbs REAL DEFAULT 0,
                fat REAL DEFAULT 0,
                time TEXT
            );

            CREATE TABLE IF NOT EXISTS health_metrics (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
                metric_type TEXT NOT NULL,
                value REAL NOT NULL,
                unit TEXT,
                source TEXT DEFAULT 'manual',
                recorded_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS ai_recommendations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
                recommendation_type TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT NOT NULL,
                data TEXT,
                created_at TEXT NOT NULL,
                expires_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_workouts_user_completed ON workouts(user_id, completed_at);
            CREATE INDEX IF NOT EXISTS idx_exercises_workout ON exercises(workout_id);
            CREATE INDEX IF NOT EXISTS idx_nutrition_user_date ON nutrition(user_id, date);
            CREATE INDEX IF NOT EXISTS idx_meals_nutrition ON meals(nutrition_id);
            CREATE INDEX IF NOT EXISTS idx_health_metrics_user_recorded ON health_metrics(user_id, recorded_at);
            CREATE INDEX IF NOT EXISTS idx_ai_recommendations_user_created ON ai_recommendations(user_id, created_at);
            CREATE INDEX IF NOT EXISTS idx_ai_recommendations_expires ON ai_recommendations(expires_at);
        """)
        conn.commit()
        self._migrate(conn)
        logger.info(f"데이터베이스 초기화 완료: {self.db_path}")

    # =========================================================================
    # Migration Logic
    # =========================================================================

    def _get_user_version(self, conn: sqlite3.Connection) -> int:
        """현재 DB의 user_version 조회"""
        return conn.execute("PRAGMA user_version").fetchone()[0]

    def _set_user_version(self, conn: sqlite3.Connection, version: int):
        """DB의 user_version 설정"""
        conn.execute(f"PRAGMA user_version = {int(version)}")
        conn.commit()

    def _migrate(self, conn: sqlite3.Connection):
        current_version = self._get_user_version(conn)
        if current_version >= CURRENT_DB_VERSION:
            return

        logger.info(f"DB 마이그레이션 시작: v{current_version} -> v{CURRENT_DB_VERSION}")
        for version in range(current_version + 1, CURRENT_DB_VERSION + 1):
            if version not in MIGRATION_SCRIPTS:
                continue
            description, sql_statements = MIGRATION_SCRIPTS[version]
            logger.info(f"  마이그레이션 v{version}: {description}")
            for sql in sql_statements:
                try:
                    conn.execute(sql)
                except sqlite3.OperationalError as e:
                    # 새 DB는 CREATE TABLE에 이미 컬럼이 포함되어 있음
                    logger.debug(f"  SQL 실행 경고 (무시됨): {e}")
            conn.commit()

        self._set_user_version(conn, CURRENT_DB_VERSION)
        logger.info(f"DB 마이그레이션 완료: v{CURRENT_DB_VERSION}")

    def _fail(self, action: str, error: sqlite3.Error):
        """롤백 후 PersistenceError로 변환"""
        logger.error(f"{action} 오류: {error}")
        try:
            self.conn.rollback()
        except sqlite3.Error:
            pass
        raise PersistenceError(str(error)) from error

    # =========================================================================
    # Users & Tokens (인증 서비스)
    # =========================================================================

    def create_user(self, email: str, password_hash: str) -> Dict[str, Any]:
        conn = self.conn
        try:
            cursor = conn.execute(
                "INSERT INTO users (email, password_hash, created_at) VALUES (?, ?, ?)",
                (email.lower(), password_hash, to_iso(utcnow()))
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ConflictError("User already registered") from e
        except sqlite3.Error as e:
            self._fail("사용자 생성", e)
        return self.get_user_by_id(cursor.lastrowid)

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            row = self.conn.execute("SELECT * FROM users WHERE email = ?", (email.lower(),)).fetchone()
        except sqlite3.Error as e:
            self._fail("사용자 조회", e)
        return dict(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        try:
            row = self.conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
        except sqlite3.Error as e:
            self._fail("사용자 조회", e)
        return dict(row) if row else None

    def revoke_token(self, jti: str, user_id: int, expires_at: Optional[datetime] = None) -> bool:
        conn = self.conn
        try:
            conn.execute(
                "INSERT OR IGNORE INTO revoked_tokens (jti, user_id, revoked_at, expires_at) VALUES (?, ?, ?, ?)",
                (jti, user_id, to_iso(utcnow()), to_iso(expires_at))
            )
            conn.commit()
        except sqlite3.Error as e:
            self._fail("토큰 폐기", e)
        return True

    def is_token_revoked(self, jti: str) -> bool:
        try:
            row = self.conn.execute("SELECT 1 FROM revoked_tokens WHERE jti = ? LIMIT 1", (jti,)).fetchone()
        except sqlite3.Error as e:
            self._fail("토큰 폐기 여부 조회", e)
        return row is not None

    # =========================================================================
    # Workouts & Exercises
    # =========================================================================

    def create_workout(self, user_id: int, title: str, notes: Optional[str],
                       duration_minutes: Optional[int], calories_burned: Optional[int],
                       completed_at: Optional[datetime] = None,
                       exercises: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """운동 기록과 운동 항목을 한 트랜잭션으로 저장 (이름이 빈 항목은 제외)"""
        conn = self.conn
        now = utcnow()
        try:
            cursor = conn.execute("""
                INSERT INTO workouts
                (user_id, title, notes, duration_minutes, calories_burned, completed_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (user_id, title, notes, duration_minutes, calories_burned,
                  to_iso(completed_at or now), to_iso(now)))
            workout_id = cursor.lastrowid

            rows = [
                (workout_id, ex["name"].strip(), ex.get("sets"), ex.get("reps"), ex.get("weight"))
                for ex in (exercises or [])
                if (ex.get("name") or "").strip()
            ]
            if rows:
                conn.executemany(
                    "INSERT INTO exercises (workout_id, name, sets, reps, weight) VALUES (?, ?, ?, ?, ?)",
                    rows
                )
            conn.commit()
        except sqlite3.Error as e:
            self._fail("운동 기록 생성", e)
        return self.get_workout(user_id, workout_id)

    def get_workout(self, user_id: int, workout_id: int) -> Optional[Dict[str, Any]]:
        """소유자의 운동 기록과 운동 항목 조회"""
        try:
            row = self.conn.execute(
                "SELECT * FROM workouts WHERE id = ? AND user_id = ?", (workout_id, user_id)
            ).fetchone()
            if not row:
                return None
            workout = dict(row)
            cursor = self.conn.execute(
                "SELECT id, workout_id, name, sets, reps, weight FROM exercises WHERE workout_id = ? ORDER BY id",
                (workout_id,)
            )
            workout["exercises"] = [dict(r) for r in cursor.fetchall()]
            return workout
        except sqlite3.Error as e:
            self._fail("운동 기록 조회", e)

    def list_workouts(self, user_id: int, limit: Optional[int] = None,
                      ascending: bool = False) -> List[Dict[str, Any]]:
        """completed_at 기준 정렬된 운동 기록 목록"""
        order = "ASC" if ascending else "DESC"
        sql = f"SELECT * FROM workouts WHERE user_id = ? ORDER BY completed_at {order}, id {order}"
        params: tuple = (user_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        try:
            return [dict(r) for r in self.conn.execute(sql, params).fetchall()]
        except sqlite3.Error as e:
            self._fail("운동 기록 목록 조회", e)

    # =========================================================================
    # Nutrition & Meals
    # =========================================================================

    def create_nutrition_log(self, user_id: int, date: str, notes: Optional[str],
                             meals: List[Dict[str, Any]]) -> Dict[str, Any]:
        """식단 기록 생성

        합계는 제출된 모든 식사로 계산하고, 이름이 있는 식사만 meals에 저장합니다.
        """
        totals = {
            key: sum((meal.get(key) or 0) for meal in meals)
            for key in ("calories", "protein", "carbs", "fat")
        }
        conn = self.conn
        try:
            cursor = conn.execute("""
                INSERT INTO nutrition
                (user_id, date, total_calories, total_protein, total_carbs, total_fat, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (user_id, date, totals["calories"], totals["protein"], totals["carbs"],
                  totals["fat"], notes, to_iso(utcnow())))
            nutrition_id = cursor.lastrowid

            rows = [
                (nutrition_id, meal["name"].strip(), meal.get("calories") or 0, meal.get("protein") or 0,
                 meal.get("carbs") or 0, meal.get("fat") or 0, meal.get("time"))
                for meal in meals
                if (meal.get("name") or "").strip()
            ]
            if rows:
                conn.executemany("""
                    INSERT INTO meals (nutrition_id, name, calories, protein, carbs, fat, time)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, rows)
            conn.commit()
        except sqlite3.Error as e:
            self._fail("식단 기록 생성", e)
        return self.get_nutrition_log(user_id, nutrition_id)

    def get_nutrition_log(self, user_id: int, nutrition_id: int) -> Optional[Dict[str, Any]]:
        try:
            row = self.conn.execute(
                "SELECT * FROM nutrition WHERE id = ? AND user_id = ?", (nutrition_id, user_id)
            ).fetchone()
            if not row:
                return None
            entry = dict(row)
            cursor = self.conn.execute(
                "SELECT * FROM meals WHERE nutrition_id = ? ORDER BY id", (nutrition_id,)
            )
            entry["meals"] = [dict(r) for r in cursor.fetchall()]
            return entry
        except sqlite3.Error as e:
            self._fail("식단 기록 조회", e)

    def list_nutrition_logs(self, user_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM nutrition WHERE user_id = ? ORDER BY date DESC, id DESC"
        params: tuple = (user_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        try:
            return [dict(r) for r in self.conn.execute(sql, params).fetchall()]
        except sqlite3.Error as e:
            self._fail("식단 기록 목록 조회", e)

    # =========================================================================
    # Health Metrics
    # =========================================================================

    def insert_health_metrics(self, user_id: int, metrics: List[Dict[str, Any]],
                              source: Optional[str] = None) -> List[Dict[str, Any]]:
        """건강 지표 일괄 저장 (기기 동기화 결과 포함)"""
        if not metrics:
            return []
        now_iso = to_iso(utcnow())
        conn = self.conn
        inserted_ids = []
        try:
            for metric in metrics:
                cursor = conn.execute("""
                    INSERT INTO health_metrics (user_id, metric_type, value, unit, source, recorded_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (user_id, metric["metric_type"], metric["value"], metric.get("unit"),
                      metric.get("source") or source or "manual",
                      to_iso(metric.get("recorded_at")) or now_iso))
                inserted_ids.append(cursor.lastrowid)
            conn.commit()
        except sqlite3.Error as e:
            self._fail("건강 지표 저장", e)

        placeholders = ",".join("?" for _ in inserted_ids)
        try:
            cursor = conn.execute(
                f"SELECT * FROM health_metrics WHERE user_id = ? AND id IN ({placeholders}) ORDER BY id",
                (user_id, *inserted_ids)
            )
            return [dict(r) for r in cursor.fetchall()]
        except sqlite3.Error as e:
            self._fail("건강 지표 조회", e)

    def list_health_metrics(self, user_id: int, limit: Optional[int] = None,
                            metric_type: Optional[str] = None,
                            ascending: bool = False) -> List[Dict[str, Any]]:
        order = "ASC" if ascending else "DESC"
        sql = "SELECT * FROM health_metrics WHERE user_id = ?"
        params: tuple = (user_id,)
        if metric_type:
            sql += " AND metric_type = ?"
            params += (metric_type,)
        sql += f" ORDER BY recorded_at {order}, id {order}"
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        try:
            return [dict(r) for r in self.conn.execute(sql, params).fetchall()]
        except sqlite3.Error as e:
            self._fail("건강 지표 목록 조회", e)

    # =========================================================================
    # AI Recommendations
    # =========================================================================

    def _row_to_recommendation(self, row: sqlite3.Row) -> Dict[str, Any]:
        item = dict(row)
        if item.get('data') is not None:
            item['data'] = json.loads(item['data'])
        return item

    def create_ai_recommendation(self, user_id: int, recommendation_type: str, title: str,
                                 description: str, data: Any, created_at: datetime,
                                 expires_at: datetime) -> Dict[str, Any]:
        """AI 추천 저장 후 저장된 행 반환 (실패 시 PersistenceError)"""
        conn = self.conn
        try:
            cursor = conn.execute("""
                INSERT INTO ai_recommendations
                (user_id, recommendation_type, title, description, data, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (user_id, recommendation_type, title, description,
                  json.dumps(data, ensure_ascii=False), to_iso(created_at), to_iso(expires_at)))
            conn.commit()
            row = conn.execute(
                "SELECT * FROM ai_recommendations WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        except sqlite3.Error as e:
            self._fail("AI 추천 저장", e)
        return self._row_to_recommendation(row)

    def get_ai_recommendation(self, user_id: int, recommendation_id: int) -> Optional[Dict[str, Any]]:
        try:
            row = self.conn.execute(
                "SELECT * FROM ai_recommendations WHERE id = ? AND user_id = ?",
                (recommendation_id, user_id)
            ).fetchone()
        except sqlite3.Error as e:
            self._fail("AI 추천 조회", e)
        return self._row_to_recommendation(row) if row else None

    def list_ai_recommendations(self, user_id: int, limit: int = 10,
                                include_expired: bool = False,
                                now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """최신순 AI 추천 목록 (기본적으로 만료된 추천 제외)"""
        sql = "SELECT * FROM ai_recommendations WHERE user_id = ?"
        params: tuple = (user_id,)
        if not include_expired:
            sql += " AND expires_at > ?"
            params += (to_iso(now or utcnow()),)
        sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params += (limit,)
        try:
            return [self._row_to_recommendation(r) for r in self.conn.execute(sql, params).fetchall()]
        except sqlite3.Error as e:
            self._fail("AI 추천 목록 조회", e)

    def purge_expired_recommendations(self, now: Optional[datetime] = None) -> int:
        """만료된 AI 추천 삭제, 삭제된 행 수 반환"""
        conn = self.conn
        try:
            cursor = conn.execute(
                "DELETE FROM ai_recommendations WHERE expires_at <= ?", (to_iso(now or utcnow()),)
            )
            conn.commit()
        except sqlite3.Error as e:
            self._fail("만료 추천 정리", e)
        return cursor.rowcount
