import logging
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional
from uuid import UUID

from ...domain.errors import ConflictError
from ...domain.models import Role, TokenType, User, VerificationToken
from ...domain.ports.persistence import PersistenceGateway

logger = logging.getLogger(__name__)


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL,
                    username TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'user',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    is_verified INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    deleted_at TEXT
                );

                CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email_live
                    ON users(email) WHERE deleted_at IS NULL;

                CREATE TABLE IF NOT EXISTS verification_tokens (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    token_hash TEXT NOT NULL UNIQUE,
                    token_type TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    consumed INTEGER NOT NULL DEFAULT 0,
                    consumed_at TEXT,
                    FOREIGN KEY(user_id) REFERENCES users(id)
                );

                CREATE INDEX IF NOT EXISTS idx_verification_tokens_user_id
                    ON verification_tokens(user_id);
                """
            )

    def close(self) -> None:
        self._conn.close()

    # UserRepository API -----------------------------------------------------
    def create_user(
        self,
        email: str,
        username: str,
        password_hash: str,
        role: Role,
        is_verified: bool = False,
    ) -> User:
        user_id = str(uuid.uuid4())
        now = self._now()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO users (
                        id, email, username, password_hash, role, is_active,
                        is_verified, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, 1, ?, ?, ?)
                    """,
                    (user_id, email, username, password_hash, role.value, int(is_verified), now, now),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Email already registered") from exc
        user = self.get_user_by_id(UUID(user_id))
        if user is None:
            raise RuntimeError("Failed to persist user.")
        return user

    def get_user_by_id(self, user_id: UUID, *, include_deleted: bool = False) -> Optional[User]:
        query = "SELECT * FROM users WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        with self._lock:
            cur = self._conn.execute(query, (str(user_id),))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM users WHERE email = ? AND deleted_at IS NULL",
                (email,),
            )
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def list_users(self, limit: int, offset: int) -> List[User]:
        with self._lock:
            cur = self._conn.execute(
                """
                SELECT * FROM users
                WHERE deleted_at IS NULL
                ORDER BY created_at ASC, rowid ASC
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = cur.fetchall()
        return [self._row_to_user(row) for row in rows]

    def count_users(self) -> int:
        with self._lock:
            cur = self._conn.execute("SELECT COUNT(*) FROM users WHERE deleted_at IS NULL")
            (total,) = cur.fetchone()
        return int(total)

    def update_user(
        self,
        user_id: UUID,
        *,
        email: Optional[str] = None,
        username: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[User]:
        updates = []
        params: List[Any] = []
        if email is not None:
            updates.append("email = ?")
            params.append(email)
        if username is not None:
            updates.append("username = ?")
            params.append(username)
        if is_active is not None:
            updates.append("is_active = ?")
            params.append(int(is_active))

        if updates:
            updates.append("updated_at = ?")
            params.append(self._now())
            params.append(str(user_id))
            statement = f"UPDATE users SET {', '.join(updates)} WHERE id = ? AND deleted_at IS NULL"
            try:
                with self._lock, self._conn:
                    self._conn.execute(statement, params)
            except sqlite3.IntegrityError as exc:
                raise ConflictError("Email already registered") from exc
        return self.get_user_by_id(user_id)

    def update_user_password(self, user_id: UUID, password_hash: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute(
                """
                UPDATE users SET password_hash = ?, updated_at = ?
                WHERE id = ? AND deleted_at IS NULL
                """,
                (password_hash, self._now(), str(user_id)),
            )
        return cur.rowcount > 0

    def set_email_verified(self, user_id: UUID) -> Optional[User]:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users SET is_verified = 1, updated_at = ?
                WHERE id = ? AND deleted_at IS NULL AND is_verified = 0
                """,
                (self._now(), str(user_id)),
            )
        return self.get_user_by_id(user_id)

    def soft_delete_user(self, user_id: UUID) -> bool:
        now = self._now()
        with self._lock, self._conn:
            cur = self._conn.execute(
                "UPDATE users SET deleted_at = ?, updated_at = ? WHERE id = ? AND deleted_at IS NULL",
                (now, now, str(user_id)),
            )
        return cur.rowcount > 0

    # TokenRepository API ----------------------------------------------------
    def create_token(
        self,
        user_id: Optional[UUID],
        token_hash: str,
        token_type: TokenType,
        expires_at: datetime,
    ) -> VerificationToken:
        token_id = str(uuid.uuid4())
        created_at = datetime.now(timezone.utc).isoformat()
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO verification_tokens (
                    id, user_id, token_hash, token_type, created_at, expires_at, consumed
                )
                VALUES (?, ?, ?, ?, ?, ?, 0)
                """,
                (
                    token_id,
                    str(user_id) if user_id else None,
                    token_hash,
                    token_type.value,
                    created_at,
                    expires_at.isoformat(),
                ),
            )
            cur = self._conn.execute("SELECT * FROM verification_tokens WHERE id = ?", (token_id,))
            row = cur.fetchone()
        if not row:
            raise RuntimeError("Failed to persist token.")
        return self._row_to_token(row)

    def get_token_by_hash(self, token_hash: str) -> Optional[VerificationToken]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM verification_tokens WHERE token_hash = ?", (token_hash,)
            )
            row = cur.fetchone()
        return self._row_to_token(row) if row else None

    def consume_token(self, token_id: UUID, consumed_at: datetime) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute(
                """
                UPDATE verification_tokens
                SET consumed = 1, consumed_at = ?
                WHERE id = ? AND consumed = 0
                """,
                (consumed_at.isoformat(), str(token_id)),
            )
        consumed = cur.rowcount == 1
        if not consumed:
            logger.debug("Token %s was already consumed.", token_id)
        return consumed

    # Helpers ----------------------------------------------------------------
    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        result = datetime.fromisoformat(value)
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            username=row["username"],
            password_hash=row["password_hash"],
            role=Role(row["role"]),
            is_active=bool(row["is_active"]),
            is_verified=bool(row["is_verified"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
            deleted_at=self._parse_datetime(row["deleted_at"]) if row["deleted_at"] else None,
        )

    def _row_to_token(self, row: sqlite3.Row) -> VerificationToken:
        return VerificationToken(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]) if row["user_id"] else None,
            token_hash=row["token_hash"],
            token_type=TokenType(row["token_type"]),
            created_at=self._parse_datetime(row["created_at"]),
            expires_at=self._parse_datetime(row["expires_at"]),
            consumed=bool(row["consumed"]),
            consumed_at=self._parse_datetime(row["consumed_at"]) if row["consumed_at"] else None,
        )
