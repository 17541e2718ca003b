"""Repository for identity persistence."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

from hostel_api.domain.errors import InfrastructureError
from hostel_api.domain.models.user import Avatar, HostelRequestStatus, Role, User
from hostel_api.infrastructure.errors import ConstraintViolation

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for managing identity records in SQLite."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_table()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a short-lived connection; commits on success, rolls back on error."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            logger.error("Unable to open user store at %s: %s", self.db_path, exc)
            raise InfrastructureError() from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            raise ConstraintViolation(str(exc), {"table": "users"}) from exc
        except sqlite3.Error as exc:
            logger.error("User store operation failed: %s", exc)
            raise InfrastructureError() from exc
        finally:
            conn.close()

    def _initialize_table(self) -> None:
        """Create the users table and its indexes if they don't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT UNIQUE NOT NULL,
                    phone TEXT,
                    password_hash TEXT,
                    avatar_public_id TEXT,
                    avatar_url TEXT,
                    role TEXT NOT NULL DEFAULT 'user',
                    is_active INTEGER NOT NULL DEFAULT 0,
                    hostel_request_status TEXT NOT NULL DEFAULT 'none',
                    hostel_id TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)"
            )

    def create(
        self,
        *,
        name: str,
        email: str,
        phone: Optional[str],
        password_hash: Optional[str],
        avatar: Optional[Avatar] = None,
        role: Role = Role.USER,
        is_active: bool = False,
    ) -> User:
        """Create a new identity. The UNIQUE email column settles concurrent inserts."""
        now = datetime.utcnow().isoformat()

        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO users (
                    name, email, phone, password_hash, avatar_public_id, avatar_url,
                    role, is_active, hostel_request_status, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    name,
                    email,
                    phone,
                    password_hash,
                    avatar.public_id if avatar else None,
                    avatar.url if avatar else None,
                    role.value,
                    1 if is_active else 0,
                    HostelRequestStatus.NONE.value,
                    now,
                    now,
                ),
            )
            user_id = cursor.lastrowid

        return User(
            id=user_id,
            name=name,
            email=email,
            phone=phone,
            password_hash=password_hash,
            avatar=avatar,
            role=role,
            is_active=is_active,
            hostel_request_status=HostelRequestStatus.NONE,
            created_at=datetime.fromisoformat(now),
            updated_at=datetime.fromisoformat(now),
        )

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE id = ?", (user_id,)
            ).fetchone()

        return self._row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (already normalised) email."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email,)
            ).fetchone()

        return self._row_to_user(row) if row else None

    def activate(self, user_id: int) -> bool:
        """Mark an inactive identity active. Returns False if it was already active or missing."""
        now = datetime.utcnow().isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE users
                SET is_active = 1, updated_at = ?
                WHERE id = ? AND is_active = 0
                """,
                (now, user_id),
            )
            return cursor.rowcount == 1

    def claim_pending(self, user_id: int) -> bool:
        """Activate a pending identity through a trusted provider, discarding its unconfirmed password."""
        now = datetime.utcnow().isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE users
                SET is_active = 1, password_hash = NULL, updated_at = ?
                WHERE id = ? AND is_active = 0
                """,
                (now, user_id),
            )
            return cursor.rowcount == 1

    def _row_to_user(self, row: sqlite3.Row) -> User:
        """Convert database row to User entity."""
        avatar = None
        if row["avatar_public_id"] or row["avatar_url"]:
            avatar = Avatar(public_id=row["avatar_public_id"], url=row["avatar_url"])

        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            password_hash=row["password_hash"],
            avatar=avatar,
            role=Role(row["role"]),
            is_active=bool(row["is_active"]),
            hostel_request_status=HostelRequestStatus(row["hostel_request_status"]),
            hostel_id=row["hostel_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
