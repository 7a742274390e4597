"""
Database-backed user store (Postgres).

Why: In-memory users vanish on restart and do not scale across instances.
This store persists accounts in the `users` table while exposing the same
protocol as `stores.UserStore`.

Security:
- Password hashes are selected only where login needs them; listing queries
  still map to `User` records but the web layer never serializes the hash.
- Email uniqueness is enforced by a unique index; violations surface as
  `EmailTakenError`.

Note: Uses psycopg3 with a short-lived connection per call.
"""
from __future__ import annotations

import os
from typing import List, Optional, Tuple

import psycopg
from psycopg import errors as pg_errors

from .domain import Role, User
from .stores import EmailTakenError

_USER_COLUMNS_SQL = (
    "id::text, name, email, role, password_hash, "
    "to_char(created_at at time zone 'utc', 'YYYY-MM-DD\"T\"HH24:MI:SS\"+00:00\"')"
)


def _row_to_user(row: Tuple) -> User:
    return User(
        id=row[0],
        name=row[1],
        email=row[2],
        role=Role(row[3]),
        password_hash=row[4] or "",
        created_at=row[5],
    )


class DBUserStore:
    """Postgres-backed user store.

    Parameters
    ----------
    dsn:
        Psycopg3 connection string. Defaults to `DATABASE_URL`.
    """

    def __init__(self, dsn: str | None = None) -> None:
        self._dsn = dsn or os.getenv("DATABASE_URL", "")
        if not self._dsn:
            raise RuntimeError("No database DSN provided for DBUserStore")

    def create(self, *, name: str, email: str, password_hash: str, role: Role) -> User:
        try:
            with psycopg.connect(self._dsn) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"insert into public.users (name, email, password_hash, role) "
                        f"values (%s, %s, %s, %s) returning {_USER_COLUMNS_SQL}",
                        (name, email.strip().lower(), password_hash, role.value),
                    )
                    row = cur.fetchone()
        except pg_errors.UniqueViolation as exc:
            raise EmailTakenError() from exc
        if not row:
            raise RuntimeError("user insert returned no row")
        return _row_to_user(row)

    def get_by_id(self, user_id: str) -> Optional[User]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"select {_USER_COLUMNS_SQL} from public.users where id = %s::uuid",
                    (user_id,),
                )
                row = cur.fetchone()
        return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"select {_USER_COLUMNS_SQL} from public.users where email = %s",
                    ((email or "").strip().lower(),),
                )
                row = cur.fetchone()
        return _row_to_user(row) if row else None

    def list_all(self) -> List[User]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(f"select {_USER_COLUMNS_SQL} from public.users order by created_at desc")
                rows = cur.fetchall()
        return [_row_to_user(r) for r in rows or []]

    def delete(self, user_id: str) -> None:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute("delete from public.users where id = %s::uuid", (user_id,))
