"""In-process store serving the REST and auth contract from DuckDB.

Used when no hosted store is configured and by the test suite. It implements
only what the clients in this package call:

- ``/rest/v1/{table}``: GET/POST/PATCH/DELETE with ``eq, neq, gt, gte, lt,
  lte, is`` filters, ``select``, ``order``, ``limit`` and ``Prefer: count=exact``
- ``/auth/v1/token?grant_type=password``, ``/auth/v1/logout``, ``/auth/v1/user``

Uniqueness violations answer 409 like the hosted store; business rules the
hosted store enforces with policies and triggers (closed sessions, unknown
candidates, admin-only writes, cascading deletes) are checked here directly.
"""

import json
import secrets
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import duckdb
import httpx
from loguru import logger

from ballot_client.local.tables import ADMIN_TABLES, ALL_DDL, COLUMNS, IMMUTABLE, VIEWS

OPERATORS = {"eq": "=", "neq": "<>", "gt": ">", "gte": ">=", "lt": "<", "lte": "<="}
RESERVED_PARAMS = {"select", "order", "limit", "offset"}


class StoreError(Exception):
    """Request rejected by the local store."""

    def __init__(self, status: int, message: str, code: str | None = None):
        self.status = status
        self.message = message
        self.code = code
        super().__init__(message)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def _coerce(kind: type, raw: Any) -> Any:
    """Coerce a JSON or query-string value to the column's type."""
    if raw is None:
        return None
    if kind is bool:
        if isinstance(raw, bool):
            return raw
        if str(raw).lower() in ("true", "false"):
            return str(raw).lower() == "true"
        raise StoreError(400, f"invalid input syntax for type boolean: {raw!r}", "22P02")
    if kind is datetime:
        if isinstance(raw, datetime):
            return raw
        try:
            parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError:
            raise StoreError(400, f"invalid input syntax for type timestamp: {raw!r}", "22007") from None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    if kind in (int, float):
        try:
            return kind(raw)
        except (TypeError, ValueError):
            raise StoreError(400, f"invalid input syntax for type {kind.__name__}: {raw!r}", "22P02") from None
    return str(raw)


class LocalStore(httpx.AsyncBaseTransport):
    """httpx transport backed by a DuckDB database."""

    def __init__(
        self,
        path: str = ":memory:",
        anon_key: str = "local-anon-key",
        admins: dict[str, str] | None = None,
    ):
        self._path = path
        self._anon_key = anon_key
        self._admins = dict(admins or {})
        self._tokens: dict[str, dict] = {}
        self._conn = duckdb.connect(path)
        for ddl in ALL_DDL:
            self._conn.execute(ddl)
        logger.info("Local store ready: {}", path)

    # Shared by several clients; closing one client must not close the store.
    async def aclose(self) -> None:
        return None

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Local store closed: {}", self._path)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        try:
            return self._dispatch(request)
        except StoreError as e:
            logger.debug("Local store {} {}: {} {}", request.method, request.url.path, e.status, e.message)
            return self._json(e.status, {"code": e.code, "details": None, "hint": None, "message": e.message})
        except duckdb.Error as e:
            logger.warning("Local store {} {}: {}", request.method, request.url.path, e)
            return self._json(400, {"code": "XX000", "details": None, "hint": None, "message": str(e)})

    # ========== Routing ==========

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("apikey") != self._anon_key:
            raise StoreError(401, "Invalid API key")

        parts = request.url.path.strip("/").split("/")
        if parts[:2] == ["auth", "v1"] and len(parts) == 3:
            return self._auth(request, parts[2])
        if parts[:2] == ["rest", "v1"] and len(parts) == 3:
            return self._rest(request, parts[2])
        raise StoreError(404, f"Not found: {request.url.path}")

    def _rest(self, request: httpx.Request, table: str) -> httpx.Response:
        if table not in COLUMNS:
            raise StoreError(404, f'relation "public.{table}" does not exist', "42P01")

        method = request.method
        if method == "GET":
            return self._select(request, table)
        if table in VIEWS:
            raise StoreError(405, f"cannot modify view {table}", "42809")
        if table in ADMIN_TABLES and self._user(request) is None:
            raise StoreError(401, f'permission denied for table "{table}"', "42501")
        if method == "POST":
            return self._insert(request, table)
        if table not in ADMIN_TABLES:
            raise StoreError(401, f'permission denied for table "{table}"', "42501")
        if method == "PATCH":
            return self._update(request, table)
        if method == "DELETE":
            return self._delete(request, table)
        raise StoreError(405, f"method {method} not allowed")

    # ========== Query building ==========

    def _column(self, table: str, name: str) -> type:
        if name not in COLUMNS[table]:
            raise StoreError(400, f"column {table}.{name} does not exist", "42703")
        return COLUMNS[table][name]

    def _where(self, request: httpx.Request, table: str) -> tuple[str, list]:
        clauses, params = [], []
        for key, value in request.url.params.multi_items():
            if key in RESERVED_PARAMS:
                continue
            kind = self._column(table, key)
            op, _, raw = value.partition(".")
            if op == "is":
                checks = {"null": "IS NULL", "true": "IS TRUE", "false": "IS FALSE"}
                if raw not in checks:
                    raise StoreError(400, f"invalid 'is' value: {raw}", "PGRST100")
                clauses.append(f"{key} {checks[raw]}")
            elif op in OPERATORS:
                clauses.append(f"{key} {OPERATORS[op]} ?")
                params.append(_coerce(kind, raw))
            else:
                raise StoreError(400, f"unsupported operator: {op}", "PGRST100")
        return (" WHERE " + " AND ".join(clauses)) if clauses else "", params

    def _order(self, request: httpx.Request, table: str) -> str:
        clause = request.url.params.get("order")
        if not clause:
            return ""
        terms = []
        for item in clause.split(","):
            name, _, direction = item.partition(".")
            self._column(table, name)
            direction = direction or "asc"
            if direction not in ("asc", "desc"):
                raise StoreError(400, f"invalid order direction: {direction}", "PGRST100")
            terms.append(f"{name} {direction.upper()}")
        return " ORDER BY " + ", ".join(terms)

    def _columns(self, request: httpx.Request, table: str) -> str:
        clause = request.url.params.get("select", "*")
        if clause == "*":
            return "*"
        names = [c.strip() for c in clause.split(",") if c.strip()]
        for name in names:
            self._column(table, name)
        return ", ".join(names)

    def _fetch(self, sql: str, params: list) -> list[dict]:
        cursor = self._conn.execute(sql, params)
        names = [d[0] for d in cursor.description]
        return [{n: _jsonable(v) for n, v in zip(names, row)} for row in cursor.fetchall()]

    # ========== Handlers ==========

    def _select(self, request: httpx.Request, table: str) -> httpx.Response:
        where, params = self._where(request, table)
        sql = f"SELECT {self._columns(request, table)} FROM {table}{where}{self._order(request, table)}"
        limit = request.url.params.get("limit")
        if limit is not None:
            if not limit.isdigit():
                raise StoreError(400, f"invalid limit: {limit}", "PGRST100")
            sql += f" LIMIT {int(limit)}"
        rows = self._fetch(sql, params)

        headers = {}
        if "count=exact" in request.headers.get("prefer", ""):
            total = self._conn.execute(f"SELECT COUNT(*) FROM {table}{where}", params).fetchone()[0]
            headers["Content-Range"] = f"0-{len(rows) - 1}/{total}" if rows else f"*/{total}"
        return self._json(200, rows, headers)

    def _body(self, request: httpx.Request) -> Any:
        try:
            return json.loads(request.content or b"null")
        except ValueError:
            raise StoreError(400, "Empty or invalid json", "PGRST102") from None

    def _insert(self, request: httpx.Request, table: str) -> httpx.Response:
        body = self._body(request)
        rows = [body] if isinstance(body, dict) else body
        if not isinstance(rows, list) or not rows or not all(isinstance(r, dict) for r in rows):
            raise StoreError(400, "Empty or invalid json", "PGRST102")

        prepared = [self._prepare(table, row) for row in rows]
        inserted = []
        self._conn.begin()
        try:
            for row in prepared:
                cols = ", ".join(row)
                marks = ", ".join("?" for _ in row)
                inserted += self._fetch(f"INSERT INTO {table} ({cols}) VALUES ({marks}) RETURNING *", list(row.values()))
            self._conn.commit()
        except duckdb.ConstraintException as e:
            self._conn.rollback()
            if "NOT NULL" in str(e):
                raise StoreError(400, str(e), "23502") from None
            raise StoreError(409, f"duplicate key value violates unique constraint on {table}", "23505") from None
        except BaseException:
            self._conn.rollback()
            raise
        logger.debug("Local store: +{} {}", len(inserted), table)
        return self._json(201, inserted)

    def _prepare(self, table: str, row: dict) -> dict:
        """Validate and complete one row before insertion."""
        values = {k: _coerce(self._column(table, k), v) for k, v in row.items()}
        values.setdefault("id", str(uuid.uuid4()))
        values.setdefault("created_at", _now())

        if table == "elections":
            values.setdefault("is_open", False)
        elif table in ("candidates", "voters"):
            if not self._exists("elections", values.get("election_id")):
                raise StoreError(422, "Unknown election", "23503")
        elif table == "votes":
            self._prepare_vote(values)
        return values

    def _prepare_vote(self, values: dict) -> None:
        found = self._conn.execute(
            """
            SELECT c.election_id, c.position, e.is_open
            FROM candidates c JOIN elections e ON e.id = c.election_id
            WHERE c.id = ?
            """,
            [values.get("candidate_id")],
        ).fetchone()
        if found is None:
            raise StoreError(422, "Invalid candidate", "23503")
        election_id, position, is_open = found
        if values.setdefault("election_id", election_id) != election_id:
            raise StoreError(422, "Candidate does not belong to this election", "23514")
        if values.setdefault("position", position) != position:
            raise StoreError(422, "Candidate does not stand for this position", "23514")
        if not is_open:
            raise StoreError(422, "Voting session is closed", "P0001")
        voter = self._conn.execute("SELECT election_id FROM voters WHERE id = ?", [values.get("voter_id")]).fetchone()
        if voter is None or voter[0] != election_id:
            raise StoreError(422, "Unknown voter", "23503")

    def _exists(self, table: str, row_id: Any) -> bool:
        if row_id is None:
            return False
        return self._conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", [str(row_id)]).fetchone() is not None

    def _update(self, request: httpx.Request, table: str) -> httpx.Response:
        body = self._body(request)
        if not isinstance(body, dict) or not body:
            raise StoreError(400, "Empty or invalid json", "PGRST102")
        values = {k: _coerce(self._column(table, k), v) for k, v in body.items() if k not in IMMUTABLE}
        if not values:
            raise StoreError(400, "Nothing to update", "PGRST102")

        where, params = self._where(request, table)
        if not where:
            raise StoreError(400, "UPDATE requires a WHERE clause", "21000")
        assignments = ", ".join(f"{k} = ?" for k in values)
        rows = self._fetch(f"UPDATE {table} SET {assignments}{where} RETURNING *", [*values.values(), *params])
        return self._json(200, rows)

    def _delete(self, request: httpx.Request, table: str) -> httpx.Response:
        where, params = self._where(request, table)
        if not where:
            raise StoreError(400, "DELETE requires a WHERE clause", "21000")

        if table == "candidates":
            open_hits = self._conn.execute(
                f"""
                SELECT COUNT(*) FROM candidates c JOIN elections e ON e.id = c.election_id
                WHERE e.is_open AND c.id IN (SELECT id FROM candidates{where})
                """,
                params,
            ).fetchone()[0]
            if open_hits:
                raise StoreError(422, "Cannot delete candidates while voting is open", "P0001")
            return self._json(200, self._fetch(f"DELETE FROM candidates{where} RETURNING *", params))

        # elections: cascade to dependents
        ids = [r[0] for r in self._conn.execute(f"SELECT id FROM elections{where}", params).fetchall()]
        if not ids:
            return self._json(200, [])
        marks = ", ".join("?" for _ in ids)
        self._conn.begin()
        try:
            for dependent in ("votes", "voters", "candidates"):
                self._conn.execute(f"DELETE FROM {dependent} WHERE election_id IN ({marks})", ids)
            rows = self._fetch(f"DELETE FROM elections WHERE id IN ({marks}) RETURNING *", ids)
            self._conn.commit()
        except BaseException:
            self._conn.rollback()
            raise
        logger.info("Local store: deleted {} elections with dependents", len(rows))
        return self._json(200, rows)

    # ========== Auth ==========

    def _user(self, request: httpx.Request) -> dict | None:
        auth = request.headers.get("authorization", "")
        token = auth.removeprefix("Bearer ").strip()
        return self._tokens.get(token)

    def _auth(self, request: httpx.Request, action: str) -> httpx.Response:
        if action == "token" and request.method == "POST":
            if request.url.params.get("grant_type") != "password":
                raise StoreError(400, "unsupported grant_type", "unsupported_grant_type")
            body = self._body(request) or {}
            email, password = body.get("email"), body.get("password")
            if not email or self._admins.get(email) != password:
                raise StoreError(400, "Invalid login credentials", "invalid_grant")
            token = secrets.token_urlsafe(32)
            user = {"id": str(uuid.uuid5(uuid.NAMESPACE_URL, email)), "email": email, "role": "authenticated"}
            self._tokens[token] = user
            return self._json(
                200,
                {
                    "access_token": token,
                    "token_type": "bearer",
                    "expires_in": 3600,
                    "refresh_token": secrets.token_urlsafe(16),
                    "user": user,
                },
            )
        if action == "logout" and request.method == "POST":
            auth = request.headers.get("authorization", "")
            self._tokens.pop(auth.removeprefix("Bearer ").strip(), None)
            return httpx.Response(204)
        if action == "user" and request.method == "GET":
            user = self._user(request)
            if user is None:
                raise StoreError(401, "invalid JWT", "bad_jwt")
            return self._json(200, user)
        raise StoreError(404, f"Not found: /auth/v1/{action}")

    @staticmethod
    def _json(status: int, payload: Any, headers: dict | None = None) -> httpx.Response:
        return httpx.Response(status, json=payload, headers=headers)
