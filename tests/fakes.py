"""In-memory stand-in for the Supabase async client.

Covers the slice of the client the app uses: GoTrue auth, the PostgREST
query builder for one table, and Realtime channels.
"""

import uuid
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

from postgrest.exceptions import APIError
from supabase import AuthError as SupabaseAuthError

VERIFIER_KEY = "sb-test-auth-token-code-verifier"


class FakeAuthError(SupabaseAuthError):
    def __init__(self, message: str) -> None:
        Exception.__init__(self, message)
        self.message = message


class FakeBackend:
    """Shared server-side state seen by every fake client."""

    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.users: dict[str, SimpleNamespace] = {}
        self.codes: dict[str, str] = {}  # auth code -> access token
        self.refresh: dict[str, str] = {}  # refresh token -> new access token
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, list[Any]] = {}  # operation -> [calls to skip, error]
        self.channels: list["FakeChannel"] = []
        self.removed_channels: list["FakeChannel"] = []
        self.on_execute: Any = None  # called with the operation after each query
        self.signed_out: list[str] = []
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def add_user(self, email: str, access_token: str, refresh_token: str) -> SimpleNamespace:
        user = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            refresh_token=refresh_token,
        )
        self.users[access_token] = user
        return user

    def fail(self, operation: str, message: str = "backend unavailable", after: int = 0) -> None:
        """Make a call of an operation (select/insert/delete) fail.

        The first `after` calls still succeed; the one after that fails.
        """
        self.failures[operation] = [after, APIError({"message": message, "code": "500"})]

    def insert_row(self, user_id: str, title: str, url: str) -> dict[str, Any]:
        self._clock += timedelta(seconds=1)
        row = {
            "id": str(uuid.uuid4()),
            "title": title,
            "url": url,
            "user_id": user_id,
            "created_at": self._clock.isoformat(),
        }
        self.rows.append(row)
        return row

    def emit(self, payload: dict[str, Any]) -> int:
        """Deliver a change notification to every subscribed channel."""
        delivered = 0
        for channel in self.channels:
            if channel.subscribed:
                for callback in channel.callbacks:
                    callback(payload)
                    delivered += 1
        return delivered

    def close_channels(self, status: str = "CLOSED", error: Exception | None = None) -> None:
        """Report a channel status, as Realtime does when it drops a channel."""
        for channel in self.channels:
            if channel.subscribed and channel.status_callback is not None:
                channel.status_callback(status, error)

    def calls_for(self, operation: str) -> list[dict[str, Any]]:
        return [params for op, params in self.calls if op == operation]


class FakeQuery:
    def __init__(self, backend: FakeBackend, table: str) -> None:
        self.backend = backend
        self.table = table
        self.operation = "select"
        self.payload: dict[str, Any] | None = None
        self.filters: dict[str, str] = {}
        self.order_desc: bool | None = None

    def select(self, columns: str = "*") -> "FakeQuery":
        self.operation = "select"
        return self

    def insert(self, payload: dict[str, Any]) -> "FakeQuery":
        self.operation = "insert"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.operation = "delete"
        return self

    def eq(self, column: str, value: str) -> "FakeQuery":
        self.filters[column] = value
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        assert column == "created_at"
        self.order_desc = desc
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row[column] == value for column, value in self.filters.items())

    async def execute(self) -> SimpleNamespace:
        self.backend.calls.append(
            (self.operation, {"filters": dict(self.filters), "payload": self.payload})
        )
        failure = self.backend.failures.get(self.operation)
        if failure is not None:
            if failure[0] == 0:
                del self.backend.failures[self.operation]
                raise failure[1]
            failure[0] -= 1

        result = self._run()
        if self.backend.on_execute is not None:
            self.backend.on_execute(self.operation)
        return result

    def _run(self) -> SimpleNamespace:
        if self.operation == "insert":
            row = self.backend.insert_row(
                self.payload["user_id"], self.payload["title"], self.payload["url"]
            )
            return SimpleNamespace(data=[dict(row)])

        matched = [row for row in self.backend.rows if self._matches(row)]
        if self.operation == "delete":
            self.backend.rows = [r for r in self.backend.rows if r not in matched]
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self.order_desc is not None:
            matched.sort(key=lambda r: r["created_at"], reverse=self.order_desc)
        return SimpleNamespace(data=[dict(r) for r in matched])


class FakeChannel:
    def __init__(self, backend: FakeBackend, name: str) -> None:
        self.backend = backend
        self.name = name
        self.callbacks: list[Any] = []
        self.bindings: list[dict[str, Any]] = []
        self.subscribed = False
        self.status_callback: Any = None

    def on_postgres_changes(self, event, callback, table="*", schema="public", filter=None):
        self.bindings.append(
            {"event": event, "table": table, "schema": schema, "filter": filter}
        )
        self.callbacks.append(callback)
        return self

    async def subscribe(self, callback=None):
        self.subscribed = True
        self.status_callback = callback
        self.backend.channels.append(self)
        if callback is not None:
            callback("SUBSCRIBED", None)
        return self


class FakeRealtime:
    def __init__(self) -> None:
        self.token: str | None = None

    async def set_auth(self, token: str) -> None:
        self.token = token


class FakeAuth:
    def __init__(self, backend: FakeBackend, storage: Any) -> None:
        self.backend = backend
        self.storage = storage
        self.access_token: str | None = None

    def _response(self, access_token: str) -> SimpleNamespace:
        user = self.backend.users[access_token]
        return SimpleNamespace(
            session=SimpleNamespace(
                access_token=access_token, refresh_token=user.refresh_token
            ),
            user=SimpleNamespace(id=user.id, email=user.email),
        )

    async def set_session(self, access_token: str, refresh_token: str) -> SimpleNamespace:
        if access_token not in self.backend.users:
            # Expired access token: try the refresh token
            access_token = self.backend.refresh.get(refresh_token, "")
            if access_token not in self.backend.users:
                raise FakeAuthError("Invalid Refresh Token")
        self.access_token = access_token
        return self._response(access_token)

    async def sign_in_with_oauth(self, credentials: dict[str, Any]) -> SimpleNamespace:
        await self.storage.set_item(VERIFIER_KEY, "verifier-123")
        provider = credentials["provider"]
        redirect_to = credentials["options"]["redirect_to"]
        return SimpleNamespace(
            provider=provider,
            url=f"https://auth.example.test/authorize?provider={provider}&redirect_to={redirect_to}",
        )

    async def exchange_code_for_session(self, params: dict[str, Any]) -> SimpleNamespace:
        verifier = await self.storage.get_item(VERIFIER_KEY)
        access_token = self.backend.codes.get(params["auth_code"])
        if verifier != "verifier-123" or access_token is None:
            raise FakeAuthError("invalid flow state, no valid flow state found")
        await self.storage.remove_item(VERIFIER_KEY)
        self.access_token = access_token
        return self._response(access_token)

    async def sign_out(self) -> None:
        if self.access_token is not None:
            self.backend.signed_out.append(self.access_token)
        self.access_token = None


class FakeSupabaseClient:
    def __init__(self, backend: FakeBackend, storage: Any = None) -> None:
        self.backend = backend
        self.auth = FakeAuth(backend, storage)
        self.realtime = FakeRealtime()
        self.removed_channels: list[FakeChannel] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.backend, name)

    def channel(self, name: str) -> FakeChannel:
        return FakeChannel(self.backend, name)

    async def remove_channel(self, channel: FakeChannel) -> None:
        channel.subscribed = False
        self.removed_channels.append(channel)
        self.backend.removed_channels.append(channel)
