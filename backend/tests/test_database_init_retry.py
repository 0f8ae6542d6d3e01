from types import SimpleNamespace

import pytest

from carelink import database


class _FakeConn:
    def __init__(self) -> None:
        self.statements = []

    async def exec_driver_sql(self, sql: str) -> None:
        self.statements.append(sql)

    async def run_sync(self, _fn) -> None:
        return None


class _FakeBeginFactory:
    def __init__(self, fail_times: int) -> None:
        self.fail_times = fail_times
        self.calls = 0
        self.conn = _FakeConn()

    def __call__(self):
        self.calls += 1
        call_number = self.calls
        fail_times = self.fail_times
        conn = self.conn

        class _Ctx:
            async def __aenter__(self_nonlocal):
                if call_number <= fail_times:
                    raise ConnectionError("db not ready")
                return conn

            async def __aexit__(self_nonlocal, exc_type, exc, tb):
                return False

        return _Ctx()


@pytest.fixture()
def fast_retries(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(database.settings, "debug", False, raising=False)
    monkeypatch.setattr(database.settings, "database_init_retry_delay_seconds", 0.01, raising=False)

    async def _noop_sleep(_seconds: float) -> None:
        return None

    monkeypatch.setattr(database.asyncio, "sleep", _noop_sleep)


@pytest.mark.anyio
async def test_init_db_retries_until_success(monkeypatch: pytest.MonkeyPatch, fast_retries) -> None:
    begin_factory = _FakeBeginFactory(fail_times=2)
    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=begin_factory))
    monkeypatch.setattr(database.settings, "database_init_retries", 3, raising=False)

    await database.init_db()

    assert begin_factory.calls == 3
    assert begin_factory.conn.statements == ["SELECT 1"]


@pytest.mark.anyio
async def test_init_db_raises_after_retries_exhausted(
    monkeypatch: pytest.MonkeyPatch,
    fast_retries,
) -> None:
    begin_factory = _FakeBeginFactory(fail_times=10)
    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=begin_factory))
    monkeypatch.setattr(database.settings, "database_init_retries", 1, raising=False)

    with pytest.raises(ConnectionError, match="db not ready"):
        await database.init_db()

    assert begin_factory.calls == 2
