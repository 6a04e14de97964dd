"""
Shared fixtures

FakeSessionFactory stands in for the async_sessionmaker injected into the
services. Each executed statement is matched (whitespace-normalized) against
substring routes; the first match decides the result.
"""
import pytest


def normalize_sql(sql: str) -> str:
    return " ".join(str(sql).split())


class FakeResult:
    def __init__(self, rows=None, scalar=None):
        self.rows = list(rows or [])
        self.scalar = scalar

    def fetchall(self):
        return list(self.rows)

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def scalar_one(self):
        return self.scalar

    def scalar_one_or_none(self):
        return self.scalar


class _FakeTransaction:
    def __init__(self, factory):
        self.factory = factory

    async def __aenter__(self):
        self.factory.transactions += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.factory.commits += 1
        else:
            self.factory.rollbacks += 1
        return False


class _FakeSession:
    def __init__(self, factory):
        self.factory = factory

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def begin(self):
        return _FakeTransaction(self.factory)

    async def execute(self, statement, params=None):
        sql = normalize_sql(statement)
        self.factory.executed.append((sql, dict(params or {})))
        for fragment, result in self.factory.routes:
            if fragment in sql:
                if callable(result):
                    result = result(sql, params or {})
                if isinstance(result, Exception):
                    raise result
                if isinstance(result, FakeResult):
                    return result
                return FakeResult(result)
        return FakeResult()


class FakeSessionFactory:
    """Callable like async_sessionmaker; records every statement it executes"""

    def __init__(self, routes=None):
        self.routes = list(routes or [])
        self.executed = []
        self.transactions = 0
        self.commits = 0
        self.rollbacks = 0

    def __call__(self):
        return _FakeSession(self)

    def statements_containing(self, fragment: str):
        return [(sql, params) for sql, params in self.executed if fragment in sql]


@pytest.fixture
def make_session_factory():
    """Build a FakeSessionFactory from (sql fragment, rows | FakeResult | callable) routes"""
    def _make(*routes):
        return FakeSessionFactory(routes)
    return _make


@pytest.fixture
def fake_result():
    """FakeResult class, for routes that need scalar_one() values"""
    return FakeResult
