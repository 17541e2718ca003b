import asyncio
import inspect
import sys
import time
from pathlib import Path
from typing import List, Tuple

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from hostel_api.application.services.activation_service import ActivationService  # noqa: E402
from hostel_api.application.services.session_service import SessionService  # noqa: E402
from hostel_api.core.app_factory import create_application  # noqa: E402
from hostel_api.core.config import Settings  # noqa: E402
from hostel_api.core.container import build_container  # noqa: E402
from hostel_api.infrastructure.cache.memory_session_cache import MemorySessionCache  # noqa: E402
from hostel_api.infrastructure.repositories.user_repository import UserRepository  # noqa: E402
from hostel_api.services.password_hasher import PasswordHasher  # noqa: E402

ACTIVATION_SECRET = "activation-secret-for-tests-only-0123456789"
ACCESS_SECRET = "access-secret-for-tests-only-0123456789abcd"
REFRESH_SECRET = "refresh-secret-for-tests-only-0123456789abc"


class RecordingEmailService:
    """Captures activation emails instead of talking to SMTP."""

    def __init__(self, deliver: bool = True) -> None:
        self.deliver = deliver
        self.sent: List[Tuple[str, str, str]] = []

    def send_activation_email(self, to_email: str, name: str, activation_code: str) -> bool:
        self.sent.append((to_email, name, activation_code))
        return self.deliver

    @property
    def last_code(self) -> str:
        return self.sent[-1][2]


async def max_loop_stall(work):
    """Run ``work`` next to a 5 ms ticker and report the longest gap between ticks."""
    stalls = []
    done = asyncio.Event()

    async def ticker():
        last = time.perf_counter()
        while not done.is_set():
            await asyncio.sleep(0.005)
            now = time.perf_counter()
            stalls.append(now - last)
            last = now

    task = asyncio.create_task(ticker())
    await asyncio.sleep(0.01)
    try:
        result = await work
    finally:
        done.set()
        await task
    return result, max(stalls, default=0.0)


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("ACTIVATION_SECRET", ACTIVATION_SECRET)
    monkeypatch.setenv("ACCESS_TOKEN_SECRET", ACCESS_SECRET)
    monkeypatch.setenv("REFRESH_TOKEN_SECRET", REFRESH_SECRET)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "hostel.db"))
    monkeypatch.setenv("ALLOW_MEMORY_SESSION_CACHE", "true")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("ORIGIN", raising=False)
    return monkeypatch


@pytest.fixture
def settings(env):
    return Settings()


@pytest.fixture
def user_repository(tmp_path):
    return UserRepository(tmp_path / "users.db")


@pytest.fixture
def session_cache():
    return MemorySessionCache()


@pytest.fixture
def mailer():
    return RecordingEmailService()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def activation_service(user_repository, hasher, mailer):
    return ActivationService(user_repository, hasher, mailer, secret=ACTIVATION_SECRET)


@pytest.fixture
def session_service(user_repository, session_cache, hasher):
    return SessionService(
        user_repository,
        session_cache,
        hasher,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
    )


@pytest.fixture
def container(settings, mailer, session_cache):
    return build_container(settings, session_cache=session_cache, email_service=mailer)


@pytest.fixture
def client(container):
    app = create_application(container=container)
    with TestClient(app) as test_client:
        yield test_client


def pytest_pyfunc_call(pyfuncitem):
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
            if name in pyfuncitem.funcargs
        }
        asyncio.run(pyfuncitem.obj(**call_kwargs))
        return True
    return None


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")
