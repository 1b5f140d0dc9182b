import os

os.environ["CACHE_BACKEND"] = "memory"
os.environ["SEAT_CHECK_DEBOUNCE_MS"] = "0"
os.environ["RECAPTCHA_SECRET_KEY"] = ""
os.environ["FRONTEND_URL"] = "http://frontend.test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from productive_space.backend_client import get_backend_client  # noqa: E402
from productive_space.cache import Cache, get_cache  # noqa: E402
from productive_space.main import app  # noqa: E402
from productive_space.timezone_utils import utc_now  # noqa: E402

from .utils import NOW, FakeBackend, auth_headers  # noqa: E402


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def cache() -> Cache:
    return Cache(backend="memory")


@pytest.fixture
def api(backend, cache):
    client = backend.client()
    app.dependency_overrides[get_backend_client] = lambda: client
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[utc_now] = lambda: NOW
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers() -> dict:
    return auth_headers()


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers(sub="admin-1", email="admin@example.com", member_type="ADMIN", full_name="Ada Admin")
