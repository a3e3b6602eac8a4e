import httpx
import pytest

from app.main import app
from tests.helpers import FakeGenerator


@pytest.fixture()
def fake_generator():
    generator = FakeGenerator(names=["Alice", "Bob"])
    yield generator
    generator.gate.set()


@pytest.fixture()
def recorded_sleeps():
    return []


@pytest.fixture()
def fake_sleep(recorded_sleeps):
    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return _sleep


@pytest.fixture()
async def client():
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture()
def anyio_backend():
    return "asyncio"
