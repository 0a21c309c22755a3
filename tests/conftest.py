import pytest
from httpx import ASGITransport, AsyncClient

from btctax.api.deps import get_settings
from btctax.api.main import app
from btctax.config import Settings


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture()
async def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
