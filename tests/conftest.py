import pytest
from httpx import ASGITransport, AsyncClient

from assetvault import api
from assetvault.config import MIN_BCRYPT_ROUNDS, get_settings
from assetvault.connections import CONNECTIONS, es, vault_connections
from assetvault.models import User
from assetvault.systemdata.manage import create_or_update_systemdata, delete_systemdata
from assetvault.systemdata.users import register_user
from tests.fake_elastic import FakeElasticsearch

ASSETVAULT_TESTS_PREFIX = "assetvault_unittest"


def pytest_addoption(parser):
    parser.addoption(
        "--elastic",
        action="store_true",
        help="Run the store tests against the elasticsearch cluster from the settings instead of in memory",
    )


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Store assets in a fresh directory and keep password hashing cheap"""
    settings = get_settings()
    old = settings.asset_root, settings.bcrypt_rounds, settings.system_index
    settings.asset_root = tmp_path / "assets"
    settings.asset_root.mkdir()
    settings.bcrypt_rounds = MIN_BCRYPT_ROUNDS
    settings.system_index = ASSETVAULT_TESTS_PREFIX
    yield settings
    settings.asset_root, settings.bcrypt_rounds, settings.system_index = old


@pytest.fixture()
async def elastic(request):
    if request.config.getoption("--elastic"):
        async with vault_connections():
            await delete_systemdata()
            await create_or_update_systemdata()
            yield es()
            await delete_systemdata()
    else:
        fake = FakeElasticsearch()
        CONNECTIONS.elastic = fake  # type: ignore[assignment]
        await create_or_update_systemdata()
        yield fake
        CONNECTIONS.elastic = None


@pytest.fixture()
def fake_elastic(request, elastic) -> FakeElasticsearch:
    """The in-memory store, for tests that inject store failures"""
    if request.config.getoption("--elastic"):
        pytest.skip("Failures can only be injected in the in-memory store")
    return elastic


@pytest.fixture()
async def client(elastic):
    async with AsyncClient(transport=ASGITransport(app=api.app), base_url="http://test", follow_redirects=False) as client:
        yield client


@pytest.fixture()
async def admin(elastic) -> User:
    return await register_user("admin", "admin-password")


@pytest.fixture()
async def user(elastic) -> User:
    return await register_user("user", "user-password")
