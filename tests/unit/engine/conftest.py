from unittest.mock import MagicMock

import fakeredis
import pytest

from clickshortener.dao.base import LinkBaseDAO, ClickBaseDAO
from clickshortener.dao.redis import LinkRedisDAO, ClickRedisDAO
from clickshortener.engine import LinkService


@pytest.fixture
def app_prefix() -> str:
    return 'testapp:test'


@pytest.fixture
def mock_link_dao() -> LinkBaseDAO:
    return MagicMock(spec=LinkBaseDAO)


@pytest.fixture
def mock_click_dao() -> ClickBaseDAO:
    return MagicMock(spec=ClickBaseDAO)


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    """In-memory Redis server shared by every client of one test."""
    return fakeredis.FakeServer()


@pytest.fixture
def make_service(redis_server, app_prefix):
    """Build LinkService instances with their own Redis connections to one server."""
    services = []

    def _make_service(**kwargs) -> LinkService:
        client = fakeredis.FakeRedis(server=redis_server, decode_responses=True)
        link_dao = LinkRedisDAO(redis_client=client, prefix=app_prefix)
        click_dao = ClickRedisDAO(redis_client=client, prefix=app_prefix)
        service = LinkService(link_dao, click_dao, **kwargs)
        services.append(service)
        return service

    yield _make_service

    for service in services:
        service.shutdown(wait=True)


@pytest.fixture
def service(make_service) -> LinkService:
    return make_service()
