import json
from datetime import datetime, timedelta, UTC
from typing import cast

import fakeredis
import pytest
from freezegun import freeze_time
from pytest import MonkeyPatch

from clickshortener.types import LambdaEvent, LambdaContext, LambdaConfiguration
from clickshortener.lambdas.link_analytics import app
from clickshortener.models import ClientContext
from clickshortener.dao.redis import LinkRedisDAO, ClickRedisDAO
from clickshortener.engine import LinkService


FIREFOX_LINUX = 'Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0'


def make_event(link_id: str | None, params: dict | None = None, user_id: str | None = 'user123') -> LambdaEvent:
    return cast(
        LambdaEvent,
        {
            'resource': '/v1/links/{link_id}/analytics',
            'pathParameters': {'link_id': link_id} if link_id else None,
            'queryStringParameters': params,
            'httpMethod': 'GET',
            'requestContext': {
                'httpMethod': 'GET',
                'domainName': 'testhost:1000',
                'stage': 'test',
                'authorizer': {'claims': {'sub': user_id} if user_id else {}},
            },
        },
    )


class TestLinkAnalyticsHandler:
    @pytest.fixture
    def context(self) -> LambdaContext:
        return cast(LambdaContext, {'function_name': 'link_analytics'})

    @pytest.fixture
    def config(self) -> LambdaConfiguration:
        return cast(LambdaConfiguration, {'redis': {'host': 'redis.test', 'port': 6379, 'db': 0}})

    @pytest.fixture
    def redis_client(self) -> fakeredis.FakeRedis:
        return fakeredis.FakeRedis(decode_responses=True)

    @pytest.fixture
    def service(self, redis_client: fakeredis.FakeRedis):
        link_dao = LinkRedisDAO(redis_client=redis_client, prefix='testapp:test')
        service = LinkService(link_dao, ClickRedisDAO(redis_client=redis_client, prefix='testapp:test'))
        yield service
        service.shutdown(wait=True)

    @pytest.fixture(autouse=True)
    def setup(
        self,
        monkeypatch: MonkeyPatch,
        context: LambdaContext,
        config: LambdaConfiguration,
        redis_client: fakeredis.FakeRedis,
        service: LinkService,
    ) -> None:
        # Patch Lambda dependencies
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
        monkeypatch.setattr(app, 'LinkRedisDAO', lambda *a, **kw: LinkRedisDAO(redis_client=redis_client, prefix='testapp:test'))
        monkeypatch.setattr(app, 'ClickRedisDAO', lambda *a, **kw: ClickRedisDAO(redis_client=redis_client, prefix='testapp:test'))
        monkeypatch.setattr('clickshortener.utils.helpers.running_locally', lambda: False)

        self.context = context
        self.service = service
        self.link = service.create_link('user123', 'https://example.com/page', custom_slug='my-link')

    def record_clicks(self, *contexts: ClientContext, when: datetime | None = None) -> None:
        for client in contexts:
            self.service.recorder.record(self.link.id, client, now=when)

    @freeze_time('2025-10-15 12:30:00')
    def test_lambda_handler(self) -> None:
        self.record_clicks(
            ClientContext(user_agent=FIREFOX_LINUX, ip_address='198.51.100.1', country='BG'),
            ClientContext(user_agent=FIREFOX_LINUX, ip_address='198.51.100.1', country='BG'),
            ClientContext(ip_address='198.51.100.2', referrer='https://news.example.com/'),
        )

        response = app.lambda_handler(make_event(self.link.id), self.context)
        summary = json.loads(response['body'])['summary']

        assert response['statusCode'] == 200
        assert summary['link_id'] == self.link.id
        assert summary['total_clicks'] == 3
        assert summary['unique_visitors'] == 2
        assert summary['device_breakdown'] == {'Desktop': 67, 'Unknown': 33}
        assert summary['country_breakdown'] == {'BG': 2}
        assert summary['top_country'] == 'BG'
        assert summary['referrer_breakdown'] == {'Direct': 2, 'https://news.example.com/': 1}
        assert summary['granularity'] == 'hour'
        assert len(summary['time_series']) == 24
        assert summary['time_series'][-1]['count'] == 3

    @freeze_time('2025-10-15 12:30:00')
    def test_lambda_handler_with_daily_granularity(self) -> None:
        self.record_clicks(ClientContext(), when=datetime.now(UTC) - timedelta(days=2))
        self.record_clicks(ClientContext())

        response = app.lambda_handler(make_event(self.link.id, {'granularity': 'day'}), self.context)
        summary = json.loads(response['body'])['summary']

        assert response['statusCode'] == 200
        assert summary['granularity'] == 'day'
        assert [bucket['count'] for bucket in summary['time_series']] == [0, 0, 0, 0, 1, 0, 1]

    @freeze_time('2025-10-15 12:30:00')
    def test_lambda_handler_with_time_range(self) -> None:
        now = datetime.now(UTC)
        self.record_clicks(ClientContext(), when=now - timedelta(days=3))
        self.record_clicks(ClientContext(), ClientContext(), when=now - timedelta(hours=1))

        start = (now - timedelta(days=1)).isoformat()
        response = app.lambda_handler(make_event(self.link.id, {'start': start}), self.context)
        summary = json.loads(response['body'])['summary']

        assert response['statusCode'] == 200
        assert summary['total_clicks'] == 2

    def test_lambda_handler_without_clicks(self) -> None:
        response = app.lambda_handler(make_event(self.link.id), self.context)
        summary = json.loads(response['body'])['summary']

        assert response['statusCode'] == 200
        assert summary['total_clicks'] == 0
        assert summary['device_breakdown'] == {}

    def test_lambda_handler_without_user(self) -> None:
        response = app.lambda_handler(make_event(self.link.id, user_id=None), self.context)

        assert response['statusCode'] == 401
        assert json.loads(response['body'])['errorCode'] == 'MISSING_USER_ID'

    def test_lambda_handler_without_link_id(self) -> None:
        response = app.lambda_handler(make_event(None), self.context)

        assert response['statusCode'] == 400
        assert json.loads(response['body'])['errorCode'] == 'MISSING_LINK_ID'

    def test_lambda_handler_with_invalid_granularity(self) -> None:
        response = app.lambda_handler(make_event(self.link.id, {'granularity': 'week'}), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 400
        assert body['message'] == "Bad Request (granularity must be 'hour' or 'day')"
        assert body['errorCode'] == 'INVALID_GRANULARITY'

    @pytest.mark.parametrize(
        'params, error_code',
        [
            ({'start': 'yesterday'}, 'INVALID_TIMESTAMP'),
            ({'end': '2025-13-01'}, 'INVALID_TIMESTAMP'),
            ({'start': '2025-10-15T00:00:00Z', 'end': '2025-10-15T00:00:00Z'}, 'INVALID_TIME_RANGE'),
            ({'start': '2025-10-16T00:00:00Z', 'end': '2025-10-15T00:00:00Z'}, 'INVALID_TIME_RANGE'),
        ],
    )
    def test_lambda_handler_with_invalid_time_range(self, params: dict, error_code: str) -> None:
        response = app.lambda_handler(make_event(self.link.id, params), self.context)

        assert response['statusCode'] == 400
        assert json.loads(response['body'])['errorCode'] == error_code

    def test_lambda_handler_with_unknown_link(self) -> None:
        response = app.lambda_handler(make_event('missing'), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 404
        assert body['message'] == "Not Found (link 'missing' doesn't exist)"
        assert body['errorCode'] == 'LINK_NOT_FOUND'

    def test_lambda_handler_with_another_owners_link(self) -> None:
        """Ensure analytics of someone else's link look exactly like a missing link."""
        response = app.lambda_handler(make_event(self.link.id, user_id='intruder'), self.context)

        assert response['statusCode'] == 404
        assert json.loads(response['body'])['errorCode'] == 'LINK_NOT_FOUND'
