import json
from typing import cast
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from clickshortener.types import LambdaEvent, LambdaContext, LambdaConfiguration
from clickshortener.lambdas.shorten_url import app
from clickshortener.models import LinkModel
from clickshortener.dao.base import LinkBaseDAO, ClickBaseDAO
from clickshortener.dao.exceptions import SlugAlreadyExistsError
from clickshortener.exceptions import BadConfigurationError


def make_event(body: str | None, claims: dict | None = None) -> LambdaEvent:
    if claims is None:
        claims = {'sub': 'user123', 'email': 'pytest@example.com', 'cognito:username': 'pytest-user', 'email_verified': 'true'}
    return cast(
        LambdaEvent,
        {
            'body': body,
            'resource': '/v1/shorten',
            'headers': {'User-Agent': 'pytest', 'Authorization': 'Bearer fake-jwt-token'},
            'httpMethod': 'POST',
            'path': '/v1/shorten',
            'requestContext': {
                'resourcePath': '/v1/shorten',
                'httpMethod': 'POST',
                'domainName': 'testhost:1000',
                'stage': 'test',
                'authorizer': {'claims': claims},
            },
        },
    )


@pytest.fixture
def successful_event_200() -> LambdaEvent:
    return make_event(json.dumps({'target_url': 'https://example.com/blog/chuck-norris-is-awesome'}))


@pytest.fixture
def custom_slug_event_200() -> LambdaEvent:
    return make_event(
        json.dumps(
            {
                'targetUrl': 'example.com/blog/chuck-norris-is-awesome',
                'customSlug': 'Chuck-Norris',
                'title': 'Chuck Norris',
                'expiresAt': '2030-01-01T00:00:00Z',
            }
        )
    )


@pytest.fixture
def bad_request_400() -> LambdaEvent:
    return make_event('{"invalid_json": true')


@pytest.fixture
def bad_request_400_no_target_url() -> LambdaEvent:
    return make_event(json.dumps({'invalid_json': True}))


class TestShortenUrlHandler:
    @pytest.fixture
    def context(self) -> LambdaContext:
        return cast(LambdaContext, {'function_name': 'shorten_url'})

    @pytest.fixture
    def config(self) -> LambdaConfiguration:
        return cast(LambdaConfiguration, {'redis': {'host': 'redis.test', 'port': 6379, 'db': 0}, 'engine': {'slug_length': 7}})

    @pytest.fixture
    def link_dao(self) -> LinkBaseDAO:
        dao = MagicMock(spec=LinkBaseDAO)
        dao.redis = MagicMock()
        return dao

    @pytest.fixture
    def click_dao(self) -> ClickBaseDAO:
        return MagicMock(spec=ClickBaseDAO)

    @pytest.fixture(autouse=True)
    def setup(
        self,
        monkeypatch: MonkeyPatch,
        context: LambdaContext,
        config: LambdaConfiguration,
        link_dao: LinkBaseDAO,
        click_dao: ClickBaseDAO,
    ) -> None:
        # Patch Lambda dependencies
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: self.config)
        monkeypatch.setattr(app, 'LinkRedisDAO', lambda *a, **kw: self.link_dao)
        monkeypatch.setattr(app, 'ClickRedisDAO', lambda *a, **kw: self.click_dao)
        monkeypatch.setattr('clickshortener.utils.helpers.running_locally', lambda: False)

        self.context = context
        self.config = config
        self.link_dao = link_dao
        self.click_dao = click_dao

    def assert_has_cors_headers(self, headers: dict) -> None:
        assert headers['Access-Control-Allow-Origin'] == '*'
        assert headers['Access-Control-Allow-Headers'] == 'Authorization,Content-Type'
        assert headers['Access-Control-Allow-Methods'] == 'OPTIONS,GET,POST,PATCH,DELETE'

    def inserted_link(self) -> LinkModel:
        self.link_dao.insert.assert_called_once()
        return self.link_dao.insert.call_args.args[0]

    def test_lambda_handler(self, successful_event_200: LambdaEvent) -> None:
        target_url = 'https://example.com/blog/chuck-norris-is-awesome'

        response = app.lambda_handler(successful_event_200, self.context)
        body = json.loads(response['body'])
        headers = response['headers']

        # Assert Lambda persisted a new link with a generated slug of the configured length
        link = self.inserted_link()
        assert link.owner_id == 'user123'
        assert link.target_url == target_url
        assert len(link.slug) == 7
        assert link.custom_slug is None

        # Assert Lambda successfully executes
        assert response['statusCode'] == 200
        short_url = f'https://testhost:1000/{link.slug}'
        assert body['message'] == f'Successfully shortened {target_url} to {short_url}'
        assert body['link']['id'] == link.id
        assert body['link']['slug'] == link.slug
        assert body['link']['targetUrl'] == target_url
        assert body['link']['shortUrl'] == short_url
        assert body['link']['clickCount'] == 0
        self.assert_has_cors_headers(headers)

    def test_lambda_handler_with_custom_slug(self, custom_slug_event_200: LambdaEvent) -> None:
        response = app.lambda_handler(custom_slug_event_200, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 200
        assert body['link']['slug'] == 'chuck-norris'
        assert body['link']['customSlug'] == 'chuck-norris'
        assert body['link']['targetUrl'] == 'https://example.com/blog/chuck-norris-is-awesome'
        assert body['link']['title'] == 'Chuck Norris'
        assert body['link']['expiresAt'] == '2030-01-01T00:00:00+00:00'
        assert body['link']['shortUrl'] == 'https://testhost:1000/chuck-norris'
        assert self.inserted_link().slug == 'chuck-norris'

    def test_lambda_handler_with_taken_custom_slug(self, custom_slug_event_200: LambdaEvent) -> None:
        self.link_dao.insert.side_effect = SlugAlreadyExistsError()

        response = app.lambda_handler(custom_slug_event_200, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 409
        assert body['message'] == "Conflict (Slug 'chuck-norris' is already taken.)"
        assert body['errorCode'] == 'SLUG_TAKEN'
        self.assert_has_cors_headers(response['headers'])

    def test_lambda_handler_with_exhausted_allocation(self, successful_event_200: LambdaEvent) -> None:
        self.link_dao.insert.side_effect = SlugAlreadyExistsError()

        response = app.lambda_handler(successful_event_200, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 503
        assert body['errorCode'] == 'SLUG_ALLOCATION_EXHAUSTED'
        assert self.link_dao.insert.call_count == 5

    @pytest.mark.parametrize(
        'body, error_code',
        [
            ({'target_url': 'ftp://example.com/file'}, 'INVALID_URL'),
            ({'target_url': 'https://example.com', 'custom_slug': 'no'}, 'INVALID_SLUG'),
            ({'target_url': 'https://example.com', 'custom_slug': 'white space'}, 'INVALID_SLUG'),
            ({'target_url': 'https://example.com', 'expires_at': 'tomorrow'}, 'INVALID_TIMESTAMP'),
        ],
    )
    def test_lambda_handler_with_invalid_input(self, body: dict, error_code: str) -> None:
        response = app.lambda_handler(make_event(json.dumps(body)), self.context)
        response_body = json.loads(response['body'])

        assert response['statusCode'] == 400
        assert response_body['errorCode'] == error_code
        self.link_dao.insert.assert_not_called()

    def test_lambda_handler_with_invalid_json(self, bad_request_400: LambdaEvent) -> None:
        response = app.lambda_handler(bad_request_400, self.context)
        body = json.loads(response['body'])
        headers = response['headers']

        assert response['statusCode'] == 400
        assert body['message'] == 'Bad Request (invalid JSON body)'
        assert body['errorCode'] == 'INVALID_JSON'
        self.assert_has_cors_headers(headers)

    def test_lambda_handler_with_non_object_json(self) -> None:
        response = app.lambda_handler(make_event('["https://example.com"]'), self.context)

        assert response['statusCode'] == 400
        assert json.loads(response['body'])['errorCode'] == 'INVALID_JSON'

    def test_lambda_handler_with_missing_target_url(self, bad_request_400_no_target_url: LambdaEvent) -> None:
        response = app.lambda_handler(bad_request_400_no_target_url, self.context)
        body = json.loads(response['body'])
        headers = response['headers']

        assert response['statusCode'] == 400
        assert body['message'] == "Bad Request (missing 'target_url' or 'targetUrl' in JSON body)"
        assert body['errorCode'] == 'MISSING_TARGET_URL'
        self.assert_has_cors_headers(headers)

    def test_lambda_handler_without_user(self, successful_event_200: LambdaEvent) -> None:
        successful_event_200['requestContext']['authorizer'] = {'claims': {}}

        response = app.lambda_handler(successful_event_200, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 401
        assert body['errorCode'] == 'MISSING_USER_ID'
        self.link_dao.insert.assert_not_called()

    def test_lambda_handler_with_invalid_configuration_file(
        self,
        monkeypatch: MonkeyPatch,
        successful_event_200: LambdaEvent,
    ) -> None:
        def bad_config(*args, **kwargs):
            raise BadConfigurationError('bad config')

        monkeypatch.setattr(app, 'load_config', bad_config)

        response = app.lambda_handler(successful_event_200, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 500
        assert body['message'] == 'Internal Server Error'
        assert body['errorCode'] == 'config:bad_configuration_error'
