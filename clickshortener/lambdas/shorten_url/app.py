import json
import logging

from clickshortener.dao.redis import LinkRedisDAO, ClickRedisDAO
from clickshortener.engine import LinkService
from clickshortener.exceptions import ConfigurationError, ValidationError, SlugTakenError, AllocationExhaustedError
from clickshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from clickshortener.utils import load_config, engine_settings, get_short_url, app_prefix, initialize_logging
from clickshortener.utils.helpers import guarantee_500_response
from clickshortener.utils.runtime import get_user_id
from clickshortener.utils.responses import response_200, response_400, response_401, response_409, response_500, response_503, link_to_dict
from clickshortener.lambdas.shorten_url.constants import (
    MISSING_USER_ID,
    INVALID_JSON,
    MISSING_TARGET_URL,
    LINK_CREATED,
)


initialize_logging()
logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to shorten URLs

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Extract Amazon Cognito user id from Lambda event
    - Step 2: Extract original URL and options from request body
    - Step 3: Allocate a slug and store the new link (via LinkService)
    - Step 4: Respond to user with 200 success

    Request body (JSON):
        target_url | targetUrl (str, required): URL to shorten; https:// is assumed without a scheme
        custom_slug | customSlug (str, optional): slug matching [a-z0-9-]{3,30}, case-insensitive
        title (str, optional): free-text label
        expires_at | expiresAt (str, optional): ISO 8601 expiry timestamp

    HTTP responses:
        200: Successful URL shortening
            message: success message
            link: the new link (id, slug, targetUrl, shortUrl, ...)
        400: Bad client request
            errorCode: INVALID_JSON | MISSING_TARGET_URL | INVALID_URL | INVALID_SLUG | INVALID_TIMESTAMP
        401: Unauthorized
            errorCode: MISSING_USER_ID
        409: Custom slug already taken
            errorCode: SLUG_TAKEN
        503: No free generated slug found
            errorCode: SLUG_ALLOCATION_EXHAUSTED
        500: Internal server error

    Example:
        >>> event = {'body': '{"target_url": "example.com", "custom_slug": "My-Link"}', ...}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        200
        >>> json.loads(response['body'])['link']['shortUrl']
        'https://sho.rt/my-link'
    """
    # 0- Get application's config
    try:
        app_config = load_config('shorten_url')
    except ConfigurationError as e:
        logger.exception('Failed to load AppConfig for shorten URL function. Responding with 500.', extra={'event': e.error_code})
        return response_500(error_code=e.error_code)
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 1- Extract user id from Cognito
    user_id = get_user_id(event)
    if user_id is None:
        logger.info("Missing 'sub' in JWT claims. Responding with 401.", extra={'event': MISSING_USER_ID})
        return response_401(message="missing 'sub' in JWT claims", error_code=MISSING_USER_ID)

    # 2- Extract original URL and options from request body
    try:
        request_body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        request_body = None
    if not isinstance(request_body, dict):
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON)

    target_url = request_body.get('target_url') or request_body.get('targetUrl')
    if not target_url:
        logger.info('Missing target URL. Responding with 400.', extra={'event': MISSING_TARGET_URL})
        return response_400(message="missing 'target_url' or 'targetUrl' in JSON body", error_code=MISSING_TARGET_URL)

    custom_slug = request_body.get('custom_slug', request_body.get('customSlug'))
    expires_at = request_body.get('expires_at', request_body.get('expiresAt'))

    # 3- Allocate a slug and store the link
    link_dao = LinkRedisDAO(**redis_config, prefix=app_prefix())
    click_dao = ClickRedisDAO(redis_client=link_dao.redis, prefix=app_prefix(), healthcheck=False)
    service = LinkService(link_dao, click_dao, **engine_settings(app_config))

    try:
        link = service.create_link(
            owner_id=user_id,
            original_url=target_url,
            custom_slug=custom_slug or None,
            title=request_body.get('title'),
            expires_at=expires_at,
        )
    except ValidationError as e:
        logger.info('Rejected link input. Responding with 400.', extra={'event': e.error_code, 'reason': str(e)})
        return response_400(message=str(e), error_code=e.error_code)
    except SlugTakenError as e:
        logger.info('Custom slug already taken. Responding with 409.', extra={'event': e.error_code, 'customSlug': custom_slug})
        return response_409(message=str(e), error_code=e.error_code)
    except AllocationExhaustedError as e:
        logger.warning('Slug allocation exhausted. Responding with 503.', extra={'event': e.error_code})
        return response_503(message=str(e), error_code=e.error_code)

    # 4- Return successful response to user
    short_url = get_short_url(link.slug, event)
    logger.info(
        'Shortened URL. Responding with 200.',
        extra={'linkId': link.id, 'slug': link.slug, 'userId': user_id, 'event': LINK_CREATED},
    )
    return response_200(
        {
            'message': f'Successfully shortened {link.target_url} to {short_url}',
            'link': link_to_dict(link, short_url=short_url),
        }
    )
