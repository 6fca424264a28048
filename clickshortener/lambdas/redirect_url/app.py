import logging
from concurrent.futures import ThreadPoolExecutor

from clickshortener.models import ClientContext
from clickshortener.dao.redis import LinkRedisDAO, ClickRedisDAO
from clickshortener.engine import LinkService, ClickRecorder
from clickshortener.exceptions import ConfigurationError, LinkNotFoundError, LinkDisabledError, LinkExpiredError
from clickshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from clickshortener.utils import load_config, engine_settings, get_short_url, app_prefix, initialize_logging
from clickshortener.utils.helpers import guarantee_500_response
from clickshortener.utils.runtime import get_path_parameter, get_headers, get_source_ip
from clickshortener.utils.responses import response_302, response_400, response_403, response_404, response_410, response_500
from clickshortener.utils.constants import CLICK_RECORDER_MAX_WORKERS
from clickshortener.lambdas.redirect_url.constants import (
    MISSING_SHORTCODE,
    LINK_NOT_FOUND,
    LINK_DISABLED,
    LINK_EXPIRED,
    REDIRECT_SUCCESS,
)


initialize_logging()
logger = logging.getLogger(__name__)

# Shared by warm invocations of the same execution environment
CLICK_EXECUTOR = ThreadPoolExecutor(max_workers=CLICK_RECORDER_MAX_WORKERS, thread_name_prefix='click-recorder')


def client_context(event: LambdaEvent) -> ClientContext:
    """Collect the visitor's client signal, source IP, referrer and edge geolocation

    Geolocation comes from CloudFront viewer headers when the API sits behind
    a CloudFront distribution configured to forward them.
    """
    headers = get_headers(event)

    return ClientContext(
        user_agent=headers.get('user-agent') or None,
        ip_address=get_source_ip(event),
        referrer=headers.get('referer') or None,
        country=headers.get('cloudfront-viewer-country') or None,
        city=headers.get('cloudfront-viewer-city') or None,
    )


def link_metadata(link) -> dict:
    return {'slug': link.slug, 'title': link.title, 'targetUrl': link.target_url}


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to redirect short URLs

    This Lambda handler follows this procedure to redirect URLs:
    - Step 1: Extract shortcode (slug) from request path
    - Step 2: Resolve the slug to a live link
    - Step 3: Record the click in the background
    - Step 4: Redirect client to target URL

    HTTP responses:
        302: Successful redirect
            headers:
                Location: target URL destination
        400: Bad client request
            message: missing shortcode in path parameters
        403: Link disabled by its owner
            link: slug, title and target URL (not followed)
        404: No live link holds the shortcode
        410: Link expired
            link: slug, title and target URL (not followed)
        500: Internal server error
            message: server experienced an internal error

    Args:
        event (dict):
            API Gateway event payload containing the shortcode path parameter.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'pathParameters': {'shortcode': 'my-link'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/my-page'
    """
    # 0- Get application's config
    try:
        app_config = load_config('redirect_url')
    except ConfigurationError as e:
        logger.exception('Failed to load AppConfig for redirect URL function. Responding with 500.', extra={'event': e.error_code})
        return response_500(error_code=e.error_code)
    else:
        logger.debug('Assuming Redis as the backend database for links')
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 1- Extract shortcode from request's path
    shortcode = get_path_parameter(event, 'shortcode')
    if not shortcode:
        logger.info(
            'Missing "shortcode" in path. Responding with 400.',
            extra={'event': MISSING_SHORTCODE},
        )
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)
    logger.debug('Client requested short URL %s.', get_short_url(shortcode, event))

    link_dao = LinkRedisDAO(**redis_config, prefix=app_prefix())
    click_dao = ClickRedisDAO(redis_client=link_dao.redis, prefix=app_prefix(), healthcheck=False)
    service = LinkService(
        link_dao,
        click_dao,
        recorder=ClickRecorder(click_dao, executor=CLICK_EXECUTOR),
        **engine_settings(app_config),
    )

    # 2- Resolve the slug to a live link
    try:
        link = service.resolve(shortcode)
    except LinkNotFoundError:
        logger.info(
            'Link not found. Responding with 404.',
            extra={'shortcode': shortcode, 'event': LINK_NOT_FOUND},
        )
        return response_404(message=f"short url {get_short_url(shortcode, event)} doesn't exist", error_code=LINK_NOT_FOUND)
    except LinkDisabledError as e:
        logger.info(
            'Link disabled by its owner. Responding with 403.',
            extra={'shortcode': shortcode, 'linkId': e.link.id, 'event': LINK_DISABLED},
        )
        return response_403(message='this link has been disabled by its owner', error_code=LINK_DISABLED, link=link_metadata(e.link))
    except LinkExpiredError as e:
        logger.info(
            'Link expired. Responding with 410.',
            extra={'shortcode': shortcode, 'linkId': e.link.id, 'expiresAt': e.link.expires_at, 'event': LINK_EXPIRED},
        )
        return response_410(message='this link has expired', error_code=LINK_EXPIRED, link=link_metadata(e.link))

    # 3- Record the click without holding up the redirect
    service.record_click(link.id, client_context(event))

    # 4- Redirect client to target URL
    logger.info(
        'Redirecting client to target URL. Responding with 302.',
        extra={'shortcode': shortcode, 'linkId': link.id, 'event': REDIRECT_SUCCESS},
    )
    return response_302(location=link.target_url)
