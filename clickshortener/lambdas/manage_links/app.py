import json
import logging
from dataclasses import asdict

from clickshortener.dao.redis import LinkRedisDAO, ClickRedisDAO
from clickshortener.engine import LinkService
from clickshortener.exceptions import ConfigurationError, ValidationError, SlugTakenError, LinkNotFoundError
from clickshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from clickshortener.utils import load_config, engine_settings, get_short_url, app_prefix, initialize_logging
from clickshortener.utils.helpers import guarantee_500_response
from clickshortener.utils.runtime import get_user_id, get_path_parameter
from clickshortener.utils.responses import (
    response_200,
    response_400,
    response_401,
    response_404,
    response_405,
    response_409,
    response_500,
    link_to_dict,
)
from clickshortener.lambdas.manage_links.constants import (
    MISSING_USER_ID,
    MISSING_LINK_ID,
    INVALID_JSON,
    METHOD_NOT_ALLOWED,
    LINK_NOT_FOUND,
    LINKS_LISTED,
    LINK_FETCHED,
    LINK_UPDATED,
    LINK_DELETED,
)


initialize_logging()
logger = logging.getLogger(__name__)

# camelCase request keys accepted alongside their snake_case names
FIELD_ALIASES = {
    'targetUrl': 'target_url',
    'expiresAt': 'expires_at',
}


def _link_not_found(link_id: str) -> LambdaResponse:
    logger.info('Link not found. Responding with 404.', extra={'linkId': link_id, 'event': LINK_NOT_FOUND})
    return response_404(message=f"link '{link_id}' doesn't exist", error_code=LINK_NOT_FOUND)


def list_links(service: LinkService, user_id: str, event: LambdaEvent) -> LambdaResponse:
    links = service.list_links(user_id)
    stats = service.owner_stats(user_id)
    logger.info('Listed links. Responding with 200.', extra={'userId': user_id, 'count': len(links), 'event': LINKS_LISTED})
    return response_200(
        {
            'links': [link_to_dict(link, short_url=get_short_url(link.slug, event)) for link in links],
            'stats': asdict(stats),
        }
    )


def get_link(service: LinkService, user_id: str, link_id: str, event: LambdaEvent) -> LambdaResponse:
    try:
        link = service.get_link(user_id, link_id)
    except LinkNotFoundError:
        return _link_not_found(link_id)

    logger.info('Fetched link. Responding with 200.', extra={'linkId': link_id, 'event': LINK_FETCHED})
    return response_200({'link': link_to_dict(link, short_url=get_short_url(link.slug, event))})


def update_link(service: LinkService, user_id: str, link_id: str, event: LambdaEvent) -> LambdaResponse:
    try:
        request_body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        request_body = None
    if not isinstance(request_body, dict):
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON)

    changes = {FIELD_ALIASES.get(key, key): value for key, value in request_body.items()}
    try:
        link = service.update_link(user_id, link_id, changes)
    except ValidationError as e:
        logger.info('Rejected link edit. Responding with 400.', extra={'event': e.error_code, 'reason': str(e)})
        return response_400(message=str(e), error_code=e.error_code)
    except SlugTakenError as e:
        logger.info('Slug already taken. Responding with 409.', extra={'event': e.error_code, 'linkId': link_id})
        return response_409(message=str(e), error_code=e.error_code)
    except LinkNotFoundError:
        return _link_not_found(link_id)

    logger.info('Updated link. Responding with 200.', extra={'linkId': link_id, 'event': LINK_UPDATED})
    return response_200({'link': link_to_dict(link, short_url=get_short_url(link.slug, event))})


def delete_link(service: LinkService, user_id: str, link_id: str, event: LambdaEvent) -> LambdaResponse:
    try:
        service.delete_link(user_id, link_id)
    except LinkNotFoundError:
        return _link_not_found(link_id)

    logger.info('Deleted link. Responding with 200.', extra={'linkId': link_id, 'event': LINK_DELETED})
    return response_200({'message': f"Link '{link_id}' deleted.", 'id': link_id})


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Owner dashboard operations on links

    Routes:
        GET    /links               -> caller's live links (newest first) and dashboard stats
        GET    /links/{link_id}     -> one link
        PATCH  /links/{link_id}     -> edit target_url, title, active, expires_at or slug
        DELETE /links/{link_id}     -> soft delete

    HTTP responses:
        200: Success
        400: INVALID_JSON | MISSING_LINK_ID | INVALID_URL | INVALID_SLUG | INVALID_TIMESTAMP
        401: MISSING_USER_ID
        404: LINK_NOT_FOUND (missing, deleted or owned by someone else)
        405: METHOD_NOT_ALLOWED
        409: SLUG_TAKEN
        500: Internal server error
    """
    # 0- Get application's config
    try:
        app_config = load_config('manage_links')
    except ConfigurationError as e:
        logger.exception('Failed to load AppConfig for manage links function. Responding with 500.', extra={'event': e.error_code})
        return response_500(error_code=e.error_code)
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 1- Extract user id from Cognito
    user_id = get_user_id(event)
    if user_id is None:
        logger.info("Missing 'sub' in JWT claims. Responding with 401.", extra={'event': MISSING_USER_ID})
        return response_401(message="missing 'sub' in JWT claims", error_code=MISSING_USER_ID)

    method = (event.get('httpMethod') or 'GET').upper()
    link_id = get_path_parameter(event, 'link_id')

    link_dao = LinkRedisDAO(**redis_config, prefix=app_prefix())
    click_dao = ClickRedisDAO(redis_client=link_dao.redis, prefix=app_prefix(), healthcheck=False)
    service = LinkService(link_dao, click_dao, **engine_settings(app_config))

    # 2- Route by method
    if method == 'GET' and not link_id:
        return list_links(service, user_id, event)
    if method not in {'GET', 'PATCH', 'DELETE'}:
        logger.info('Unsupported method %s. Responding with 405.', method, extra={'event': METHOD_NOT_ALLOWED})
        return response_405(message=f'{method} is not supported', error_code=METHOD_NOT_ALLOWED)
    if not link_id:
        logger.info('Missing "link_id" in path. Responding with 400.', extra={'event': MISSING_LINK_ID})
        return response_400(message="missing 'link_id' in path", error_code=MISSING_LINK_ID)

    match method:
        case 'GET':
            return get_link(service, user_id, link_id, event)
        case 'PATCH':
            return update_link(service, user_id, link_id, event)
        case 'DELETE':
            return delete_link(service, user_id, link_id, event)
