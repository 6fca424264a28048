import logging

from clickshortener.models import Granularity, TimeRange
from clickshortener.dao.redis import LinkRedisDAO, ClickRedisDAO
from clickshortener.engine import LinkService
from clickshortener.exceptions import ConfigurationError, InvalidTimestampError, LinkNotFoundError
from clickshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from clickshortener.utils import load_config, engine_settings, app_prefix, initialize_logging, parse_timestamp
from clickshortener.utils.helpers import guarantee_500_response
from clickshortener.utils.runtime import get_user_id, get_path_parameter, get_query_parameters
from clickshortener.utils.responses import response_200, response_400, response_401, response_404, response_500
from clickshortener.lambdas.link_analytics.constants import (
    MISSING_USER_ID,
    MISSING_LINK_ID,
    INVALID_GRANULARITY,
    INVALID_TIME_RANGE,
    LINK_NOT_FOUND,
    SUMMARY_SUCCESS,
)


initialize_logging()
logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Return click analytics for one of the caller's links

    GET /links/{link_id}/analytics?granularity=hour|day&start=<ISO 8601>&end=<ISO 8601>

    HTTP responses:
        200: summary (totals, breakdowns, time series)
        400: MISSING_LINK_ID | INVALID_GRANULARITY | INVALID_TIMESTAMP | INVALID_TIME_RANGE
        401: MISSING_USER_ID
        404: LINK_NOT_FOUND (missing, deleted or owned by someone else)
        500: Internal server error
    """
    # 0- Get application's config
    try:
        app_config = load_config('link_analytics')
    except ConfigurationError as e:
        logger.exception('Failed to load AppConfig for link analytics function. Responding with 500.', extra={'event': e.error_code})
        return response_500(error_code=e.error_code)
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 1- Extract user id and link id
    user_id = get_user_id(event)
    if user_id is None:
        logger.info("Missing 'sub' in JWT claims. Responding with 401.", extra={'event': MISSING_USER_ID})
        return response_401(message="missing 'sub' in JWT claims", error_code=MISSING_USER_ID)

    link_id = get_path_parameter(event, 'link_id')
    if not link_id:
        logger.info('Missing "link_id" in path. Responding with 400.', extra={'event': MISSING_LINK_ID})
        return response_400(message="missing 'link_id' in path", error_code=MISSING_LINK_ID)

    # 2- Parse query parameters
    params = get_query_parameters(event)
    try:
        granularity = Granularity(params.get('granularity') or Granularity.HOURLY)
    except ValueError:
        logger.info('Invalid granularity. Responding with 400.', extra={'event': INVALID_GRANULARITY})
        return response_400(message="granularity must be 'hour' or 'day'", error_code=INVALID_GRANULARITY)

    try:
        start, end = parse_timestamp(params.get('start')), parse_timestamp(params.get('end'))
    except InvalidTimestampError as e:
        logger.info('Invalid time range bound. Responding with 400.', extra={'event': e.error_code})
        return response_400(message=str(e), error_code=e.error_code)
    if start and end and start >= end:
        logger.info('Empty time range. Responding with 400.', extra={'event': INVALID_TIME_RANGE})
        return response_400(message="'start' must be before 'end'", error_code=INVALID_TIME_RANGE)
    time_range = TimeRange(start=start, end=end) if start or end else None

    # 3- Summarize the link's clicks
    link_dao = LinkRedisDAO(**redis_config, prefix=app_prefix())
    click_dao = ClickRedisDAO(redis_client=link_dao.redis, prefix=app_prefix(), healthcheck=False)
    service = LinkService(link_dao, click_dao, **engine_settings(app_config))

    try:
        summary = service.get_summary(link_id, time_range=time_range, granularity=granularity, owner_id=user_id)
    except LinkNotFoundError:
        logger.info('Link not found. Responding with 404.', extra={'linkId': link_id, 'event': LINK_NOT_FOUND})
        return response_404(message=f"link '{link_id}' doesn't exist", error_code=LINK_NOT_FOUND)

    logger.info(
        'Summarized link clicks. Responding with 200.',
        extra={'linkId': link_id, 'totalClicks': summary.total_clicks, 'event': SUMMARY_SUCCESS},
    )
    return response_200({'summary': summary.to_dict()})
