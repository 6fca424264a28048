from clickshortener.dao.redis.redis_key_schema import RedisKeySchema
from clickshortener.dao.redis.link_redis_dao import LinkRedisDAO
from clickshortener.dao.redis.click_redis_dao import ClickRedisDAO
from clickshortener.dao.redis.mixins import RedisClientMixin


__all__ = [
    'RedisKeySchema',
    'LinkRedisDAO',
    'ClickRedisDAO',
    'RedisClientMixin',
]
