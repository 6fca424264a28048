from clickshortener.dao.base.link_base_dao import LinkBaseDAO
from clickshortener.dao.base.click_base_dao import ClickBaseDAO


__all__ = [
    'LinkBaseDAO',
    'ClickBaseDAO',
]
