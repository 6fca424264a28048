from clickshortener.models.link_model import LinkModel
from clickshortener.models.click_event_model import ClickEventModel, ClientContext
from clickshortener.models.summary_model import Granularity, TimeRange, TimeBucket, SummaryModel, OwnerStatsModel


__all__ = [
    'LinkModel',
    'ClickEventModel',
    'ClientContext',
    'Granularity',
    'TimeRange',
    'TimeBucket',
    'SummaryModel',
    'OwnerStatsModel',
]
