from clickshortener.engine.slug_registry import SlugRegistry
from clickshortener.engine.redirect_resolver import RedirectResolver, Resolution, ResolutionState
from clickshortener.engine.click_recorder import ClickRecorder
from clickshortener.engine.analytics import AnalyticsAggregator
from clickshortener.engine.link_service import LinkService


__all__ = [
    'SlugRegistry',
    'RedirectResolver',
    'Resolution',
    'ResolutionState',
    'ClickRecorder',
    'AnalyticsAggregator',
    'LinkService',
]
