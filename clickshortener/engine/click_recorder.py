"""Click event recording

Turns a client context into a ClickEventModel and hands it to the click
event store, which appends it and bumps the link's counter atomically.

Recording is a side effect of a successful redirect and must never hold it
up, so `record_in_background()` fixes the ingestion time immediately and submits
building and writing the event to a thread pool. Failures of either are
logged from the future's done-callback and go nowhere else.

Example:
    >>> recorder = ClickRecorder(click_dao)
    >>> context = ClientContext(user_agent='Mozilla/5.0 (Windows NT 10.0; Win64; x64) Firefox/128.0')
    >>> recorder.record('0f1e2d3c', context).browser
    'Firefox'
"""

import logging
import functools
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, UTC

from clickshortener.models import ClickEventModel, ClientContext
from clickshortener.dao.base import ClickBaseDAO
from clickshortener.utils.client_signal import parse_client_signal
from clickshortener.utils.shortener import visitor_fingerprint
from clickshortener.utils.constants import CLICK_RECORDER_MAX_WORKERS, DIRECT_REFERRER


logger = logging.getLogger(__name__)

CLICK_RECORD_FAILED = 'CLICK_RECORD_FAILED'


class ClickRecorder:
    """Build and persist click events

    Attributes:
        click_dao (ClickBaseDAO):
            Click event store.
        executor (ThreadPoolExecutor | None):
            Pool used for background writes. Created on first use unless given.
    """

    def __init__(self, click_dao: ClickBaseDAO, executor: ThreadPoolExecutor | None = None):
        self.click_dao = click_dao
        self.executor = executor

    def build_event(self, link_id: str, context: ClientContext, now: datetime | None = None) -> ClickEventModel:
        signal = parse_client_signal(context.user_agent)
        return ClickEventModel(
            link_id=link_id,
            occurred_at=now or datetime.now(UTC),
            device_class=signal.device_class,
            browser=signal.browser,
            os=signal.os,
            country=context.country or None,
            city=context.city or None,
            referrer=context.referrer or DIRECT_REFERRER,
            visitor_id=visitor_fingerprint(context.ip_address, context.user_agent),
        )

    def record(self, link_id: str, context: ClientContext, now: datetime | None = None) -> ClickEventModel:
        """Persist one click event synchronously

        Raises:
            LinkRecordNotFoundError:
                If the link does not exist.
            DataStoreError:
                If the click event store is unreachable.
        """
        return self.click_dao.record(self.build_event(link_id, context, now=now))

    def record_in_background(self, link_id: str, context: ClientContext, now: datetime | None = None) -> Future:
        """Schedule a click event write without waiting for it

        Returns:
            Future: resolves to the stored ClickEventModel. Callers may ignore it.
        """
        # Ingestion time is the redirect's, not the worker's
        now = now or datetime.now(UTC)
        if self.executor is None:
            self.executor = ThreadPoolExecutor(max_workers=CLICK_RECORDER_MAX_WORKERS, thread_name_prefix='click-recorder')

        future = self.executor.submit(self.record, link_id, context, now)
        future.add_done_callback(functools.partial(_log_failure, link_id))
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Flush pending writes and release the pool."""
        if self.executor is not None:
            self.executor.shutdown(wait=wait)
            self.executor = None


def _log_failure(link_id: str, future: Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is None:
        return
    logger.error(
        'Failed to record click event.',
        exc_info=(type(error), error, error.__traceback__),
        extra={'event': CLICK_RECORD_FAILED, 'linkId': link_id},
    )
