"""Abstract base class for click event data access objects (DAOs).

The click event log is append-only. Appending an event and advancing the
owning link's click counter happen in one atomic unit, and the counter is
advanced by the data store itself, never by reading it, adding one and
writing it back.

Example:
    >>> from clickshortener.dao.redis import ClickRedisDAO
    >>> dao = ClickRedisDAO(...)
    >>> event = dao.record(ClickEventModel(link_id='0f1e2d3c', occurred_at=datetime.now(UTC)))
    >>> event.id
    '1760000000000-0'
    >>> dao.count('0f1e2d3c')
    1
"""

from abc import ABC, abstractmethod

from clickshortener.models import ClickEventModel, TimeRange


class ClickBaseDAO(ABC):
    """Interface for click event DAOs.

    Methods:
        record(event: ClickEventModel, **kwargs) -> ClickEventModel:
            Append the event and atomically increment the link's click_count.
            Returns the stored event with its id.
            Raises LinkRecordNotFoundError if the link does not exist.

        events(link_id: str, time_range: TimeRange | None, **kwargs) -> list[ClickEventModel]:
            Events of one link in ingestion order, optionally restricted to a time range.

        count(link_id: str, **kwargs) -> int:
            Number of stored events for the link.

    All methods raise DataStoreError on transient data store failures.
    """

    @abstractmethod
    def record(self, event: ClickEventModel, **kwargs) -> ClickEventModel:
        pass

    @abstractmethod
    def events(self, link_id: str, time_range: TimeRange | None = None, **kwargs) -> list[ClickEventModel]:
        pass

    @abstractmethod
    def count(self, link_id: str, **kwargs) -> int:
        pass
