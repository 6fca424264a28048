from dataclasses import dataclass
from datetime import datetime

from clickshortener.utils.constants import UNKNOWN, DIRECT_REFERRER


# fmt: off
@dataclass(frozen=True)
class ClientContext:
    user_agent: str | None = None       # Raw client signal (User-Agent header)
    ip_address: str | None = None       # Source IP as seen by the edge
    referrer: str | None = None         # Referer header, if any
    country: str | None = None          # Geolocation resolved by the edge (e.g. CloudFront)
    city: str | None = None


@dataclass(frozen=True)
class ClickEventModel:
    link_id: str                        # Link the event belongs to
    occurred_at: datetime               # Ingestion time (UTC)
    device_class: str = UNKNOWN         # Mobile | Tablet | Desktop | Unknown
    browser: str = UNKNOWN              # Edge | Opera | Firefox | Chrome | Safari | Unknown
    os: str = UNKNOWN                   # Android | iOS | Windows | macOS | Linux | Unknown
    country: str | None = None
    city: str | None = None
    referrer: str = DIRECT_REFERRER
    visitor_id: str | None = None       # Approximate visitor fingerprint
    id: str | None = None               # Event log entry id, assigned by the data store
# fmt: on
