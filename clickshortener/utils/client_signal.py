"""Client signal (User-Agent) classification

Device class, browser and operating system are derived from the raw client
signal with ordered rule lists. The first matching rule wins, so precedence
is expressed by position:

    - Mobile OS markers come before desktop ones. Android signals also
      contain "Linux" and iOS signals contain "like Mac OS X".
    - Browser rules may carry an exclusion pattern. Chromium-based browsers
      include "Safari/" (and Edge/Opera include "Chrome/") by convention, so
      Safari excludes Chromium tokens and Chrome excludes Edge/Opera tokens.

Rules can be reordered or extended without touching `classify()`.

Example:
    >>> signal = parse_client_signal(
    ...     'Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 '
    ...     '(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1'
    ... )
    >>> signal
    ClientSignal(device_class='Mobile', browser='Safari', os='iOS')
"""

import re
from dataclasses import dataclass
from collections.abc import Sequence

from clickshortener.utils.constants import UNKNOWN


@dataclass(frozen=True)
class SignalRule:
    value: str
    pattern: re.Pattern
    exclude: re.Pattern | None = None

    def matches(self, signal: str) -> bool:
        if not self.pattern.search(signal):
            return False
        return self.exclude is None or not self.exclude.search(signal)


@dataclass(frozen=True)
class ClientSignal:
    device_class: str = UNKNOWN
    browser: str = UNKNOWN
    os: str = UNKNOWN


def _rule(value: str, pattern: str, exclude: str | None = None) -> SignalRule:
    return SignalRule(value, re.compile(pattern), re.compile(exclude) if exclude else None)


# fmt: off
DEVICE_RULES: tuple[SignalRule, ...] = (
    _rule('Tablet',  r'iPad|Tablet|PlayBook|Silk/'),
    _rule('Tablet',  r'Android', exclude=r'Mobile'),       # Android tablets omit the "Mobile" token
    _rule('Mobile',  r'iPhone|iPod|Android|Windows Phone|Mobile'),
    _rule('Desktop', r'Windows NT|Macintosh|Mac OS X|X11|Linux|CrOS'),
)

OS_RULES: tuple[SignalRule, ...] = (
    _rule('Android', r'Android'),
    _rule('iOS',     r'iPhone|iPad|iPod|\biOS\b'),
    _rule('Windows', r'Windows'),
    _rule('macOS',   r'Macintosh|Mac OS X'),
    _rule('Linux',   r'Linux|X11|CrOS'),
)

BROWSER_RULES: tuple[SignalRule, ...] = (
    _rule('Edge',    r'Edg(e|A|iOS)?/'),
    _rule('Opera',   r'OPR/|Opera'),
    _rule('Firefox', r'Firefox/|FxiOS/'),
    _rule('Chrome',  r'Chrome/|CriOS/',  exclude=r'Edg(e|A|iOS)?/|OPR/'),
    _rule('Safari',  r'Safari/',         exclude=r'Chrome/|Chromium/|CriOS/|Edg(e|A|iOS)?/|OPR/|FxiOS/'),
)
# fmt: on


def classify(signal: str | None, rules: Sequence[SignalRule]) -> str:
    """Return the value of the first rule matching the signal, or 'Unknown'."""
    if not signal:
        return UNKNOWN
    for rule in rules:
        if rule.matches(signal):
            return rule.value
    return UNKNOWN


def parse_client_signal(user_agent: str | None) -> ClientSignal:
    return ClientSignal(
        device_class=classify(user_agent, DEVICE_RULES),
        browser=classify(user_agent, BROWSER_RULES),
        os=classify(user_agent, OS_RULES),
    )
