"""
Currency service: the active base/target pair and its exchange rate.

Amounts are stored in one currency. Conversion happens only when
something is displayed or exported: converted = amount * rate.

Rate lookups are the only external I/O in the system:
1. At most one lookup per (base, target, calendar day)
2. Lookups run in the background and never block a caller
3. Until a lookup succeeds the rate is the last cached one, or 1.0
4. A failed lookup is logged and reported as a notice, never raised
"""

import datetime as dt
import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

import httpx

from expense_ledger.money import to_decimal

logger = logging.getLogger(__name__)

AVAILABLE_CURRENCIES = ["USD", "INR", "GBP", "EUR", "JPY", "CAD", "AUD", "SGD"]

DEFAULT_RATE = Decimal("1")


class RateLookupError(Exception):
    """The provider could not supply a rate."""


@dataclass(frozen=True)
class CurrencyState:
    base: str
    target: str
    rate: Decimal = DEFAULT_RATE
    enabled: bool = True
    notice: str | None = None

    @property
    def effective_rate(self) -> Decimal:
        """Rate applied to amounts; 1.0 while conversion is switched off."""
        return self.rate if self.enabled else DEFAULT_RATE


class QuoteCache:
    """
    Day-scoped quotes keyed by (base, target, day).

    Quotes from earlier days are dropped when a newer day is
    written, so the cache never grows past one day of pairs.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._quotes: dict[tuple[str, str, dt.date], Decimal] = {}

    def get(self, base: str, target: str, day: dt.date) -> Decimal | None:
        with self._guard:
            return self._quotes.get((base, target, day))

    def put(self, base: str, target: str, day: dt.date, rate: Decimal) -> None:
        with self._guard:
            stale = [k for k in self._quotes if k[2] < day]
            for key in stale:
                del self._quotes[key]
            self._quotes[(base, target, day)] = rate

    def latest(self, base: str, target: str) -> Decimal | None:
        """Most recent quote for a pair regardless of day."""
        with self._guard:
            days = [k[2] for k in self._quotes if k[:2] == (base, target)]
            if not days:
                return None
            return self._quotes[(base, target, max(days))]


class RateProvider:
    """
    HTTP client for an open exchange-rate API.

    GET {base_url}/{base} returns {"rates": {"INR": 83.1, ...}}.
    """

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def fetch_rate(self, base: str, target: str) -> Decimal:
        """
        Current rate for base -> target.

        Raises RateLookupError for transport errors, error statuses,
        and any payload that does not carry a positive number for
        the target.
        """
        try:
            response = self._get_client().get(f"{self.base_url}/{base}")
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RateLookupError(f"Rate lookup {base}->{target} failed: {e}") from e

        rates = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(rates, dict):
            raise RateLookupError(f"Unexpected rate payload for {base}: {payload!r:.80}")
        if target not in rates:
            raise RateLookupError(f"Provider has no rate for {base}->{target}")

        value = rates[target]
        try:
            if isinstance(value, bool):
                raise TypeError(f"not a number: {value!r}")
            rate = to_decimal(float(value))
        except (TypeError, ValueError, ArithmeticError) as e:
            raise RateLookupError(f"Bad rate for {base}->{target}: {e}") from e

        if not rate.is_finite() or rate <= 0:
            raise RateLookupError(f"Bad rate for {base}->{target}: {value!r}")
        return rate


class CurrencyService:
    """
    Holds the currency setting and hands out rates without blocking.

    The setting is one global key; changes to it are serialized by
    a lock so a reader never sees a half-applied pair.
    """

    def __init__(
        self,
        provider: RateProvider,
        cache: QuoteCache | None = None,
        base: str = "USD",
        target: str = "INR",
        today: Callable[[], dt.date] = dt.date.today,
        background: bool = True,
    ):
        self.provider = provider
        self.cache = cache or QuoteCache()
        self.today = today
        self.background = background
        self._lock = threading.RLock()
        self._attempted: set[tuple[str, str, dt.date]] = set()
        self._state = CurrencyState(
            base=_validate_code(base),
            target=_validate_code(target),
        )

    def state(self) -> CurrencyState:
        """Current setting with the best rate known right now."""
        with self._lock:
            return self._state

    def get_rate(self, base: str, target: str, day: dt.date | None = None) -> Decimal:
        """
        Rate for a pair on a day, or a fallback while it is unknown.

        Schedules a lookup when nothing is cached for that day.
        """
        if base == target:
            return DEFAULT_RATE
        day = day or self.today()
        cached = self.cache.get(base, target, day)
        if cached is not None:
            return cached
        self._schedule_lookup(base, target, day)
        return self.cache.latest(base, target) or DEFAULT_RATE

    def set_currencies(
        self, base: str, target: str, enabled: bool | None = None
    ) -> CurrencyState:
        """
        Change the active pair.

        Raises ValueError for a currency outside AVAILABLE_CURRENCIES.
        """
        base = _validate_code(base)
        target = _validate_code(target)
        with self._lock:
            same_pair = (base, target) == (self._state.base, self._state.target)
            self._state = CurrencyState(
                base=base,
                target=target,
                rate=self._state.rate if same_pair else DEFAULT_RATE,
                enabled=self._state.enabled if enabled is None else enabled,
                notice=self._state.notice if same_pair else None,
            )
        logger.info("Currency set to %s -> %s", base, target)
        return self.refresh()

    def refresh(self) -> CurrencyState:
        """Pick up the best known rate for today, scheduling a lookup if needed."""
        current = self.state()
        if not current.enabled:
            return current
        rate = self.get_rate(current.base, current.target)
        with self._lock:
            if (self._state.base, self._state.target) != (current.base, current.target):
                return self._state
            # A lookup may have landed since get_rate returned
            fresh = self.cache.get(current.base, current.target, self.today())
            return self._replace(rate=fresh if fresh is not None else rate)

    def _replace(self, **changes) -> CurrencyState:
        fields = {
            "base": self._state.base,
            "target": self._state.target,
            "rate": self._state.rate,
            "enabled": self._state.enabled,
            "notice": self._state.notice,
        }
        fields.update(changes)
        self._state = CurrencyState(**fields)
        return self._state

    def _schedule_lookup(self, base: str, target: str, day: dt.date) -> None:
        key = (base, target, day)
        with self._lock:
            if key in self._attempted:
                return
            self._attempted.add(key)
            self._attempted = {k for k in self._attempted if k[2] >= day}

        if self.background:
            worker = threading.Thread(
                target=self._lookup,
                args=key,
                name=f"rate-{base}-{target}",
                daemon=True,
            )
            worker.start()
        else:
            self._lookup(base, target, day)

    def _lookup(self, base: str, target: str, day: dt.date) -> None:
        logger.info("Looking up %s -> %s rate for %s", base, target, day)
        try:
            rate = self.provider.fetch_rate(base, target)
        except RateLookupError as e:
            logger.warning("%s; keeping previous rate", e)
            with self._lock:
                if (self._state.base, self._state.target) == (base, target):
                    self._replace(notice=f"Rate unavailable: {e}")
            return

        self.cache.put(base, target, day, rate)
        with self._lock:
            if (self._state.base, self._state.target) == (base, target):
                self._replace(rate=rate, notice=None)
        logger.info("Rate %s -> %s is %s", base, target, rate)


def _validate_code(code: str) -> str:
    code = (code or "").strip().upper()
    if code not in AVAILABLE_CURRENCIES:
        raise ValueError(
            f"Unsupported currency '{code}'. "
            f"Choose one of {', '.join(AVAILABLE_CURRENCIES)}"
        )
    return code
