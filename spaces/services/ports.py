"""
Collaborator Ports

Narrow interfaces the search core reads through. Django adapters live in
``spaces.repositories``; tests plug in in-memory fakes.

Every call goes through ``PortGateway`` so a slow store can never hang a
search: calls run on a shared thread pool, bounded by a per-call timeout and
by the request's ``CancellationToken``.
"""

import concurrent.futures
import logging
import time
from datetime import date
from typing import Callable, FrozenSet, Iterable, List, Optional, Protocol, TypeVar

from core.exceptions import PortTimeoutError, SearchCancelled

from .domain import (
    AssetType,
    BookingInterval,
    CancellationToken,
    CategoryPolicy,
    Centre,
    SearchEvent,
    Space,
    State,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PORT_TIMEOUT = 3.0
POLL_INTERVAL = 0.05


# =============================================================================
# Port interfaces
# =============================================================================

class CatalogPort(Protocol):
    """Read-only view over centres, spaces and category approvals."""

    def list_centres_by_name(self, phrase: str, state: Optional[State] = None) -> List[Centre]:
        """Centres whose name, suburb or city matches; an empty phrase lists all."""
        ...

    def list_all_centres(self) -> List[Centre]:
        ...

    def get_centres(self, centre_ids: Iterable[int]) -> List[Centre]:
        ...

    def list_spaces_by_centre(self, centre_id: int, asset_type: AssetType) -> List[Space]:
        ...

    def search_spaces_by_text(
        self,
        text: str,
        category: Optional[str] = None,
        state: Optional[State] = None,
    ) -> List[Space]:
        """Spaces whose description, identifier or centre name match ``text``."""
        ...

    def approved_category_ids(self, space_id: str) -> CategoryPolicy:
        ...

    def free_category_ids(self) -> FrozenSet[str]:
        """Slugs of the free-of-charge usage categories (charity and the like)."""
        ...


class BookingPort(Protocol):

    def bookings_for_spaces(
        self, space_ids: List[str], start: date, end: date
    ) -> List[BookingInterval]:
        ...


class AnalyticsPort(Protocol):

    def record_search(self, event: SearchEvent) -> None:
        ...


# =============================================================================
# Gateway
# =============================================================================

_PORT_EXECUTOR = concurrent.futures.ThreadPoolExecutor(
    max_workers=16, thread_name_prefix="spaces-port"
)


class PortGateway:
    """
    Runs port calls with a timeout and cooperative cancellation.

    Usage::

        gateway = PortGateway(timeout=2.0)
        centres = gateway.call(catalog.list_centres_by_name, "eastgate", token=token)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_PORT_TIMEOUT,
        executor: Optional[concurrent.futures.Executor] = None,
    ):
        self.timeout = timeout
        self._executor = executor or _PORT_EXECUTOR

    def call(
        self,
        fn: Callable[..., T],
        *args,
        token: Optional[CancellationToken] = None,
        port: str = "catalog",
        **kwargs,
    ) -> T:
        """
        Invoke ``fn`` on the port pool and wait for it.

        Raises:
            SearchCancelled: token cancelled or its deadline passed
            PortTimeoutError: the call itself exceeded ``self.timeout``
            Exception: whatever ``fn`` raised, unchanged
        """
        if token is not None and token.cancelled:
            raise SearchCancelled()

        future = self._executor.submit(fn, *args, **kwargs)
        deadline = time.monotonic() + self.timeout

        while True:
            if token is not None and token.cancelled:
                future.cancel()
                raise SearchCancelled()

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                logger.warning(f"Port call {getattr(fn, '__name__', fn)} timed out after {self.timeout}s")
                raise PortTimeoutError(
                    f"{port} call timed out after {self.timeout}s", port=port
                )

            try:
                return future.result(timeout=min(POLL_INTERVAL, remaining))
            except concurrent.futures.TimeoutError:
                continue

    def map(
        self,
        fn: Callable[..., T],
        items: Iterable,
        token: Optional[CancellationToken] = None,
        port: str = "catalog",
    ) -> List[T]:
        """
        Fan ``fn`` out over ``items`` and join, preserving order.
        Fails fast on the first error.

        ``self.timeout`` bounds each call from the moment a pool thread
        picks it up; time spent queued behind other calls does not count.
        Queued items are bounded by the token's deadline.
        """
        items = list(items)
        if not items:
            return []
        if token is not None and token.cancelled:
            raise SearchCancelled()

        started: List[Optional[float]] = [None] * len(items)

        def run(index: int, item):
            started[index] = time.monotonic()
            return fn(item)

        futures = [self._executor.submit(run, i, item) for i, item in enumerate(items)]
        try:
            for index, future in enumerate(futures):
                while True:
                    if token is not None and token.cancelled:
                        raise SearchCancelled()
                    began = started[index]
                    if began is not None and time.monotonic() - began >= self.timeout:
                        logger.warning(f"Port call {getattr(fn, '__name__', fn)} timed out after {self.timeout}s")
                        raise PortTimeoutError(
                            f"{port} call timed out after {self.timeout}s", port=port
                        )
                    try:
                        future.result(timeout=POLL_INTERVAL)
                        break
                    except concurrent.futures.TimeoutError:
                        continue
        except Exception:
            for future in futures:
                future.cancel()
            raise

        return [future.result() for future in futures]
