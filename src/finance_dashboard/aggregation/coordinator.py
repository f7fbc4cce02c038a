"""Concurrent sub-fetches that tolerate individual failures."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Iterable, Optional

from ..client.cancellation import CancellationToken
from ..client.errors import RequestCancelled
from ..client.models import FetchResult
from ..client.resource_client import ResourceClient

logger = logging.getLogger(__name__)


class PartialFailureCoordinator:
    """
    Runs independent fetches in parallel and reports each outcome separately.

    A failing fetch never aborts its siblings: it is logged and reported as
    FAILED with the caller's default value. Fetches skipped or abandoned
    because of cancellation are reported as PENDING.
    """

    def __init__(self, client: ResourceClient, max_workers: int = 8):
        """
        Initialize coordinator.

        Args:
            client: ResourceClient used for per-platform cash fetches
            max_workers: Maximum number of requests in flight at once
        """
        self.client = client
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dashboard-fetch")

    def close(self) -> None:
        self.executor.shutdown(wait=True)

    def _run(
        self,
        name: str,
        fetch: Callable[[], Any],
        default: Any = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> FetchResult:
        if cancel_token is not None and cancel_token.cancelled:
            return FetchResult.pending(default)
        try:
            value = fetch()
        except RequestCancelled:
            logger.debug(f"Fetch '{name}' cancelled")
            return FetchResult.pending(default)
        except Exception as e:
            logger.warning(f"Fetch '{name}' failed, using default: {e}")
            return FetchResult.failure(e, default)
        if cancel_token is not None and cancel_token.cancelled:
            return FetchResult.pending(default)
        return FetchResult.success(value)

    def fetch_optional(
        self,
        name: str,
        fetch: Callable[[], Any],
        default: Any,
        cancel_token: Optional[CancellationToken] = None,
    ) -> FetchResult:
        """
        Run a single non-critical fetch.

        Returns:
            FetchResult whose value is ``default`` unless the fetch succeeded
        """
        return self._run(name, fetch, default, cancel_token)

    def fetch_required(
        self,
        name: str,
        fetch: Callable[[], Any],
        cancel_token: Optional[CancellationToken] = None,
    ) -> FetchResult:
        """
        Run a single critical fetch.

        Failures are reported, not raised; the caller fails the view when
        the result is not OK.
        """
        return self._run(name, fetch, None, cancel_token)

    def gather(
        self,
        fetches: Dict[str, Callable[[], Any]],
        defaults: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, FetchResult]:
        """
        Run several named fetches concurrently and wait for all of them.

        Args:
            fetches: Name to zero-argument callable
            defaults: Name to value substituted when that fetch does not succeed
            cancel_token: Shared cancellation token

        Returns:
            Name to FetchResult, in the order of ``fetches``
        """
        defaults = defaults or {}
        results: Dict[str, FetchResult] = {
            name: FetchResult.pending(defaults.get(name)) for name in fetches
        }
        futures = {
            self.executor.submit(self._run, name, fetch, defaults.get(name), cancel_token): name
            for name, fetch in fetches.items()
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()
        return results

    def fetch_cash_balances(
        self,
        platforms: Iterable[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, FetchResult]:
        """
        Fetch every platform's cash balance concurrently.

        A platform whose request fails is reported as FAILED with a balance
        of 0.0; the other platforms are unaffected.

        Args:
            platforms: Platform names
            cancel_token: Shared cancellation token

        Returns:
            Platform name to FetchResult holding the cash balance
        """
        fetches = {
            platform: self._cash_fetch(platform, cancel_token)
            for platform in platforms
        }
        results = self.gather(
            fetches,
            defaults={platform: 0.0 for platform in fetches},
            cancel_token=cancel_token,
        )
        failed = [name for name, result in results.items() if not result.ok]
        if failed:
            logger.warning(f"Cash balance unavailable for {len(failed)} platform(s): {', '.join(failed)}")
        return results

    def _cash_fetch(self, platform: str, cancel_token: Optional[CancellationToken]) -> Callable[[], float]:
        def fetch() -> float:
            return self.client.get_platform_cash(platform, cancel_token=cancel_token).cash_balance
        return fetch
