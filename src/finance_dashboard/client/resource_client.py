"""Finance backend API client."""

import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .auth import TokenProvider
from .cancellation import CancellationToken
from .errors import BODY_PREVIEW_LENGTH, RequestError
from .models import (
    DashboardSummary,
    Goal,
    ImportResult,
    IncomeRecord,
    Investment,
    MonthlyTrackerEntry,
    NetWorthSummary,
    PlatformCash,
)

logger = logging.getLogger(__name__)


def _path_segment(value: Any) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(str(value), safe="")


class ResourceClient:
    """Client for the personal finance backend."""

    def __init__(
        self,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        timeout: float = 30,
        pool_size: int = 8,
    ):
        """
        Initialize resource client.

        Args:
            base_url: Backend base URL
            token_provider: Source of the bearer token (optional)
            timeout: Per-request timeout in seconds
            pool_size: Connection pool size, match the number of concurrent workers
        """
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or TokenProvider()
        self.timeout = timeout
        self.session = requests.Session()

        # Failures are terminal; callers decide whether to retry
        adapter = HTTPAdapter(
            pool_connections=pool_size,
            pool_maxsize=pool_size,
            max_retries=Retry(total=0, raise_on_status=False),
        )
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            "Content-Type": "application/json",
        })

    def close(self) -> None:
        self.session.close()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.token_provider.get_token()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Issue a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Endpoint path, starting with "/"
            params: Query string parameters
            json: JSON body
            cancel_token: Checked before dispatch and before returning

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            RequestError: On transport failure or non-success status
            RequestCancelled: If the token was cancelled
        """
        url = f"{self.base_url}{path}"
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(f"{method} {path}")

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._auth_headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Network request failed ({method} {url}): {e}")
            raise RequestError(f"Network request failed: {e}", url=url) from e

        if cancel_token is not None:
            cancel_token.raise_if_cancelled(f"{method} {path}")

        if not response.ok:
            body = response.text or ""
            logger.error(f"API error ({response.status_code} {url}): {body[:BODY_PREVIEW_LENGTH]}")
            raise RequestError(
                f"API Error: {response.status_code} {response.reason} - {body[:BODY_PREVIEW_LENGTH]}",
                status=response.status_code,
                url=url,
                body=body,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise RequestError(
                f"Invalid JSON response from {url}",
                status=response.status_code,
                url=url,
                body=response.text or "",
            ) from e

    # Holdings

    def get_holdings(self, cancel_token: Optional[CancellationToken] = None) -> Dict[str, List[Investment]]:
        """
        Fetch all investments grouped by platform.

        Returns:
            Mapping of platform name to its investments, in backend order
        """
        data = self.request("GET", "/holdings/", cancel_token=cancel_token) or {}
        if not isinstance(data, dict):
            raise RequestError(f"Unexpected holdings response format: {type(data).__name__}")
        return {
            platform: [Investment.from_dict(item, platform=platform) for item in items or []]
            for platform, items in data.items()
        }

    def get_portfolio_summary(self, cancel_token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        """Fetch the backend-computed portfolio summary."""
        return self.request("GET", "/holdings/portfolio", cancel_token=cancel_token) or {}

    def add_investment(self, investment: Investment) -> Investment:
        data = self.request("POST", "/holdings/", json=investment.to_dict())
        return Investment.from_dict(data or {}, platform=investment.platform)

    def _record(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Issue a request whose response must be the updated record."""
        data = self.request(method, path, **kwargs)
        if not isinstance(data, dict) or not data:
            url = f"{self.base_url}{path}"
            logger.error(f"Unexpected empty response from {method} {url}")
            raise RequestError(f"Unexpected empty response from {method} {path}", url=url)
        return data

    def update_investment(self, investment_id: int, updates: Dict[str, Any]) -> Investment:
        data = self._record("PUT", f"/holdings/{_path_segment(investment_id)}", json=updates)
        return Investment.from_dict(data)

    def delete_investment(self, investment_id: int) -> int:
        """Delete an investment and return its id."""
        self.request("DELETE", f"/holdings/{_path_segment(investment_id)}")
        return investment_id

    # Cash

    def get_platform_cash(self, platform: str, cancel_token: Optional[CancellationToken] = None) -> PlatformCash:
        data = self.request("GET", f"/holdings/cash/{_path_segment(platform)}", cancel_token=cancel_token)
        return PlatformCash.from_dict(data or {}, platform=platform)

    def update_platform_cash(self, platform: str, cash_balance: float) -> PlatformCash:
        data = self.request(
            "POST",
            f"/holdings/cash/{_path_segment(platform)}",
            json={"cash_balance": cash_balance},
        )
        return PlatformCash.from_dict(data or {"cash_balance": cash_balance}, platform=platform)

    # Platforms

    def get_platform_colors(self, cancel_token: Optional[CancellationToken] = None) -> Dict[str, str]:
        data = self.request("GET", "/holdings/platform/colors", cancel_token=cancel_token) or {}
        return {str(name): str(color) for name, color in data.items()}

    def rename_platform(self, old_name: str, new_name: str) -> Any:
        return self.request(
            "POST",
            "/holdings/platform/rename",
            json={"old_name": old_name, "new_name": new_name},
        )

    def update_platform_color(self, platform: str, color: str) -> Any:
        return self.request(
            "POST",
            "/holdings/platform/color",
            json={"platform": platform, "color": color},
        )

    def import_trading212(self, api_key_id: str, api_secret_key: str) -> ImportResult:
        data = self.request(
            "POST",
            "/holdings/import/trading212",
            json={"api_key_id": api_key_id, "api_secret_key": api_secret_key},
        )
        return ImportResult.from_dict(data or {})

    # Goals

    def get_goals(self, cancel_token: Optional[CancellationToken] = None) -> List[Goal]:
        """Fetch all goals, skipping records that cannot be parsed."""
        data = self.request("GET", "/goals/", cancel_token=cancel_token) or []
        goals = []
        for item in data:
            try:
                goals.append(Goal.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed goal {item.get('id') if isinstance(item, dict) else item}: {e}")
        return goals

    def create_goal(self, goal: Goal) -> Goal:
        data = self.request("POST", "/goals/", json=goal.to_dict())
        return Goal.from_dict(data or goal.to_dict())

    def update_goal(self, goal_id: int, updates: Dict[str, Any]) -> Goal:
        data = self._record("PATCH", f"/goals/{_path_segment(goal_id)}", json=updates)
        return Goal.from_dict(data)

    def delete_goal(self, goal_id: int) -> int:
        """Delete a goal and return its id."""
        self.request("DELETE", f"/goals/{_path_segment(goal_id)}")
        return goal_id

    # Net worth

    def get_net_worth_summary(self, cancel_token: Optional[CancellationToken] = None) -> NetWorthSummary:
        data = self.request("GET", "/net-worth/summary", cancel_token=cancel_token) or {}
        return NetWorthSummary.from_dict(data)

    def get_dashboard_summary(self, cancel_token: Optional[CancellationToken] = None) -> DashboardSummary:
        data = self.request("GET", "/net-worth/dashboard-summary", cancel_token=cancel_token) or {}
        return DashboardSummary.from_dict(data)

    def get_net_worth_history(
        self,
        year: Union[int, str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Fetch monthly history for a year, or for all time with year="all"."""
        return self.request("GET", f"/net-worth/history/{_path_segment(year)}", cancel_token=cancel_token)

    def get_intraday_history(self, hours: int, cancel_token: Optional[CancellationToken] = None) -> Any:
        return self.request("GET", f"/net-worth/history/intraday/{int(hours)}", cancel_token=cancel_token)

    def get_graph_data(self, period: str, cancel_token: Optional[CancellationToken] = None) -> Any:
        return self.request("GET", "/net-worth/graph-data", params={"period": period}, cancel_token=cancel_token)

    def trigger_intraday_snapshot(self) -> Any:
        return self.request("POST", "/net-worth/snapshot/intraday")

    def get_monthly_tracker(self, cancel_token: Optional[CancellationToken] = None) -> List[MonthlyTrackerEntry]:
        """
        Fetch monthly tracker snapshots.

        The backend answers either with a bare list or with {"data": [...]};
        anything else is logged and treated as no data.
        """
        data = self.request("GET", "/net-worth/monthly-tracker", cancel_token=cancel_token)
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            data = data["data"]
        if not isinstance(data, list):
            logger.warning(f"Unexpected monthly tracker response format: {type(data).__name__}")
            return []
        return [MonthlyTrackerEntry.from_dict(item) for item in data]

    # Cashflow

    def get_income_data(self, cancel_token: Optional[CancellationToken] = None) -> List[IncomeRecord]:
        data = self.request("GET", "/cashflow/income", cancel_token=cancel_token) or []
        return [IncomeRecord.from_dict(item) for item in data]

    def update_income_data(self, year: str, income: float, investment: float) -> IncomeRecord:
        params = {"year": year, "income": income, "investment": investment}
        data = self.request("POST", "/cashflow/income", params=params)
        return IncomeRecord.from_dict(data or params)
