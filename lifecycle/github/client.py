"""GitHub API client for workflow runs and branch refs.

This module provides a synchronous wrapper around the GitHub REST API for:
- Listing the workflow runs of a repository
- Deleting the branch ref a provisioning run was pushed to

Requests are not retried. A failing call raises GitHubAPIError and the
caller decides whether that is fatal; the reconciler treats a failed run
listing as fatal for the whole cycle.

Source:
- lifecycle/github/models.py (Run, RepoRuns)
- lifecycle/config.py (github_token, github_base_url)
"""

import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from lifecycle.github.models import RepoRuns, Run


logger = structlog.get_logger()


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response.
        response_body: Response body from GitHub API.
        request_url: The URL that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded.

    Attributes:
        reset_at: Unix timestamp when the rate limit resets.
        retry_after: Seconds to wait before retrying.
    """

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after


class GitHubClient:
    """GitHub API client for the reconciler.

    Attributes:
        token: GitHub API token (PAT or GitHub App token).
        base_url: Base URL for GitHub API (default: https://api.github.com).
        timeout: Request timeout in seconds.
        runs_per_page: Page size requested from the run listing.

    Example:
        >>> with GitHubClient(token="ghp_xxx") as client:
        ...     runs = client.list_runs("contoso", "saas-config")
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        runs_per_page: int = 100,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub API token for authentication.
            base_url: Base URL for GitHub API. Use this to support
                      GitHub Enterprise Server endpoints.
            timeout: Request timeout in seconds.
            runs_per_page: Number of runs requested per listing call.
            transport: Optional httpx transport (for testing).
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.runs_per_page = runs_per_page
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        """Build default headers for GitHub API requests."""
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "SaaS-Lifecycle-Reconciler/1.0",
        }

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _parse_int_header(
        self,
        headers: httpx.Headers,
        name: str,
    ) -> Optional[int]:
        """Parse an integer header value, None if absent or invalid."""
        value = headers.get(name)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return None

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code == 403:
            remaining = self._parse_int_header(
                response.headers,
                "x-ratelimit-remaining",
            )
            return remaining == 0
        return False

    def _rate_limit_error(self, response: httpx.Response) -> RateLimitError:
        """Build a RateLimitError from the rate limit headers of a response."""
        reset_at = self._parse_int_header(response.headers, "x-ratelimit-reset")

        retry_after = None
        if reset_at is not None:
            retry_after = max(0, reset_at - int(time.time()))

        retry_after_header = self._parse_int_header(response.headers, "retry-after")
        if retry_after_header is not None:
            retry_after = retry_after_header

        logger.warning(
            "GitHub API rate limit exceeded",
            reset_at=reset_at,
            retry_after=retry_after,
            limit=self._parse_int_header(response.headers, "x-ratelimit-limit"),
        )

        return RateLimitError(
            message="GitHub API rate limit exceeded",
            status_code=response.status_code,
            response_body=response.text,
            request_url=str(response.request.url),
            reset_at=reset_at,
            retry_after=retry_after,
        )

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a single HTTP request.

        Args:
            method: HTTP method (GET, DELETE, ...).
            path: API path (e.g., /repos/owner/repo/actions/runs).
            params: Optional query string parameters.

        Returns:
            The successful HTTP response.

        Raises:
            RateLimitError: If rate limit is exceeded.
            GitHubAPIError: On a non-2xx response or transport error.
        """
        try:
            response = self.client.request(method=method, url=path, params=params)
        except httpx.RequestError as e:
            logger.error(
                "GitHub API request failed",
                method=method,
                path=path,
                error=str(e),
            )
            raise GitHubAPIError(
                message=f"GitHub API request failed: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e

        if self._is_rate_limited(response):
            raise self._rate_limit_error(response)

        if not response.is_success:
            error_body = response.text
            logger.error(
                "GitHub API error",
                status_code=response.status_code,
                method=method,
                path=path,
                response_body=error_body[:500],
            )
            raise GitHubAPIError(
                message=f"GitHub API error: {response.status_code}",
                status_code=response.status_code,
                response_body=error_body,
                request_url=str(response.request.url),
            )

        return response

    def list_runs(self, owner: str, repo: str) -> List[Run]:
        """List the workflow runs of a repository.

        Runs are returned in the order GitHub returns them (most recent
        first). A single page is requested.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.

        Returns:
            Workflow runs of the repository.

        Raises:
            GitHubAPIError: If the request fails or the body is malformed.
        """
        path = f"/repos/{owner}/{repo}/actions/runs"

        response = self._request(
            method="GET",
            path=path,
            params={"per_page": self.runs_per_page},
        )

        try:
            repo_runs = RepoRuns.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise GitHubAPIError(
                message=f"Unexpected workflow run listing for {owner}/{repo}: {e}",
                status_code=response.status_code,
                response_body=response.text,
                request_url=str(response.request.url),
            ) from e

        logger.info(
            "Workflow runs fetched",
            owner=owner,
            repo=repo,
            run_count=len(repo_runs.workflow_runs),
            total_count=repo_runs.total_count,
        )
        return repo_runs.workflow_runs

    def delete_branch(self, owner: str, repo: str, branch: str) -> None:
        """Delete a branch ref.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            branch: Branch name (without the refs/heads/ prefix).

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/git/refs/heads/{quote(branch, safe='/')}"

        self._request(method="DELETE", path=path)

        logger.info(
            "Branch deleted",
            owner=owner,
            repo=repo,
            branch=branch,
        )
