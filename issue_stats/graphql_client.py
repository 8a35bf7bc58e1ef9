"""GraphQL client with token lookup, rate limiting and retry logic."""

import os
import subprocess
import time
from typing import Any, Dict, Optional

import requests
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import (
    DEFAULT_HEADERS,
    GIT_CONFIG_TOKEN_KEY,
    GITHUB_GRAPHQL_URL,
    GITHUB_TOKEN_ENV,
    MAX_RETRIES,
    RATE_LIMIT_DELAY,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
    build_proxies,
)
from .exceptions import ConfigurationError, DecodeError, RateLimitError, TransportError


def resolve_token() -> str:
    """Find a GitHub API token in the environment or in git config."""
    token = os.getenv(GITHUB_TOKEN_ENV, "").strip()
    if token:
        return token

    try:
        result = subprocess.run(
            ["git", "config", "--get", GIT_CONFIG_TOKEN_KEY],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise ConfigurationError(f"Could not run git to look up {GIT_CONFIG_TOKEN_KEY}: {e}") from e

    token = result.stdout.strip()
    if not token:
        raise ConfigurationError(
            f"No GitHub token found. Set {GITHUB_TOKEN_ENV} or run: "
            f"git config {GIT_CONFIG_TOKEN_KEY} <your-token>"
        )
    return token


def _is_rate_limited(response: requests.Response) -> bool:
    if response.status_code == 429:
        return True
    return response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"


class GraphQLClient:
    """Sends one query document plus variables per call and returns the decoded JSON body.

    Without an explicit token, the token is looked up on the first request, so
    runs served entirely from the page cache need no credentials.
    """

    def __init__(self, token: Optional[str] = None, url: str = GITHUB_GRAPHQL_URL,
                 rate_limit_delay: Optional[float] = None,
                 proxies: Optional[Dict[str, str]] = None):
        self.url = url
        self.session = requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        if token:
            self.session.headers["Authorization"] = f"bearer {token}"

        proxies = build_proxies() if proxies is None else proxies
        if proxies:
            self.session.proxies.update(proxies)
            logger.info(f"Configured HTTP proxy: {proxies.get('https', 'N/A')}")

        self.last_request_time = 0.0
        self._rate_limit_delay = RATE_LIMIT_DELAY if rate_limit_delay is None else rate_limit_delay
        self.requests_made = 0

    def _rate_limit(self):
        """Implement rate limiting between requests."""
        current_time = time.time()
        time_since_last = current_time - self.last_request_time
        delay = self._rate_limit_delay
        if time_since_last < delay:
            sleep_time = delay - time_since_last
            logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f} seconds")
            time.sleep(sleep_time)
        self.last_request_time = time.time()

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=RETRY_DELAY, max=60),
        retry=retry_if_exception_type((requests.Timeout, requests.ConnectionError)),
        reraise=True,
    )
    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        self._rate_limit()
        self.requests_made += 1
        return self.session.post(self.url, json=payload, timeout=REQUEST_TIMEOUT)

    def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a query and return the decoded response body.

        Raises:
            TransportError: connection failure, timeout or non-2xx status
            RateLimitError: the API refused the call because of rate limits
            DecodeError: the body is not a JSON object
        """
        if "Authorization" not in self.session.headers:
            self.session.headers["Authorization"] = f"bearer {resolve_token()}"

        logger.warning("Making GitHub GraphQL API query (affects rate limit)")
        logger.trace(f"Variables: {variables}")

        try:
            response = self._post({"query": query, "variables": variables})
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.url} failed: {e}") from e

        if _is_rate_limited(response):
            raise RateLimitError(
                f"Rate limited by {self.url} (status {response.status_code}, "
                f"reset at {response.headers.get('X-RateLimit-Reset', 'unknown')})",
                status_code=response.status_code,
            )
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise TransportError(f"HTTP error ({response.status_code}) from {self.url}: {e}",
                                 status_code=response.status_code) from e

        try:
            body = response.json()
        except ValueError as e:
            raise DecodeError(f"Response from {self.url} is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise DecodeError(f"Response from {self.url} is not a JSON object")

        logger.debug(f"Successfully queried {self.url} (status: {response.status_code})")
        return body

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
