"""Configuration settings for issue statistics."""

import os
from typing import Dict

# GitHub GraphQL endpoint
GITHUB_GRAPHQL_URL = os.getenv("GITHUB_GRAPHQL_URL", "https://api.github.com/graphql")

# Token lookup: environment first, then `git config --get github.oauth-token`
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
GIT_CONFIG_TOKEN_KEY = "github.oauth-token"

# Optional proxy for all requests, e.g. "http://127.0.0.1:7892"
PROXY_URL = os.getenv("PROXY_URL", "")


def build_proxies() -> Dict[str, str]:
    """Build the requests proxy mapping from PROXY_URL."""
    if not PROXY_URL:
        return {}
    return {
        "http": PROXY_URL,
        "https": PROXY_URL
    }


# Request configuration
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "1"))  # 1 means a single attempt
RETRY_DELAY = float(os.getenv("RETRY_DELAY", "1"))  # seconds
RATE_LIMIT_DELAY = float(os.getenv("RATE_LIMIT_DELAY", "0.5"))

# Repository to analyze
REPOSITORY_OWNER = os.getenv("REPOSITORY_OWNER", "rust-lang")
REPOSITORY_NAME = os.getenv("REPOSITORY_NAME", "rust")

# Pagination
DEFAULT_PAGE_SIZE = 10
DEFAULT_PAGES = 2
PAGE_SIZE_VARIABLE = "pageSize"
CURSOR_VARIABLE = "cursor"

# Persisted pages, one JSON file per page; never expired
PERSISTED_DATA_DIR = os.getenv("PERSISTED_DATA_DIR", "cache/persisted-data-dir")

# Period bucketing
ORIGIN_OF_TIME = os.getenv("ORIGIN_OF_TIME", "2010-06-21T00:00:00Z")
PERIOD_DAYS = int(os.getenv("PERIOD_DAYS", "7"))

# Report files
PERIOD_STATS_FILE = "week.tsv"
ACCUMULATED_STATS_FILE = "accumulated.tsv"

# Logging configuration
LOG_LEVEL = "INFO"
LOG_FILE = "issue_stats.log"
LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

USER_AGENT = "issue-stats/0.1"

# Default headers for GraphQL requests
DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json",
    "Content-Type": "application/json",
}
