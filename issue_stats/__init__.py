"""Issue statistics: cached GraphQL pagination and per-period issue counts."""

__version__ = "0.1.0"
