"""
Fetcher layer for AppScout.

Provides async HTTP fetching with:
- Retries with exponential backoff
- 429/5xx handling with Retry-After
- FetchError raised to the tool layer on exhaustion
"""

from appscout.fetchers.http import HttpFetcher, FetchResult

__all__ = ["HttpFetcher", "FetchResult"]
