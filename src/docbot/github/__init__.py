"""
GitHub integration for DocBot.

- **rate_limiter.py**: Per-host request gate driven by the ``X-RateLimit-*``
  response headers. Waits for the quota reset instead of failing, and retries
  requests rejected with HTTP 403/429.

- **github_client.py**: Resolves the repository and commit a unit was built
  from, searches code to build pinned source links, and fetches issues for the
  issue cross-linking listener.
"""
