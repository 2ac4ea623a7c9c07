"""
Shared utilities for the query cache.

Common building blocks consumed by the cache core and its bootstrap:

- config: Process settings via pydantic-settings
- logging: Structured JSON logging
- metrics: Prometheus collectors for cache operations
- errors: Canonical error types and responses

Keep this module free of imports. Nothing under query_cache.shared imports
query_cache.cache; the bootstrap in query_cache.factory joins the two.
"""
