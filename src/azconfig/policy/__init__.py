"""Policy resolution: rate limit overrides and retry backoff."""
