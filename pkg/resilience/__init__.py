"""
Resilience package.
"""
from .rate_limiter import RateLimiter, RateLimitTimeout

__all__ = [
    "RateLimiter",
    "RateLimitTimeout",
]
