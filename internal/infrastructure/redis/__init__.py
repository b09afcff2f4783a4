"""
Redis infrastructure package.
"""
from .cache import RedisCache

__all__ = ["RedisCache"]
