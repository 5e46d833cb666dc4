"""
Django settings integration.

    SENTINEL_REDIS = {
        "MASTER_NAME": "mymaster",
        "SENTINELS": ["10.0.0.1:26379", "10.0.0.2:26379"],
        "FAILOVER_RECONNECT_TIMEOUT": 30,
        "DB": 1,
    }

Keys may be written in upper or lower case. Keys other than the sentinel
options are handed to redis-py as connection options.
"""

from django.conf import settings


def get_sentinel_options(name="SENTINEL_REDIS"):
    """
    Returns the keyword arguments for ``SentinelRedis`` stored in the
    ``name`` setting. A missing setting gives an empty dict, which means a
    direct connection to the redis-py defaults.
    """
    config = getattr(settings, name, None) or {}
    return dict((key.lower(), value) for key, value in config.items())
