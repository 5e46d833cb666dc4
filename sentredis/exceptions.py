"""
Exceptions raised while locating the master through Sentinel.

Transient failures are redis-py's own ``ConnectionError`` and
``TimeoutError``; they are retried until the failover deadline passes.
Everything deriving from ``SentinelError`` is fatal and is never retried.
"""

from redis.exceptions import (AuthenticationError, ConnectionError,
                              RedisError, TimeoutError)


TRANSIENT_ERRORS = (ConnectionError, TimeoutError)


def is_transient(error):
    """
    True if ``error`` may clear up on its own while a failover completes.
    Bad credentials won't, so they are never retried.
    """
    return (isinstance(error, TRANSIENT_ERRORS) and
            not isinstance(error, AuthenticationError))


class MasterDownError(ConnectionError):
    "Sentinel knows the master, but currently reports it as down."


class SentinelError(RedisError):
    pass


class UnknownMasterError(SentinelError):
    "No master is registered under the configured name."


class FailoverTimeoutError(SentinelError):
    """
    The elected master kept reporting the slave role until the failover
    deadline passed.
    """
    def __init__(self, host, port):
        self.host = host
        self.port = port
        super(FailoverTimeoutError, self).__init__(
            "Elected master %s %s took too long to leave slave role"
            % (host, port))


class ConfigurationError(SentinelError):
    pass
