"""
Sentinel-aware Redis client

SentinelRedis can be used in place of a StrictRedis client. Instead of a
fixed host and port, pass the name of the monitored master and a list of
Sentinel addresses. Every time a connection is opened, the current master is
looked up through the Sentinels, confirmed to have taken the master role,
and connected to.

While a failover is in progress, connecting blocks for up to
``failover_reconnect_timeout`` seconds, retrying every
``failover_reconnect_wait`` seconds. Without a timeout the first connection
error is raised immediately.

"""

import logging
import time
from functools import partial

from redis.client import StrictRedis
from redis.connection import Connection, ConnectionPool

from .exceptions import (TRANSIENT_ERRORS, MasterDownError,
                         UnknownMasterError, is_transient)
from .failover import (DEFAULT_FAILOVER_RECONNECT_WAIT, DeadlineWindow,
                       FailoverWaiter, RetryScheduler)
from .resolver import MasterResolver
from .ring import SentinelRing
from .settings import get_sentinel_options


# Connection options that the role probe against a data node needs as well.
PROBE_OPTIONS = ("username", "password", "socket_timeout",
                 "socket_connect_timeout")


def bind_connection(options, host, port):
    """
    Point ``options`` (anything with writable ``host`` and ``port``) at a new
    address.
    """
    options.host = host
    options.port = int(port)


class SentinelConnector(object):
    """
    Discovers the master through Sentinel before handing over to the
    underlying ``connect`` routine, which reads its target from ``options``.
    Without a master name and at least one sentinel, ``connect`` is called
    directly.
    """
    resolver_class = MasterResolver
    waiter_class = FailoverWaiter

    def __init__(self, connect, options, master_name=None, sentinels=None,
                 failover_reconnect_timeout=None,
                 failover_reconnect_wait=DEFAULT_FAILOVER_RECONNECT_WAIT,
                 sentinel_kwargs=None, client_kwargs=None, clock=time.time,
                 sleep=time.sleep):
        self._connect = connect
        self.options = options
        self.master_name = master_name
        self.sentinels = SentinelRing(sentinels or [])
        self.failover_reconnect_timeout = failover_reconnect_timeout
        if failover_reconnect_wait is None:
            failover_reconnect_wait = DEFAULT_FAILOVER_RECONNECT_WAIT
        self.failover_reconnect_wait = failover_reconnect_wait
        self.clock = clock
        self.sleep = sleep
        self.resolver = self.resolver_class(self.sentinels, sentinel_kwargs)
        self.waiter = self.waiter_class(failover_reconnect_wait, clock, sleep,
            client_kwargs)

    def is_sentinel(self):
        """
        Sentinel mode needs a master name and at least one sentinel. An empty
        master name counts as no master name.
        """
        return bool(self.master_name) and len(self.sentinels) > 0

    def connect(self, *args, **kwargs):
        """
        Arguments are handed to the underlying connect routine unchanged.
        """
        if not self.is_sentinel():
            return self._connect(*args, **kwargs)
        return self.retry_with_timeout(
            partial(self._discover_and_connect, *args, **kwargs))

    def _discover_and_connect(self, *args, **kwargs):
        self.discover_master()
        return self._connect(*args, **kwargs)

    def retry_with_timeout(self, operation):
        scheduler = RetryScheduler(self.failover_reconnect_timeout,
            self.failover_reconnect_wait, self.clock, self.sleep)
        return scheduler.call(operation)

    def discover_master(self):
        """
        Resolve the master through the sentinels, moving on to the next one
        whenever a sentinel can't be reached, then wait for the master to
        confirm its role and bind ``options`` to it.

        Once every sentinel has failed in a row the last error is raised, so
        the caller's retry schedule decides whether to go around again.
        """
        failures = 0
        while True:
            try:
                candidate = self.resolver.resolve(self.master_name)
            except TRANSIENT_ERRORS as e:
                if not is_transient(e):
                    raise
                failures += 1
                self.sentinels.rotate()
                if failures >= len(self.sentinels):
                    raise
                continue

            if candidate.is_unknown:
                raise UnknownMasterError("No master named: %s"
                    % self.master_name)
            if candidate.is_down:
                raise MasterDownError("Master %s at %s:%s is currently "
                    "unavailable" % (self.master_name, candidate.host,
                    candidate.port))

            window = DeadlineWindow(self.failover_reconnect_timeout,
                self.failover_reconnect_wait, self.clock)
            self.waiter.wait_for_master(candidate, window.deadline)

            bind_connection(self.options, candidate.host, candidate.port)
            logger = logging.getLogger('sentredis')
            logger.info("Connecting to Redis master %s - %s:%s"
                % (self.master_name, candidate.host, candidate.port))
            return candidate


class FailoverConnection(Connection):
    """
    redis-py connection that looks up its address through Sentinel every
    time it connects, including reconnects after a dropped socket.
    """
    connector_class = SentinelConnector

    def __init__(self, master_name=None, sentinels=None,
                 failover_reconnect_timeout=None,
                 failover_reconnect_wait=DEFAULT_FAILOVER_RECONNECT_WAIT,
                 sentinel_kwargs=None, **kwargs):
        super(FailoverConnection, self).__init__(**kwargs)
        client_kwargs = dict((k, kwargs[k]) for k in PROBE_OPTIONS
                             if k in kwargs)
        self.connector = self.connector_class(
            super(FailoverConnection, self).connect_check_health, self,
            master_name=master_name, sentinels=sentinels,
            failover_reconnect_timeout=failover_reconnect_timeout,
            failover_reconnect_wait=failover_reconnect_wait,
            sentinel_kwargs=sentinel_kwargs, client_kwargs=client_kwargs)

    def connect_check_health(self, *args, **kwargs):
        # connect() and the reconnect in send_packed_command both land here
        if self._sock:
            return
        self.connector.connect(*args, **kwargs)


class SentinelRedis(StrictRedis):
    """
    StrictRedis client whose connections follow the master through
    failovers. Remaining keyword arguments are redis-py connection options
    (db, password, socket_timeout, ...).
    """
    def __init__(self, master_name=None, sentinels=None,
                 failover_reconnect_timeout=None,
                 failover_reconnect_wait=DEFAULT_FAILOVER_RECONNECT_WAIT,
                 sentinel_kwargs=None, **kwargs):
        pool = ConnectionPool(connection_class=FailoverConnection,
            master_name=master_name, sentinels=sentinels,
            failover_reconnect_timeout=failover_reconnect_timeout,
            failover_reconnect_wait=failover_reconnect_wait,
            sentinel_kwargs=sentinel_kwargs, **kwargs)
        super(SentinelRedis, self).__init__(connection_pool=pool)

    @classmethod
    def from_settings(cls, name="SENTINEL_REDIS"):
        "Build a client from the ``name`` dict in the Django settings."
        return cls(**get_sentinel_options(name))
