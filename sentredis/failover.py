"""
Waiting out a failover.

``RetryScheduler`` retries an operation on transient connection errors until
an absolute deadline, and ``FailoverWaiter`` polls a freshly elected master
until it reports the master role itself.
"""

import logging
import time

from redis.client import StrictRedis

from .exceptions import TRANSIENT_ERRORS, FailoverTimeoutError, is_transient


DEFAULT_FAILOVER_RECONNECT_WAIT = 0.1


class DeadlineWindow(object):
    """
    An absolute cutoff, captured once when the window is opened. Checks
    compare against that cutoff and never start a new relative timeout.
    """
    def __init__(self, timeout, wait=DEFAULT_FAILOVER_RECONNECT_WAIT,
                 clock=time.time):
        self.timeout = timeout or 0
        self.wait = wait
        self.clock = clock
        self.deadline = self.clock() + self.timeout

    def expired(self):
        return self.clock() > self.deadline


class RetryScheduler(object):
    """
    Calls an operation until it succeeds, sleeping ``wait`` seconds after
    every transient failure. Attempts are bounded only by the deadline. With
    no timeout configured the first failure is raised straight away.
    """
    def __init__(self, timeout=None, wait=DEFAULT_FAILOVER_RECONNECT_WAIT,
                 clock=time.time, sleep=time.sleep):
        self.timeout = timeout
        self.wait = wait
        self.clock = clock
        self.sleep = sleep

    def call(self, operation):
        window = DeadlineWindow(self.timeout, self.wait, self.clock)
        while True:
            try:
                return operation()
            except TRANSIENT_ERRORS as e:
                if not is_transient(e) or not self.timeout or window.expired():
                    raise
                logger = logging.getLogger('sentredis')
                logger.warning("Connection failed, retrying in %ss: %s"
                    % (self.wait, e))
                self.sleep(self.wait)


class FailoverWaiter(object):
    """
    Polls an elected master until its own INFO reports ``role:master``.
    Right after a failover sentinel may already point at the new master
    while it still thinks it is a slave.
    """
    redis_client_class = StrictRedis

    def __init__(self, wait=DEFAULT_FAILOVER_RECONNECT_WAIT, clock=time.time,
                 sleep=time.sleep, client_kwargs=None):
        self.wait = wait
        self.clock = clock
        self.sleep = sleep
        self.client_kwargs = client_kwargs or {}

    def is_master(self, host, port):
        client = self.redis_client_class(host, int(port), **self.client_kwargs)
        try:
            return client.info().get("role") == "master"
        finally:
            client.close()

    def wait_for_master(self, candidate, deadline):
        """
        Block until ``candidate`` reports the master role, or raise
        ``FailoverTimeoutError`` once ``deadline`` (a clock value) passes.
        """
        logger = logging.getLogger('sentredis')
        while not self.is_master(candidate.host, candidate.port):
            if self.clock() < deadline:
                logger.debug("%s:%s is not master yet, checking again in %ss"
                    % (candidate.host, candidate.port, self.wait))
                self.sleep(self.wait)
            else:
                raise FailoverTimeoutError(candidate.host, candidate.port)
