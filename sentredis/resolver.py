"""
Ask a Sentinel where the master for a service currently lives.
"""

from collections import namedtuple

from redis.client import StrictRedis

from .exceptions import SentinelError


def _to_str(value):
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def _to_port(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class MasterCandidate(namedtuple("MasterCandidate",
                                 ["host", "port", "run_id", "down"])):
    """
    What a sentinel reported for a master name. ``host`` is None when no
    master is registered under that name; ``down`` is set when the sentinel
    considers the registered address unreachable.
    """
    __slots__ = ()

    @classmethod
    def unknown(cls):
        return cls(None, None, None, False)

    @property
    def is_unknown(self):
        return self.host is None

    @property
    def is_down(self):
        return not self.is_unknown and self.down

    @property
    def is_available(self):
        return not self.is_unknown and not self.down


class MasterResolver(object):
    """
    Runs the discovery queries against the sentinel at the head of ``ring``.
    A fresh client is opened for every resolution and always closed again;
    connection errors propagate so the caller can rotate the ring.
    """
    redis_client_class = StrictRedis

    def __init__(self, ring, sentinel_kwargs=None):
        self.ring = ring
        self.sentinel_kwargs = sentinel_kwargs or {}

    def resolve(self, master_name):
        address = self.ring.current()
        sentinel = self.redis_client_class(address["host"], address["port"],
            **self.sentinel_kwargs)
        try:
            reply = sentinel.execute_command("SENTINEL",
                "get-master-addr-by-name", master_name)
            if not reply or reply[0] is None:
                return MasterCandidate.unknown()
            host = _to_str(reply[0])
            port = _to_port(reply[1]) if len(reply) > 1 else 0
            if not host or port <= 0:
                raise SentinelError("Invalid master address from sentinel: %r"
                    % (reply,))
            # current epoch 0 and runid "*" ask for the down state without
            # casting a leader vote.
            down, run_id = sentinel.execute_command("SENTINEL",
                "is-master-down-by-addr", host, port, 0, "*")[:2]
        finally:
            sentinel.close()
        return MasterCandidate(host, port, _to_str(run_id), int(down) == 1)
