"""
Rotation of Sentinel addresses.

The head of the ring is the sentinel in use. When it can't be reached it is
moved to the back, so every sentinel gets a turn before a failed one is
tried again.
"""

import logging

from .exceptions import ConfigurationError


def parse_sentinel_address(address):
    """
    Normalize a sentinel address to a ``{"host": ..., "port": ...}`` dict.
    Accepts such a dict, a ``(host, port)`` pair or a "host:port" string.
    """
    try:
        if isinstance(address, dict):
            host, port = address["host"], address["port"]
        elif isinstance(address, str):
            host, port = address.rsplit(":", 1)
        else:
            host, port = address
        port = int(port)
    except (KeyError, TypeError, ValueError):
        raise ConfigurationError("Invalid sentinel address: %r" % (address,))
    if not host or port <= 0:
        raise ConfigurationError("Invalid sentinel address: %r" % (address,))
    return {"host": host, "port": port}


class SentinelRing(object):
    """
    Ordered, mutable list of sentinel addresses.
    """
    def __init__(self, addresses):
        self.addresses = [parse_sentinel_address(a) for a in addresses]

    def __len__(self):
        return len(self.addresses)

    def __iter__(self):
        return iter(self.addresses)

    def current(self):
        return self.addresses[0]

    def rotate(self):
        """
        Move the current sentinel to the back of the ring and return the new
        head.
        """
        self.addresses.append(self.addresses.pop(0))
        current = self.current()
        logger = logging.getLogger('sentredis')
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Trying next sentinel: %s:%s" % (current["host"],
                current["port"]))
        return current
