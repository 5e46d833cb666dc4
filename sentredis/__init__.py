"""
Sentinel-aware Redis client

SentinelRedis can be used in place of a StrictRedis client. Pass the name of
the master monitored by Sentinel and a list of Sentinel addresses, and every
new connection is made to whichever node Sentinel reports as master, once
that node confirms it has left the slave role.

"""

from .client import (FailoverConnection, SentinelConnector, SentinelRedis,
                     bind_connection)
from .exceptions import (ConfigurationError, FailoverTimeoutError,
                         MasterDownError, SentinelError, UnknownMasterError)
from .failover import DEFAULT_FAILOVER_RECONNECT_WAIT
