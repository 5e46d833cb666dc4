"""
Tests for the sentinel ring and master resolution.

"""
from unittest import TestCase

from redis.exceptions import ConnectionError

from sentredis.exceptions import ConfigurationError, SentinelError
from sentredis.resolver import MasterCandidate, MasterResolver
from sentredis.ring import SentinelRing, parse_sentinel_address


class MockStrictRedis(object):
    """
    A mock version of a redis client connection. Used for both Sentinel
    servers and the Redis nodes they monitor. State is shared by every
    instance, so call ``reset`` in setUp.
    """
    @classmethod
    def reset(cls):
        cls.masters = {"master": ["remote.server", "8888"]}
        cls.down = {}
        cls.roles = []
        cls.default_role = "master"
        cls.unreachable = set()
        cls.failing_commands = set()
        cls.instances = []

    def __init__(self, host, port, **kwargs):
        self.host = host
        self.port = port
        self.kwargs = kwargs
        self.commands = []
        self.info_calls = 0
        self.closed = 0
        self.instances.append(self)

    def _check(self):
        if (self.host, self.port) in self.unreachable:
            raise ConnectionError("Error 111 connecting to %s:%s. Connection "
                "refused." % (self.host, self.port))

    def execute_command(self, command, sub_command, *args):
        self._check()
        assert command == "SENTINEL"
        self.commands.append((sub_command,) + args)
        if sub_command in self.failing_commands:
            raise ConnectionError("Connection closed by server.")
        if sub_command == "get-master-addr-by-name":
            return self.masters.get(args[0])
        if sub_command == "is-master-down-by-addr":
            return self.down.get((args[0], args[1]), [0, "abc", 0])
        raise KeyError("Sentinel got command %s" % sub_command)

    def info(self):
        self._check()
        self.info_calls += 1
        if self.roles:
            return {"role": self.roles.pop(0)}
        return {"role": self.default_role}

    def close(self):
        self.closed += 1


SENTINELS = [{"host": "localhost", "port": 26379},
             {"host": "localhost", "port": 26380}]


class TestSentinelRing(TestCase):

    def test_parse_addresses(self):
        expected = {"host": "10.0.0.1", "port": 26379}
        self.assertEqual(parse_sentinel_address(
            {"host": "10.0.0.1", "port": "26379"}), expected)
        self.assertEqual(parse_sentinel_address(("10.0.0.1", 26379)),
            expected)
        self.assertEqual(parse_sentinel_address("10.0.0.1:26379"), expected)

    def test_parse_invalid_addresses(self):
        for address in ["10.0.0.1", "10.0.0.1:abc", {"host": "10.0.0.1"},
                        ("10.0.0.1", 0), 26379, (None, 26379)]:
            self.assertRaises(ConfigurationError, parse_sentinel_address,
                address)

    def test_current_is_first_address(self):
        ring = SentinelRing(SENTINELS)
        self.assertEqual(ring.current(), {"host": "localhost", "port": 26379})
        self.assertEqual(len(ring), 2)

    def test_rotate_cycles_through_all_addresses(self):
        ring = SentinelRing(["a:1", "b:2", "c:3"])
        seen = [ring.rotate()["host"] for _ in range(4)]
        self.assertEqual(seen, ["b", "c", "a", "b"])
        self.assertEqual([a["host"] for a in ring], ["b", "c", "a"])

    def test_rotate_logs_next_sentinel(self):
        ring = SentinelRing(SENTINELS)
        with self.assertLogs("sentredis", "DEBUG") as logs:
            ring.rotate()
        self.assertIn("Trying next sentinel: localhost:26380",
            logs.output[0])


class TestMasterCandidate(TestCase):

    def test_states(self):
        unknown = MasterCandidate.unknown()
        self.assertTrue(unknown.is_unknown)
        self.assertFalse(unknown.is_down)
        self.assertFalse(unknown.is_available)

        down = MasterCandidate("remote.server", 8888, "abc", True)
        self.assertTrue(down.is_down)
        self.assertFalse(down.is_available)

        up = MasterCandidate("remote.server", 8888, "abc", False)
        self.assertTrue(up.is_available)
        self.assertFalse(up.is_unknown)


class TestMasterResolver(TestCase):
    """
    MasterResolver runs against MockStrictRedis sentinels.
    """
    def setUp(self):
        MockStrictRedis.reset()
        self.old_client = MasterResolver.redis_client_class
        MasterResolver.redis_client_class = MockStrictRedis
        self.ring = SentinelRing(SENTINELS)
        self.resolver = MasterResolver(self.ring, {"password": "secret"})

    def tearDown(self):
        MasterResolver.redis_client_class = self.old_client

    def test_resolve_available_master(self):
        candidate = self.resolver.resolve("master")
        self.assertEqual(candidate,
            MasterCandidate("remote.server", 8888, "abc", False))
        self.assertTrue(candidate.is_available)

    def test_resolve_queries_current_sentinel(self):
        self.resolver.resolve("master")
        sentinel, = MockStrictRedis.instances
        self.assertEqual((sentinel.host, sentinel.port),
            ("localhost", 26379))
        self.assertEqual(sentinel.kwargs, {"password": "secret"})
        self.assertEqual(sentinel.commands, [
            ("get-master-addr-by-name", "master"),
            ("is-master-down-by-addr", "remote.server", 8888, 0, "*")])

    def test_resolve_follows_ring_rotation(self):
        self.ring.rotate()
        self.resolver.resolve("master")
        self.assertEqual(MockStrictRedis.instances[0].port, 26380)

    def test_resolve_decodes_byte_replies(self):
        MockStrictRedis.masters["master"] = [b"10.0.0.5", b"6380"]
        MockStrictRedis.down[("10.0.0.5", 6380)] = [0, b"def", 0]
        candidate = self.resolver.resolve("master")
        self.assertEqual(candidate,
            MasterCandidate("10.0.0.5", 6380, "def", False))

    def test_resolve_unknown_master(self):
        candidate = self.resolver.resolve("other")
        self.assertTrue(candidate.is_unknown)
        sentinel, = MockStrictRedis.instances
        self.assertEqual(len(sentinel.commands), 1)
        self.assertEqual(sentinel.closed, 1)

    def test_resolve_unknown_master_nil_pair(self):
        MockStrictRedis.masters["master"] = [None, None]
        self.assertTrue(self.resolver.resolve("master").is_unknown)

    def test_resolve_down_master(self):
        MockStrictRedis.down[("remote.server", 8888)] = [1, "abc", 0]
        candidate = self.resolver.resolve("master")
        self.assertTrue(candidate.is_down)
        self.assertEqual((candidate.host, candidate.port),
            ("remote.server", 8888))

    def test_sentinel_closed_after_success(self):
        self.resolver.resolve("master")
        self.assertEqual(MockStrictRedis.instances[0].closed, 1)

    def test_sentinel_unreachable(self):
        MockStrictRedis.unreachable.add(("localhost", 26379))
        self.assertRaises(ConnectionError, self.resolver.resolve, "master")
        self.assertEqual(MockStrictRedis.instances[0].closed, 1)

    def test_sentinel_closed_when_down_query_fails(self):
        MockStrictRedis.failing_commands.add("is-master-down-by-addr")
        self.assertRaises(ConnectionError, self.resolver.resolve, "master")
        sentinel, = MockStrictRedis.instances
        self.assertEqual(sentinel.closed, 1)

    def test_invalid_master_port(self):
        for reply in [["remote.server", "0"], ["remote.server", "abc"],
                      ["remote.server", None], ["remote.server"]]:
            MockStrictRedis.masters["master"] = reply
            self.assertRaises(SentinelError, self.resolver.resolve, "master")
        for sentinel in MockStrictRedis.instances:
            self.assertEqual(sentinel.closed, 1)
            self.assertEqual(len(sentinel.commands), 1)
