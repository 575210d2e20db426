"""
Unit tests for the in-memory denylist.
"""
import pytest

from app.core.denylist import Denylist


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestDenylist:
    """Tests for Denylist"""

    def test_added_ip_is_denied(self):
        denylist = Denylist()
        denylist.add("203.0.113.7")

        assert "203.0.113.7" in denylist
        assert "203.0.113.8" not in denylist
        assert len(denylist) == 1

    def test_non_string_never_denied(self):
        denylist = Denylist()
        denylist.add("203.0.113.7")
        assert None not in denylist

    def test_oldest_entry_evicted_at_capacity(self):
        denylist = Denylist(max_size=2)
        denylist.add("10.0.0.1")
        denylist.add("10.0.0.2")
        denylist.add("10.0.0.3")

        assert "10.0.0.1" not in denylist
        assert "10.0.0.2" in denylist
        assert "10.0.0.3" in denylist
        assert len(denylist) == 2

    def test_repeat_offender_moves_to_newest(self):
        denylist = Denylist(max_size=2)
        denylist.add("10.0.0.1")
        denylist.add("10.0.0.2")
        denylist.add("10.0.0.1")
        denylist.add("10.0.0.3")

        assert "10.0.0.1" in denylist
        assert "10.0.0.2" not in denylist

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        denylist = Denylist(ttl_seconds=60, clock=clock)
        denylist.add("10.0.0.1")

        clock.now += 59
        assert "10.0.0.1" in denylist

        clock.now += 1
        assert "10.0.0.1" not in denylist
        assert len(denylist) == 0

    def test_len_counts_only_live_entries(self):
        clock = FakeClock()
        denylist = Denylist(ttl_seconds=60, clock=clock)
        denylist.add("10.0.0.1")
        clock.now += 30
        denylist.add("10.0.0.2")

        clock.now += 30
        assert len(denylist) == 1
        assert "10.0.0.2" in denylist

    def test_without_ttl_entries_never_expire(self):
        clock = FakeClock()
        denylist = Denylist(clock=clock)
        denylist.add("10.0.0.1")

        clock.now += 10 ** 9
        assert "10.0.0.1" in denylist

    def test_remove(self):
        denylist = Denylist()
        denylist.add("10.0.0.1")
        denylist.remove("10.0.0.1")
        denylist.remove("10.0.0.99")

        assert "10.0.0.1" not in denylist

    def test_invalid_max_size(self):
        with pytest.raises(ValueError):
            Denylist(max_size=0)
