"""Tests for attribute reconciliation and serialization."""

from nebula.base.reconcile import serialize, synchronize


class TestSynchronize:
    def test_observed_value_or_empty(self):
        declared = {"a": "1", "b": "2"}
        observed = {"PFX/a": "X"}
        assert synchronize(declared, observed, "PFX") == {"a": "X", "b": ""}

    def test_empty_declared(self):
        assert synchronize({}, {"PFX/a": "X"}, "PFX") == {}

    def test_none_declared(self):
        assert synchronize(None, {"PFX/a": "X"}, "PFX") == {}

    def test_empty_observed(self):
        assert synchronize({"a": 1, "b": True}, {}, "PFX") == {"a": "", "b": ""}

    def test_none_observed(self):
        assert synchronize({"a": "1"}, None, "PFX") == {"a": ""}

    def test_remote_only_keys_ignored(self):
        observed = {"USER_TEMPLATE/ROLE": "web", "USER_TEMPLATE/EXTRA": "x", "ROLE": "other"}
        assert synchronize({"ROLE": "db"}, observed, "USER_TEMPLATE") == {"ROLE": "web"}

    def test_prefix_required(self):
        assert synchronize({"ROLE": "db"}, {"ROLE": "web"}, "USER_TEMPLATE") == {"ROLE": ""}

    def test_empty_prefix_uses_bare_key(self):
        assert synchronize({"ROLE": "db"}, {"ROLE": "web"}, "") == {"ROLE": "web"}


class TestSerialize:
    def test_empty(self):
        assert serialize({}) == ""

    def test_none(self):
        assert serialize(None) == ""

    def test_lines(self):
        text = serialize({"b": "2", "a": "1"})
        assert set(text.splitlines()) == {"a=1", "b=2"}

    def test_deterministic_order(self):
        assert serialize({"ROLE": "web", "ENV": "prod", "TIER": 1}) == "ENV=prod\nROLE=web\nTIER=1"
