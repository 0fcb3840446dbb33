"""Tests for the OpenNebula XML-RPC client."""

from unittest.mock import MagicMock
import xmlrpc.client
import pytest

from nebula.base.config import OpenNebulaConfig
from nebula.base.exceptions import TransportError
from nebula.opennebula.client import OneClient, is_success


@pytest.fixture
def svc():
    client = OneClient(OpenNebulaConfig(
        endpoint="http://one.example:2633/RPC2",
        username="oneadmin",
        password="secret",
    ))
    mock_proxy = MagicMock()
    client.proxy = mock_proxy
    yield client, mock_proxy


class TestCall:
    def test_success(self, svc):
        client, proxy = svc
        getattr(proxy, "one.vm.info").return_value = [True, "<VM><ID>1</ID></VM>", 0]
        assert client.call("one.vm.info", 1) == "<VM><ID>1</ID></VM>"

    def test_session_prepended(self, svc):
        client, proxy = svc
        getattr(proxy, "one.vm.action").return_value = [True, 42, 0]
        client.call("one.vm.action", "terminate-hard", 42)
        getattr(proxy, "one.vm.action").assert_called_once_with(
            "oneadmin:secret", "terminate-hard", 42
        )

    def test_integer_body(self, svc):
        client, proxy = svc
        getattr(proxy, "one.template.instantiate").return_value = [True, 42, 0]
        assert client.call("one.template.instantiate", 7, "web", False, "", False) == "42"

    def test_unsuccessful_reply(self, svc):
        client, proxy = svc
        getattr(proxy, "one.vm.info").return_value = [False, "[one.vm.info] Error getting VM [9].", 1024]
        with pytest.raises(TransportError, match="Error getting VM") as exc_info:
            client.call("one.vm.info", 9)
        assert exc_info.value.command == "one.vm.info"
        assert exc_info.value.code == 1024

    def test_fault(self, svc):
        client, proxy = svc
        getattr(proxy, "one.vm.info").side_effect = xmlrpc.client.Fault(-501, "no such method")
        with pytest.raises(TransportError) as exc_info:
            client.call("one.vm.info", 1)
        assert exc_info.value.code == -501

    def test_protocol_error(self, svc):
        client, proxy = svc
        getattr(proxy, "one.vm.info").side_effect = xmlrpc.client.ProtocolError(
            "one.example:2633/RPC2", 502, "Bad Gateway", {}
        )
        with pytest.raises(TransportError, match="502"):
            client.call("one.vm.info", 1)

    def test_connection_error(self, svc):
        client, proxy = svc
        getattr(proxy, "one.vm.info").side_effect = ConnectionRefusedError("refused")
        with pytest.raises(TransportError, match="Could not reach"):
            client.call("one.vm.info", 1)


class TestIsSuccess:
    def test_unexpected_shape(self):
        with pytest.raises(TransportError, match="Unexpected reply"):
            is_success("one.vm.info", "oops")

    def test_missing_error_code(self):
        with pytest.raises(TransportError) as exc_info:
            is_success("one.vm.info", [False, "denied"])
        assert exc_info.value.code is None
