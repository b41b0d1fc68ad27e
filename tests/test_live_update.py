import http.client
import logging
from unittest.mock import patch

import pytest

from smslink_liveupdate.dispatcher import HTTP_ENDPOINT
from smslink_liveupdate.live_update import LiveUpdateClient, LiveUpdateConfigError
from smslink_liveupdate.responses import BlacklistCheckResult
from smslink_liveupdate.transports import TransportMode

from .helpers import SpyTransport, make_client


@pytest.mark.parametrize("connection_id, password", [
    (None, "pw"),
    ("cid", None),
    ("", "pw"),
    ("cid", ""),
])
def test_missing_credentials_fail_construction(connection_id, password):
    with pytest.raises(LiveUpdateConfigError):
        LiveUpdateClient(connection_id, password)


def test_defaults():
    client = LiveUpdateClient("cid", "pw")

    assert client.get_protocol() == "HTTPS"
    assert client.get_transport_mode() is TransportMode.QUERY_GET
    assert client.get_log_messages() == ()
    assert client.get_last_log_message() is None


def test_set_protocol():
    client = LiveUpdateClient("cid", "pw")

    assert client.set_protocol("http") is True
    assert client.get_protocol() == "HTTP"
    assert client.set_protocol("FTP") is False
    assert client.get_protocol() == "HTTP"
    assert client.set_protocol(None) is False
    assert client.set_protocol() is True
    assert client.get_protocol() == "HTTPS"


def test_set_transport_mode():
    client = LiveUpdateClient("cid", "pw")

    assert client.set_transport_mode(2) is True
    assert client.get_transport_mode() is TransportMode.BODY_POST
    assert client.set_transport_mode(7) is False
    assert client.set_transport_mode("curl") is False
    assert client.get_transport_mode() is TransportMode.BODY_POST
    assert client.set_transport_mode("SIMPLE_FETCH") is True
    assert client.get_transport_mode() is TransportMode.SIMPLE_FETCH


def test_blacklist_add_parameters():
    client, spy = make_client("MESSAGE;11;Added;")

    response = client.blacklist_add("+40 721-123-456", [1, 2], force_update=False)

    assert response.response_status is True
    _, params = spy.calls[0]
    assert list(params.items()) == [
        ("connection_id", "MyConnectionID"),
        ("password", "MyPassword"),
        ("mode", "blacklist-add"),
        ("receiver_number", "0040721123456"),
        ("force_update", 0),
        ("service_ids", "1,2"),
    ]


def test_blacklist_add_without_service_ids():
    client, spy = make_client()

    client.blacklist_add("0721123456")

    _, params = spy.calls[0]
    assert params["force_update"] == 1
    assert "service_ids" not in params


def test_blacklist_add_invalid_phone_short_circuits():
    client, spy = make_client()

    response = client.blacklist_add("abcd")

    assert response.response_status is False
    assert response.response_category == "ERROR"
    assert response.response_code == 0
    assert "Invalid Phone Number" in response.response_message
    assert "blacklist_add" in response.response_message
    assert spy.calls == []
    assert len(client.get_log_messages()) == 1


def test_blacklist_remove():
    client, spy = make_client("MESSAGE;11;Removed;")

    response = client.blacklist_remove("0721 123 456")

    assert response.response_message == "Removed"
    assert spy.calls[0][1]["mode"] == "blacklist-remove"
    assert spy.calls[0][1]["receiver_number"] == "0721123456"


@pytest.mark.parametrize("body, request_error, blacklisted", [
    ("MESSAGE;12;Blacklisted;", False, True),
    ("MESSAGE;13;Blacklisted for services;1,2", False, True),
    ("MESSAGE;14;Not blacklisted;", False, False),
    ("ERROR;0;Connection refused", True, False),
])
def test_is_blacklisted(body, request_error, blacklisted):
    client, spy = make_client(body)

    result = client.is_blacklisted("0721123456")

    assert isinstance(result, BlacklistCheckResult)
    assert result.is_request_error is request_error
    assert result.is_blacklisted is blacklisted
    assert spy.calls[0][1]["mode"] == "blacklist-verify"


def test_is_blacklisted_invalid_phone():
    client, spy = make_client()

    result = client.is_blacklisted("---")

    assert result.is_request_error is True
    assert result.is_blacklisted is False
    assert spy.calls == []


def test_create_contact_parameters():
    client, spy = make_client("MESSAGE;1;Created;")
    variables = {"dynamic_variabile_1": "one", "dynamic_variabile_2": "two"}

    client.create_contact("0721123456", 54321, "Popescu Gabriel", variables)

    _, params = spy.calls[0]
    assert list(params.items()) == [
        ("connection_id", "MyConnectionID"),
        ("password", "MyPassword"),
        ("mode", "receiver-add"),
        ("receiver_number", "0721123456"),
        ("group_id", 54321),
        ("duplicate", 1),
        ("duplicate_scope", 1),
        ("receiver_name", "Popescu Gabriel"),
        ("dynamic_variabile_1", "one"),
        ("dynamic_variabile_2", "two"),
    ]


def test_create_contact_allow_duplicate():
    client, spy = make_client()

    client.create_contact("0721123456", 5, allow_duplicate=True, duplicate_scope=2)

    _, params = spy.calls[0]
    assert params["duplicate"] == 0
    assert params["duplicate_scope"] == 2
    assert params["receiver_name"] == ""


def test_create_contact_rejects_group_zero():
    client, spy = make_client()

    response = client.create_contact("0721123456", 0)

    assert "Invalid Group ID" in response.response_message
    assert spy.calls == []


def test_create_contact_rejects_too_many_variables():
    client, spy = make_client()
    variables = {f"var_{i}": str(i) for i in range(26)}

    response = client.create_contact("0721123456", 5, contact_variables=variables)

    assert response.response_status is False
    assert "Too many contact variables" in response.response_message
    assert len(spy.calls) == 0


def test_create_contact_accepts_25_variables():
    client, spy = make_client()
    variables = {f"var_{i}": str(i) for i in range(25)}

    client.create_contact("0721123456", 5, contact_variables=variables)

    assert len(spy.calls) == 1


def test_update_contact_defaults_to_all_groups():
    client, spy = make_client("MESSAGE;1;Updated;")

    client.update_contact("0721123456", name="Popescu Gabriel George", contact_variables={"city": "Cluj"})

    _, params = spy.calls[0]
    assert params["mode"] == "receiver-update"
    assert params["group_id"] == 0
    assert params["receiver_name"] == "Popescu Gabriel George"
    assert list(params)[-1] == "city"


def test_update_contact_rejects_too_many_variables():
    client, spy = make_client()

    response = client.update_contact("0721123456", 1, contact_variables={str(i): "x" for i in range(30)})

    assert "update_contact" in response.response_message
    assert spy.calls == []


def test_remove_contact():
    client, spy = make_client("ERROR;17;Invalid group;")

    response = client.remove_contact("0721123456", 99)

    assert response.response_code == 17
    assert spy.calls[0][1]["mode"] == "receiver-remove"
    assert spy.calls[0][1]["group_id"] == 99


def test_every_call_is_logged_once():
    client, spy = make_client("MESSAGE;14;Not blacklisted;")

    client.is_blacklisted("0721123456")
    client.remove_contact("")
    client.set_protocol("HTTP")
    client.blacklist_remove("0721123456")

    entries = client.get_log_messages()
    assert len(entries) == 3
    assert entries[1].transport_label == "local validation"
    assert client.get_last_log_message() is entries[2]
    assert entries[2].target.startswith(HTTP_ENDPOINT)


def test_transport_override_only_for_its_mode():
    spy_post = SpyTransport("MESSAGE;1;posted;", mode=TransportMode.BODY_POST)
    spy_get = SpyTransport("MESSAGE;1;got;")
    client = LiveUpdateClient("cid", "pw", transports={
        TransportMode.QUERY_GET: spy_get,
        TransportMode.BODY_POST: spy_post,
    })

    client.set_transport_mode(TransportMode.BODY_POST)
    response = client.blacklist_remove("0721")

    assert response.response_message == "posted"
    assert spy_get.calls == []


def test_set_timeout():
    client = LiveUpdateClient("cid", "pw")

    assert client.get_timeout() == 30
    assert client.set_timeout(5) is True
    assert client.set_timeout(2.5) is True
    assert client.get_timeout() == 2.5
    assert client.set_timeout(None) is True
    assert client.get_timeout() is None


@pytest.mark.parametrize("timeout", [-1, 0, True, "10", float("nan"), float("inf")])
def test_set_timeout_rejects_invalid_values(timeout):
    client = LiveUpdateClient("cid", "pw")
    client.set_timeout(7)

    assert client.set_timeout(timeout) is False
    assert client.get_timeout() == 7


def test_set_endpoints():
    client = LiveUpdateClient("cid", "pw")

    client.set_endpoints(https="https://localhost/index.php")
    assert client.get_endpoint() == "https://localhost/index.php"

    client.set_protocol("HTTP")
    assert client.get_endpoint() == HTTP_ENDPOINT
    client.set_endpoints(http="http://localhost/index.php")
    assert client.get_endpoint() == "http://localhost/index.php"


def test_simple_fetch_protocol_failure_is_a_request_error():
    client = LiveUpdateClient("cid", "pw")
    client.set_protocol("HTTP")
    client.set_transport_mode(TransportMode.SIMPLE_FETCH)

    with patch("urllib.request.urlopen", side_effect=http.client.BadStatusLine("GARBAGE")):
        result = client.is_blacklisted("0721")

    assert result.is_request_error is True
    assert result.is_blacklisted is False
    assert result.response_category == "ERROR"
    assert len(client.get_log_messages()) == 1


def test_contact_variable_clashing_with_request_field_is_logged(caplog):
    client, spy = make_client()

    with caplog.at_level(logging.WARNING, logger="smslink_liveupdate.live_update"):
        client.update_contact("0721123456", 3, contact_variables={"mode": "x", "city": "Cluj"})

    _, params = spy.calls[0]
    assert params["mode"] == "x"
    assert "Contact variable overrides request parameter: mode" in caplog.text
    assert "city" not in caplog.text
