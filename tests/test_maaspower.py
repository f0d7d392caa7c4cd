"""Plain-text MAAS webhook endpoints."""

from conftest import SWITCH_MAC


def test_query_stopped(client):
    resp = client.get("/maaspower/AA:BB:CC:DD:EE:FF/2/query")
    assert resp.status_code == 200
    assert resp.text == "status : stopped"
    assert resp.headers["content-type"].startswith("text/plain")


def test_query_running(client):
    assert client.get(f"/maaspower/{SWITCH_MAC}/1/query").text == "status : running"


def test_query_other_mode(client):
    resp = client.get(f"/maaspower/{SWITCH_MAC}/3/query")
    assert resp.text == f"query request for MAC Address {SWITCH_MAC}, Port Index 3"


def test_query_non_numeric_port(client):
    resp = client.get(f"/maaspower/{SWITCH_MAC}/x1/query")
    assert resp.status_code == 400
    assert resp.text.startswith("error getting integer value from port x1")


def test_query_underscored_port_is_rejected(client, unifi):
    resp = client.get(f"/maaspower/{SWITCH_MAC}/0_1/query")
    assert resp.status_code == 400
    assert resp.text.startswith("error getting integer value from port 0_1")
    assert unifi.lookups == []


def test_padded_port_is_rejected(client, unifi):
    resp = client.post(f"/maaspower/{SWITCH_MAC}/%201%20/off")
    assert resp.status_code == 400
    assert unifi.mode_of(1) == "auto"


def test_query_unknown_device(client):
    resp = client.get("/maaspower/11:22:33:44:55:66/1/query")
    assert resp.status_code == 404
    assert "11:22:33:44:55:66" in resp.text


def test_query_missing_port(client):
    assert client.get(f"/maaspower/{SWITCH_MAC}/42/query").status_code == 404


def test_power_off_then_on(client, unifi):
    resp = client.post(f"/maaspower/{SWITCH_MAC}/1/off")
    assert resp.text == "status : stopped"
    assert unifi.mode_of(1) == "off"

    resp = client.post(f"/maaspower/{SWITCH_MAC}/1/on")
    assert resp.text == "status : running"
    assert unifi.mode_of(1) == "auto"
    assert len(unifi.updates) == 2


def test_power_on_controller_failure(client, unifi):
    unifi.fail_update = True
    resp = client.post(f"/maaspower/{SWITCH_MAC}/2/on")
    assert resp.status_code == 500
    assert resp.text.startswith("error updating device:")
