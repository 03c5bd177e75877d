import pytest
import requests

from konnect_dp.bootstrap.control_plane import ControlPlaneResolver
from konnect_dp.bootstrap.errors import ControlPlaneNotFoundError
from konnect_dp.konnect.client import KonnectClient


def test_resolves_exact_name(konnect_factory):
    client = konnect_factory(control_planes=[
        {"id": "cp-0", "name": "demo-2"},
        {"id": "cp-1", "name": "demo"},
    ])

    identity = ControlPlaneResolver(client, page_size=50).resolve("demo")

    assert identity.id == "cp-1"
    assert identity.name == "demo"
    assert client.called("list_control_planes") == [("list_control_planes", 50)]


def test_no_match_is_not_found(konnect_factory):
    client = konnect_factory(control_planes=[{"id": "cp-0", "name": "Demo"}])

    with pytest.raises(ControlPlaneNotFoundError) as ei:
        ControlPlaneResolver(client).resolve("demo")

    assert ei.value.exit_code == 11
    assert "Control Plane 'demo' not found" in str(ei.value)


def test_listing_failure_is_reported_as_not_found(konnect_factory):
    client = konnect_factory(fail={"list_control_planes"})

    with pytest.raises(ControlPlaneNotFoundError):
        ControlPlaneResolver(client).resolve("demo")


def test_entry_without_id_does_not_count(konnect_factory):
    client = konnect_factory(control_planes=[{"id": None, "name": "demo"}])

    with pytest.raises(ControlPlaneNotFoundError):
        ControlPlaneResolver(client).resolve("demo")


def test_duplicate_names_take_first_listed_and_warn(konnect_factory, caplog):
    client = konnect_factory(control_planes=[
        {"id": "cp-a", "name": "demo"},
        {"id": "cp-b", "name": "demo"},
    ])

    with caplog.at_level("WARNING", logger="konnect_dp"):
        identity = ControlPlaneResolver(client).resolve("demo")

    assert identity.id == "cp-a"
    assert "2 control planes are named 'demo'" in caplog.text


@pytest.mark.parametrize("body", [["x"], {"data": ["x"]}, {"data": {"id": "cp-1"}}])
def test_malformed_listing_is_not_found(monkeypatch, fake_response, body):
    monkeypatch.setattr(requests, "request", lambda method, url, **kw: fake_response(200, body))
    client = KonnectClient(base_url="https://us.api.konghq.com/v2", token="tok")

    with pytest.raises(ControlPlaneNotFoundError) as ei:
        ControlPlaneResolver(client).resolve("demo")

    assert ei.value.exit_code == 11
