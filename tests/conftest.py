import pytest

import swflow.transports as transports


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep each test away from local config files and cached transports."""
    monkeypatch.setenv("SWFLOW_CONFIG", str(tmp_path / "swflow.yaml"))
    monkeypatch.delenv("SWFLOW_DOMAIN", raising=False)
    monkeypatch.delenv("SWFLOW_TRANSPORT", raising=False)
    transports._transport_instance = None
    yield
    transports._transport_instance = None
