import os
from pathlib import Path

import pytest

# Test layer directory -> marker applied to every test collected beneath it
_LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "bdd": pytest.mark.bdd,
    "integration": pytest.mark.integration,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="domain.toml overlay to run the suite against",
    )


def pytest_sessionstart(session):
    """Select the ``domain.toml`` overlay before the tracking domain is imported.

    ``TRACKING_*`` variables are cleared; tests set the ones they need.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    for name in [key for key in os.environ if key.startswith("TRACKING_")]:
        del os.environ[name]


def pytest_collection_modifyitems(config, items):
    for item in items:
        layers = set(Path(item.fspath).parts) & _LAYER_MARKERS.keys()
        for layer in layers:
            item.add_marker(_LAYER_MARKERS[layer])
        if "integration" in layers and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
