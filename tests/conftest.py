from pathlib import Path

import pytest

# Directory under tests/<context>/ → layer marker
_LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
}


def pytest_collection_modifyitems(config, items):
    """Mark each test with its layer, taken from the directory it lives in."""
    for item in items:
        layer = next((part for part in Path(item.fspath).parts if part in _LAYER_MARKERS), None)
        if layer is None:
            continue

        item.add_marker(_LAYER_MARKERS[layer])
        # HTTP round trips count as slow unless a test opts out
        if layer == "integration" and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
