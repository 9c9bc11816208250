from unittest.mock import MagicMock

import pytest

from tests.helpers import make_collection


@pytest.fixture
def collections():
    return {}


@pytest.fixture
def fake_db(collections):
    """Database double handing out one collection double per name."""
    db = MagicMock()

    def _get(name):
        if name not in collections:
            collections[name] = make_collection()
        return collections[name]

    db.__getitem__.side_effect = _get
    return db
