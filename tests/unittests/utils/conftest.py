import json
import logging

import pytest
import structlog
from tests.unittests.constants import CONSTRUCTOR_ABI, MINT_ABI, TEST_PRIVATE_KEY


@pytest.fixture
def artifact_path(tmp_path):
    path = tmp_path.joinpath("MyToken.json")
    with path.open("w") as f:
        json.dump({"abi": [CONSTRUCTOR_ABI, MINT_ABI], "bytecode": "0x6080604052"}, f)
    return path


@pytest.fixture
def environ():
    return {
        "INFURA_API_KEY": "infura-secret",
        "ACCOUNT_PRIVATE_KEY": TEST_PRIVATE_KEY,
    }


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
