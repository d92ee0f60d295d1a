import copy

import pytest

import leverage_paths.core.config as leverage_config


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration")


@pytest.fixture(autouse=True)
def restore_global_config():
    original = copy.deepcopy(leverage_config.CONFIG)
    yield
    leverage_config.set_config(original)
