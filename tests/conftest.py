"""Pytest configuration and fixtures for TypeRewind tests."""

import pytest
import tempfile
import logging
from pathlib import Path

import numpy as np
import yaml
from pubsub import pub

from typerewind.config import TypeRewindConfig
from typerewind.models.frame import Frame


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests wiring several components together")
    config.addinivalue_line("markers", "slow: tests that run real threads for a while")


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Make sure no listener leaks from one test into the next."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def make_frame():
    """Build frames whose payload records their timestamp."""
    def _make_frame(timestamp, sequence_number=None):
        return Frame(payload=f"frame@{timestamp}",
                     timestamp=timestamp,
                     sequence_number=sequence_number if sequence_number is not None else int(timestamp))
    return _make_frame


@pytest.fixture
def sample_image():
    """A small RGB frame payload."""
    image = np.zeros((4, 6, 3), dtype=np.uint8)
    image[:, 2] = 255
    return image


@pytest.fixture
def config_data(temp_data_dir):
    """Configuration dictionary for a tiny buffer."""
    return {
        "recording": {
            "buffer_seconds": 1.0,
            "frames_per_second": 5.0,
        },
        "capture": {
            "source": "synthetic",
            "frames_per_unit": 1,
            "width": 8,
            "height": 4,
        },
        "sink": {
            "queue_size": 64,
            "backpressure": "block",
            "block_timeout": 1.0,
        },
        "rewind": {
            "max_ledger_depth": 32,
            "monitor_input": False,
        },
        "storage": {
            "data_directory": "data",
        },
        "logging": {
            "level": "DEBUG",
            "file_path": "data/logs/typerewind.log",
            "console_output": False,
        },
    }


@pytest.fixture
def config_file(temp_data_dir, config_data):
    """Write the test configuration to a YAML file."""
    path = Path(temp_data_dir) / "typerewind.yaml"
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config_data, f)
    return str(path)


@pytest.fixture
def test_config(config_file):
    """Loaded test configuration."""
    return TypeRewindConfig(config_file)
