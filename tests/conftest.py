# imagehider Test Configuration
# This file contains test settings and fixtures

import pytest
import sys
import os

import numpy as np
from PIL import Image

# Add python-core to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'python-core'))


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return os.path.dirname(os.path.dirname(__file__))


@pytest.fixture(scope="session")
def python_cli_path(project_root):
    """Return path to python-cli directory."""
    return os.path.join(project_root, 'python-cli')


@pytest.fixture
def temp_directory(tmp_path):
    """Provide a temporary directory for test operations."""
    return tmp_path


@pytest.fixture
def carrier_image(temp_directory):
    """Provide a 64x48 RGBA carrier image with varied channel values."""
    rng = np.random.default_rng(1234)
    img_array = rng.integers(0, 256, (48, 64, 4), dtype=np.uint8)
    img_path = temp_directory / "carrier.png"
    Image.fromarray(img_array, 'RGBA').save(str(img_path))
    return str(img_path)


@pytest.fixture
def hidden_image(temp_directory):
    """Provide a 32x32 RGB image with a horizontal gradient."""
    img_array = np.zeros((32, 32, 3), dtype=np.uint8)
    img_array[:, :, 0] = np.arange(32, dtype=np.uint8) * 8
    img_array[:, :, 1] = 200
    img_array[8:24, 8:24, 2] = 255
    img_path = temp_directory / "hidden.png"
    Image.fromarray(img_array, 'RGB').save(str(img_path))
    return str(img_path)
