"""Pytest configuration and fixtures for phasecut tests."""

import numpy as np
import pytest


@pytest.fixture
def device_manager():
    """Create a DeviceManager for testing."""
    from phasecut.device.manager import DeviceManager
    return DeviceManager(device="cpu")  # Use CPU for consistent tests


@pytest.fixture
def row_ramp():
    """Smooth surface rising along the columns only, wrapping several times."""
    H, W = 32, 48
    _, x = np.meshgrid(np.arange(H), np.arange(W), indexing='ij')
    return 0.4 * x


@pytest.fixture
def sheared_surface():
    """Smooth surface whose first column is flat; steps stay well below pi."""
    H, W = 24, 24
    y, x = np.meshgrid(np.arange(H), np.arange(W), indexing='ij')
    return 0.3 * x + 0.05 * x * y


@pytest.fixture
def wrap_np():
    """Numpy wrapping helper."""
    def _wrap(phase):
        return np.arctan2(np.sin(phase), np.cos(phase))
    return _wrap


@pytest.fixture
def positive_block():
    """
    4x4 grid with a single positive residue anchored at [1, 1].

    [1, 1] is the only block clear of the border. Around it the folded
    gradients sum to +pi.
    """
    phase = np.zeros((4, 4))
    phase[1, 1] = 2.0
    phase[1, 2] = 0.0
    phase[2, 1] = 1.4
    phase[2, 2] = 0.7
    return phase


@pytest.fixture
def negative_block(positive_block):
    """Mirror of ``positive_block``: a single negative residue at [1, 1]."""
    return -positive_block


@pytest.fixture
def constant_phase():
    """4x4 grid of constant 0.5."""
    return np.full((4, 4), 0.5)
