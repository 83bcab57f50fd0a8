"""Shared fixtures for GPU tests."""

from __future__ import annotations

import pytest

from gpu_gradient.gpu_device import context_create, device_create
from gpu_gradient.gpu_types import GradientConfig


@pytest.fixture(scope="session")
def wgpu_device():
    """One device for the whole session; skips when no adapter is available."""
    try:
        return device_create()
    except RuntimeError as e:
        pytest.skip(f"WGPU device unavailable: {e}")


@pytest.fixture
def ctx(wgpu_device):
    """Fresh context on the shared device with the default configuration."""
    return context_create(GradientConfig(), device=wgpu_device)
