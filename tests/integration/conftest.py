"""
Shared fixtures for integration tests.
"""

import pytest


@pytest.fixture
def xor_inputs():
    """XOR inputs."""
    return [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]


@pytest.fixture
def xor_outputs():
    """XOR expected outputs."""
    return [0.0, 1.0, 1.0, 0.0]


@pytest.fixture
def linear_samples():
    """Samples of y = 2*x1 - x2 + 0.5 on a small grid."""
    samples = []
    for x1 in (-1.0, 0.0, 1.0):
        for x2 in (-1.0, 0.0, 1.0):
            samples.append(([x1, x2], 2.0 * x1 - x2 + 0.5))
    return samples

