"""Pytest configuration and shared fixtures."""

import pytest
import random
import numpy as np
from itertools import count


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Set random seeds for reproducibility and reset global state."""
    from tinyevo.pool.agent import Agent

    # Set random seeds FIRST (before creating any objects that use random)
    np.random.seed(42)
    random.seed(42)

    # Reset Agent ID generator so IDs start from 0 in each test
    Agent._id_generator = count(0)

    yield

    np.random.seed(None)
    random.seed(None)


@pytest.fixture
def worked_example_dict():
    """Two inputs, one relu output, one synapse from each input."""
    return {
        'activation': 'relu',
        'inputs': 2,
        'outputs': 1,
        'hidden': 0,
        'synapses': [
            {'from': 0, 'to': 2, 'weight': 2.0, 'bias': 0.5},
            {'from': 1, 'to': 2, 'weight': 3.0, 'bias': 1.5},
        ]
    }


@pytest.fixture
def hidden_chain_dict():
    """One input, one output and one hidden neuron in between, plus a direct synapse."""
    return {
        'activation': 'identity',
        'inputs': 1,
        'outputs': 1,
        'hidden': 1,
        'synapses': [
            {'from': 0, 'to': 2, 'weight': 2.0, 'bias': 1.0},
            {'from': 2, 'to': 1, 'weight': 3.0, 'bias': -1.0},
            {'from': 0, 'to': 1, 'weight': 0.5, 'bias': 0.25},
        ]
    }

