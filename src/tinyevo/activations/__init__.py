"""
Activations Package

This package provides the scalar activation functions applied by every
non-input neuron of a genome.

Exported:
    activations:      Dictionary mapping activation function names to functions
    get_activation:   Resolve a name into an activation function
    activation_name:  Reverse lookup of a catalog function's name
    Individual activation functions: identity_activation, clamped_activation, relu_activation,
                                     leaky_relu_activation, sigmoid_activation, tanh_activation
"""

from tinyevo.activations.basic_activations import (
    activations,
    get_activation,
    activation_name,
    identity_activation,
    clamped_activation,
    relu_activation,
    leaky_relu_activation,
    sigmoid_activation,
    tanh_activation
)

__all__ = [
    'activations',
    'get_activation',
    'activation_name',
    'identity_activation',
    'clamped_activation',
    'relu_activation',
    'leaky_relu_activation',
    'sigmoid_activation',
    'tanh_activation'
]
