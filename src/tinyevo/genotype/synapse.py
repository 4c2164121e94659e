"""
tinyevo Synapse Module

This module implements the Synapse class, the weighted and biased edge
connecting two neurons of a genome.

Classes:
    Synapse: A directed edge carrying a weight and a bias
"""

import random

class Synapse:
    """
    A directed connection between two neurons in a genome.

    Each synapse contributes 'source_value * weight + bias' to the weighted sum
    of its target neuron. The bias is a property of the edge rather than of the
    neuron: a neuron with three incoming synapses receives three bias terms.

    At most one synapse exists per ordered (source, target) pair, so the pair
    doubles as the synapse's key inside a genome.

    Public Attributes:
        source: ID of the source neuron
        target: ID of the target neuron
        weight: Multiplier applied to the source neuron's value
        bias:   Constant added to the weighted source value

    Public Properties:
        key: The (source, target) pair identifying this synapse

    Public Methods:
        copy():           Create an independent copy of this synapse
        as_tuple():       Return (source, target, weight, bias)
        perturb_weight(): Add a standard-normal sample to the weight
        perturb_bias():   Add a standard-normal sample to the bias
    """

    __slots__ = ('source', 'target', 'weight', 'bias')

    def __init__(self, source: int, target: int, weight: float, bias: float):
        """
        Parameters:
            source: ID of the source neuron
            target: ID of the target neuron
            weight: Weight of the synapse
            bias:   Bias of the synapse
        """
        self.source: int   = source
        self.target: int   = target
        self.weight: float = float(weight)
        self.bias  : float = float(bias)

    @property
    def key(self) -> tuple[int, int]:
        return self.source, self.target

    def copy(self) -> 'Synapse':
        return Synapse(self.source, self.target, self.weight, self.bias)

    def perturb_weight(self) -> None:
        self.weight += random.gauss(0.0, 1.0)

    def perturb_bias(self) -> None:
        self.bias += random.gauss(0.0, 1.0)

    def as_tuple(self) -> tuple[int, int, float, float]:
        """Return the synapse as a (source, target, weight, bias) tuple."""
        return self.source, self.target, self.weight, self.bias

    def __repr__(self):
        return (f"Synapse(source={self.source:03d}, target={self.target:03d}, "
                f"weight={self.weight:+.6f}, bias={self.bias:+.6f})")

    def __str__(self):
        return f"[{self.source:02d}=>{self.target:02d},{self.weight:+.02f},{self.bias:+.02f}]"
