"""
tinyevo - evolving small feed-forward networks with a population-based search.

This package evolves the topology and the weights of small feed-forward
networks ("genomes") without gradient descent. A fixed-size population of
genomes is evaluated concurrently, ranked, and bred by elitist selection
and mutation, generation after generation.

Main components:
- genotype:    Genome representation (neurons, synapses, mutation, persistence)
- pool:        Agents, population and ranking
- run:         Configuration and the evolutionary loop
- activations: Activation functions for neural networks

Example:
    >>> from tinyevo import Config, Simulation
    >>> config = Config()
    >>> config.num_inputs, config.num_outputs = 2, 1
    >>> def fitness(genome, state):
    ...     return -abs(genome.forward_evaluate([1.0, 0.0])[0] - 1.0)
    >>> best_agent, state = Simulation(config, fitness).run()
"""

import logging

__version__ = "0.1.0"

from tinyevo.errors     import (TinyEvoError, InvalidDimensions, DimensionMismatch,
                                InvalidConfig, CodecError)
from tinyevo.genotype   import Genome, Neuron, NeuronType, Synapse
from tinyevo.pool       import Agent, Population, RankingMode
from tinyevo.run        import Config, Simulation, TerminationReason

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "TinyEvoError",
    "InvalidDimensions",
    "DimensionMismatch",
    "InvalidConfig",
    "CodecError",
    "Genome",
    "Neuron",
    "NeuronType",
    "Synapse",
    "Agent",
    "Population",
    "RankingMode",
    "Config",
    "Simulation",
    "TerminationReason",
]
