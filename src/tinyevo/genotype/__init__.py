"""
tinyevo Genotype Package

This package implements the genome representation: a directed acyclic graph
of neurons joined by weighted and biased synapses.

Modules:
    neuron:  NeuronType enumeration and Neuron class
    synapse: Synapse class
    genome:  Genome class
    codec:   Text and JSON persistence of genomes

Exported Classes:
    NeuronType: Enumeration for neuron types (INPUT, HIDDEN, OUTPUT)
    Neuron:     A neuron ID paired with its type
    Synapse:    A weighted, biased connection between two neurons
    Genome:     Complete genome representing a neural network
"""

from tinyevo.genotype.genome  import Genome
from tinyevo.genotype.neuron  import Neuron, NeuronType
from tinyevo.genotype.synapse import Synapse

__all__ = ['Genome',
           'Neuron',
           'NeuronType',
           'Synapse']
