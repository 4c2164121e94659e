"""
tinyevo Neuron Module.

This module implements the Neuron class and NeuronType enumeration.

Neurons carry no parameters of their own: weights and biases live on the
synapses. A genome therefore stores neurons implicitly, as a dense range of
integer IDs, and only materializes Neuron objects on request.

Classes:
    NeuronType: Enumeration for neuron roles (INPUT, HIDDEN, OUTPUT)
    Neuron:     A neuron identity paired with its role
"""

from enum import Enum

class NeuronType(Enum):
    """
    Neurons come in three types: input, hidden, output.
    """
    INPUT  = "I"
    HIDDEN = "H"
    OUTPUT = "O"

class Neuron:
    """
    A neuron in a genome, described by its ID and its type.

    Node numbering convention:
        - Input neurons:  [0, num_inputs)
        - Output neurons: [num_inputs, num_inputs + num_outputs)
        - Hidden neurons: [num_inputs + num_outputs, ...)

    Public Attributes:
        id:   Unique identifier for this neuron within its genome
        type: Type of neuron (INPUT, HIDDEN, or OUTPUT)
    """

    __slots__ = ('id', 'type')

    def __init__(self, neuron_id: int, neuron_type: NeuronType):
        self.id  : int        = neuron_id
        self.type: NeuronType = neuron_type

    def __eq__(self, other):
        if not isinstance(other, Neuron):
            return NotImplemented
        return self.id == other.id and self.type == other.type

    def __hash__(self):
        return hash((self.id, self.type))

    def __repr__(self):
        return f"Neuron(id={self.id:03d}, type={self.type.name})"

    def __str__(self):
        return f"[{self.id:02d}{self.type.value}]"
