"""
tinyevo Genome Module

This module implements the Genome class: a directed acyclic graph of neurons
connected by weighted and biased synapses, together with its forward evaluation
and the mutation operators that change its weights and topology.

Classes:
    Genome: A feed-forward neural network at the genotype level
"""

import logging
import random
from collections import defaultdict, deque
from typing      import Callable, Sequence

import numpy as np

from tinyevo.activations         import activation_name, get_activation, relu_activation
from tinyevo.errors              import DimensionMismatch, InvalidDimensions
from tinyevo.genotype.neuron     import Neuron, NeuronType
from tinyevo.genotype.synapse    import Synapse

logger = logging.getLogger(__name__)

class Genome:
    """
    A genome representing a feed-forward neural network as a set of synapses
    between densely numbered neurons.

    Neurons carry no parameters: a neuron is fully described by its ID and by
    the synapses ending at it. The value of every non-input neuron is

        activation( sum over incoming synapses of (source_value * weight + bias) )

    where the activation function is shared by all non-input neurons of the genome.

    A new genome connects every input neuron to every output neuron, with weights
    and biases sampled from a standard normal distribution. Mutation can then grow
    the network by splitting synapses (adding hidden neurons) and by adding new
    synapses, and can perturb weights and biases. The synapse graph is a DAG at
    all times: operations that would introduce a cycle are silently skipped.

    Node numbering convention:
        - Input neurons:  [0, num_inputs)
        - Output neurons: [num_inputs, num_inputs + num_outputs)
        - Hidden neurons: [num_inputs + num_outputs, ...)

    The genome caches a topological order of its neurons (and, for each neuron,
    its incoming synapses sorted by source ID). The cache is dropped whenever the
    topology changes and rebuilt on the next forward evaluation.

    Public Properties:
        num_inputs, num_outputs, num_hidden, num_neurons: neuron counts
        activation:      the activation function shared by all non-input neurons
        activation_name: catalog name of the activation function (None if not in the catalog)
        synapses:        list of all synapses
        neurons:         list of all neurons, ordered by ID

    Public Methods:
        forward_evaluate(inputs): Compute the network outputs for one input vector
        clone():                  Create an independent deep copy
        mutate(intensity):        Apply 'intensity' random mutation trials
        split_edge(), add_edge(), perturb_weight(), perturb_bias(): individual operators
        topological_order():      Neuron IDs in topological order
        to_dict():                Convert genome to dictionary representation

    Class Methods:
        from_dict(genome_dict): Create a genome from a dictionary description
    """

    # A mutation trial compares its random draw against each of these in turn.
    # The thresholds overlap, so a single low draw can fire several operators.
    SPLIT_EDGE_THRESHOLD     = 0.10
    ADD_EDGE_THRESHOLD       = 0.20
    PERTURB_WEIGHT_THRESHOLD = 0.50
    PERTURB_BIAS_THRESHOLD   = 0.20

    def __init__(self,
                 num_inputs : int,
                 num_outputs: int,
                 activation : Callable[[float], float] | str | None = None):
        """
        Initialize a fully connected genome (every input linked to every output).

        Parameters:
            num_inputs:  Number of input neurons (must be positive)
            num_outputs: Number of output neurons (must be positive)
            activation:  Activation function for all non-input neurons, or its name
                         in the activation catalog. Defaults to 'relu'.

        Raises:
            InvalidDimensions: If num_inputs or num_outputs is not a positive integer
        """
        self._validate_dimensions(num_inputs, num_outputs)

        self._num_inputs : int = num_inputs
        self._num_outputs: int = num_outputs
        self._num_hidden : int = 0
        self._activation = self._resolve_activation(activation)

        self._synapses: dict[tuple[int, int], Synapse] = {}   # (source, target) => synapse

        # (topological order, incoming synapses per neuron), see _build_cache()
        self._cache: tuple[list[int], dict[int, list[Synapse]]] | None = None

        for source in range(num_inputs):
            for target in range(num_inputs, num_inputs + num_outputs):
                weight, bias = np.random.normal(0.0, 1.0, 2)
                self._synapses[(source, target)] = Synapse(source, target, weight, bias)

    @staticmethod
    def _validate_dimensions(num_inputs: int, num_outputs: int) -> None:
        for name, value in (("inputs", num_inputs), ("outputs", num_outputs)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidDimensions(f"Number of {name} must be an integer, got {value!r}")
            if value <= 0:
                raise InvalidDimensions(f"Number of {name} must be positive, got {value}")

    @staticmethod
    def _resolve_activation(activation) -> Callable[[float], float]:
        if activation is None:
            return relu_activation
        if isinstance(activation, str):
            return get_activation(activation)
        if not callable(activation):
            raise TypeError(f"Activation must be callable or a name, got {activation!r}")
        return activation

    # ------------------------------------------------------------------
    # Accessors

    @property
    def num_inputs(self) -> int:
        return self._num_inputs

    @property
    def num_outputs(self) -> int:
        return self._num_outputs

    @property
    def num_hidden(self) -> int:
        return self._num_hidden

    @property
    def num_neurons(self) -> int:
        return self._num_inputs + self._num_outputs + self._num_hidden

    @property
    def activation(self) -> Callable[[float], float]:
        return self._activation

    @property
    def activation_name(self) -> str | None:
        return activation_name(self._activation)

    @property
    def synapses(self) -> list[Synapse]:
        return list(self._synapses.values())

    @property
    def neurons(self) -> list[Neuron]:
        return [Neuron(i, self.neuron_type(i)) for i in range(self.num_neurons)]

    def neuron_type(self, neuron_id: int) -> NeuronType:
        """
        Return the type of a neuron, derived from the numbering convention.

        Raises:
            ValueError: If the genome has no neuron with this ID
        """
        if not 0 <= neuron_id < self.num_neurons:
            raise ValueError(f"Neuron {neuron_id} does not exist (genome has {self.num_neurons} neurons)")
        if neuron_id < self._num_inputs:
            return NeuronType.INPUT
        if neuron_id < self._num_inputs + self._num_outputs:
            return NeuronType.OUTPUT
        return NeuronType.HIDDEN

    def get_synapse(self, source: int, target: int) -> Synapse | None:
        return self._synapses.get((source, target))

    def outgoing(self, neuron_id: int) -> list[Synapse]:
        """Return the synapses starting at 'neuron_id', in insertion order."""
        return [synapse for synapse in self._synapses.values() if synapse.source == neuron_id]

    def __len__(self):
        return len(self._synapses)

    # ------------------------------------------------------------------
    # Forward evaluation

    def forward_evaluate(self, inputs: Sequence[float]) -> list[float]:
        """
        Perform a complete forward pass through the network.

        Incoming synapses are summed in ascending order of their source neuron,
        so repeated calls return bit-identical results.

        Parameters:
            inputs: the network inputs (as many as input neurons)

        Returns:
            the values of the output neurons, in order

        Raises:
            DimensionMismatch: If the number of inputs differs from the number of input neurons
        """
        if len(inputs) != self._num_inputs:
            raise DimensionMismatch(f"Expected {self._num_inputs} inputs, got {len(inputs)}")

        order, incoming = self._cache or self._build_cache()

        values = [0.0] * self.num_neurons
        for i, value in enumerate(inputs):
            values[i] = float(value)

        # Propagate values through the network, in topological order
        for neuron_id in order:
            if neuron_id < self._num_inputs:    # input values are already set
                continue
            total = 0.0
            for synapse in incoming[neuron_id]:
                total += values[synapse.source] * synapse.weight + synapse.bias
            values[neuron_id] = float(self._activation(total))

        return values[self._num_inputs:self._num_inputs + self._num_outputs]

    def topological_order(self) -> list[int]:
        """Return the IDs of all neurons in topological order."""
        order, _ = self._cache or self._build_cache()
        return list(order)

    def _build_cache(self) -> tuple[list[int], dict[int, list[Synapse]]]:
        # Order and incoming map are published together, readers may be on other threads
        order = self._topological_sort()

        incoming = defaultdict(list)
        for synapse in self._synapses.values():
            incoming[synapse.target].append(synapse)
        for synapses in incoming.values():
            synapses.sort(key=lambda s: s.source)
        incoming = {neuron_id: incoming.get(neuron_id, []) for neuron_id in range(self.num_neurons)}

        self._cache = (order, incoming)
        return self._cache

    def _invalidate_cache(self) -> None:
        self._cache = None

    def _topological_sort(self) -> list[int]:
        """
        Perform topological sort using Kahn's algorithm.

        Ties are broken by ascending neuron ID, so the order only depends on the
        genome's structure and not on the order in which synapses were added.

        Returns:
            List of neuron IDs in topological order

        Raises:
            RuntimeError: If the synapse graph contains a cycle
        """
        adjacency = defaultdict(list)
        in_degree = [0] * self.num_neurons
        for source, target in self._synapses:
            adjacency[source].append(target)
            in_degree[target] += 1

        # Start with neurons that have no incoming synapses
        queue  = deque(neuron_id for neuron_id, degree in enumerate(in_degree) if degree == 0)
        result = []

        while queue:
            neuron_id = queue.popleft()
            result.append(neuron_id)

            for neighbor in sorted(adjacency[neuron_id]):
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if len(result) != self.num_neurons:
            raise RuntimeError("Synapse graph contains a cycle")
        return result

    # ------------------------------------------------------------------
    # Copying

    def clone(self) -> 'Genome':
        """
        Create an independent copy of this genome.

        Every synapse is copied, so mutating the clone never affects the original.
        The activation function is shared, and the clone starts without a cached order.
        """
        clone = Genome.__new__(Genome)
        clone._num_inputs  = self._num_inputs
        clone._num_outputs = self._num_outputs
        clone._num_hidden  = self._num_hidden
        clone._activation  = self._activation
        clone._synapses    = {key: synapse.copy() for key, synapse in self._synapses.items()}
        clone._cache       = None
        return clone

    # ------------------------------------------------------------------
    # Mutation

    def mutate(self,
               intensity        : int,
               independent_draws: bool = False,
               connect_unlinked : bool = False) -> None:
        """
        Apply 'intensity' mutation trials to the genome.

        Each trial draws a random number r in [0, 1) and then, in order:
          + splits a synapse         if r < 0.10
          + adds a synapse           if r < 0.20
          + perturbs a synapse weight if r < 0.50
          + perturbs a synapse bias   if r < 0.20
        The conditions are not exclusive: r < 0.10 fires all four operators.

        Parameters:
            intensity:         Number of mutation trials
            independent_draws: If True, each operator gets its own random draw
                               instead of sharing one per trial
            connect_unlinked:  If True, 'add a synapse' links two independently chosen
                               neurons instead of re-linking an already connected pair

        Raises:
            ValueError: If intensity is negative
        """
        if intensity < 0:
            raise ValueError(f"Mutation intensity must be non-negative, got {intensity}")

        for _ in range(intensity):
            if independent_draws:
                r_split, r_add, r_weight, r_bias = (random.random() for _ in range(4))
            else:
                r_split = r_add = r_weight = r_bias = random.random()

            if r_split < self.SPLIT_EDGE_THRESHOLD:
                self.split_edge()
            if r_add < self.ADD_EDGE_THRESHOLD:
                self.add_edge(connect_unlinked=connect_unlinked)
            if r_weight < self.PERTURB_WEIGHT_THRESHOLD:
                self.perturb_weight()
            if r_bias < self.PERTURB_BIAS_THRESHOLD:
                self.perturb_bias()

        self._invalidate_cache()

    def split_edge(self, neuron_id: int | None = None) -> bool:
        """
        Split one outgoing synapse of a neuron by inserting a new hidden neuron.

        The synapse 'from -> to' is replaced by 'from -> new' (weight 1, bias 0)
        and 'new -> to' (carrying the original weight and bias).

        Parameters:
            neuron_id: Neuron whose outgoing synapse is split; a random
                       non-output neuron is chosen if None

        Returns:
            Whether the genome changed (False if the neuron has no outgoing synapse)
        """
        synapse = self._random_outgoing_synapse(neuron_id)
        if synapse is None:
            return False

        source, target, weight, bias = synapse.as_tuple()
        del self._synapses[synapse.key]

        new_id = self.num_neurons
        self._num_hidden += 1
        self._synapses[(source, new_id)] = Synapse(source, new_id, 1.0, 0.0)
        self._synapses[(new_id, target)] = Synapse(new_id, target, weight, bias)
        self._invalidate_cache()

        logger.debug("Split synapse %d->%d with hidden neuron %d", source, target, new_id)
        return True

    def add_edge(self, neuron_id: int | None = None, connect_unlinked: bool = False) -> bool:
        """
        Try to add a synapse with random weight and bias.

        By default the endpoints are taken from a randomly chosen outgoing synapse of
        the neuron, so the insertion is rejected unless that pair is free; with
        'connect_unlinked' a random non-output neuron is linked to a random non-input
        neuron instead. Insertion is skipped if the synapse exists or would create a cycle.

        Parameters:
            neuron_id:        Neuron supplying the endpoints; a random non-output
                              neuron is chosen if None
            connect_unlinked: Link two independently sampled neurons

        Returns:
            Whether a synapse was added
        """
        if connect_unlinked:
            if neuron_id is None:
                source = self._random_non_output_neuron()
            else:
                self.neuron_type(neuron_id)    # validates the ID
                source = neuron_id
            target = self._num_inputs + random.randrange(self._num_outputs + self._num_hidden)
            return self._try_add_synapse(source, target)

        synapse = self._random_outgoing_synapse(neuron_id)
        if synapse is None:
            return False
        return self._try_add_synapse(synapse.source, synapse.target)

    def perturb_weight(self, neuron_id: int | None = None) -> bool:
        """
        Add a standard-normal sample to the weight of one outgoing synapse of a neuron.

        Returns:
            Whether a synapse was perturbed (False if the neuron has no outgoing synapse)
        """
        synapse = self._random_outgoing_synapse(neuron_id)
        if synapse is None:
            return False
        synapse.perturb_weight()
        return True

    def perturb_bias(self, neuron_id: int | None = None) -> bool:
        """
        Add a standard-normal sample to the bias of one outgoing synapse of a neuron.

        Returns:
            Whether a synapse was perturbed (False if the neuron has no outgoing synapse)
        """
        synapse = self._random_outgoing_synapse(neuron_id)
        if synapse is None:
            return False
        synapse.perturb_bias()
        return True

    def _random_non_output_neuron(self) -> int:
        """Pick an input or hidden neuron uniformly at random."""
        neuron_id = random.randrange(self._num_inputs + self._num_hidden)
        if neuron_id >= self._num_inputs:
            neuron_id += self._num_outputs    # skip over the output neurons
        return neuron_id

    def _random_outgoing_synapse(self, neuron_id: int | None) -> Synapse | None:
        if neuron_id is None:
            neuron_id = self._random_non_output_neuron()
        else:
            self.neuron_type(neuron_id)    # validates the ID
        outgoing = self.outgoing(neuron_id)
        if not outgoing:
            return None
        return random.choice(outgoing)

    def _try_add_synapse(self, source: int, target: int) -> bool:
        if (source, target) in self._synapses:
            return False
        if self._would_create_cycle(source, target):
            return False

        weight, bias = np.random.normal(0.0, 1.0, 2)
        self._synapses[(source, target)] = Synapse(source, target, weight, bias)
        self._invalidate_cache()

        logger.debug("Added synapse %d->%d", source, target)
        return True

    def _would_create_cycle(self, from_neuron: int, to_neuron: int) -> bool:
        """
        Check if adding a synapse from_neuron -> to_neuron would create a cycle.
        Uses DFS to check if there's already a path from 'to_neuron' back to 'from_neuron'.

        Parameters:
            from_neuron: proposed start of the new synapse
            to_neuron:   proposed end   of the new synapse

        Returns:
            whether adding the new synapse would create a cycle in the network
        """
        # Avoid trivial loops.
        if from_neuron == to_neuron:
            return True

        adjacency = defaultdict(list)
        for source, target in self._synapses:
            adjacency[source].append(target)

        # If we can reach 'from_neuron' starting at 'to_neuron', then adding a
        # synapse 'from_neuron' -> 'to_neuron' would create a cycle
        visited = set()
        stack   = [to_neuron]

        while stack:
            current = stack.pop()
            if current == from_neuron:
                return True
            if current in visited:
                continue
            visited.add(current)
            stack.extend(adjacency[current])

        return False

    # ------------------------------------------------------------------
    # Dictionary representation

    def to_dict(self) -> dict:
        """
        Convert the genome to a dictionary representation.

        This is the inverse operation of from_dict(), producing
        a dictionary that can be used to reconstruct the genome.

        Returns:
            Dictionary with the following structure:
            {
                "activation": "relu",
                "inputs": 2, "outputs": 1, "hidden": 1,
                "synapses": [
                    {"from": 0, "to": 3, "weight": 1.0, "bias": 0.0},
                    {"from": 3, "to": 2, "weight": 0.5, "bias": -1.2}
                ]
            }

        Raises:
            ValueError: If the activation function is not part of the activation catalog
        """
        name = self.activation_name
        if name is None:
            raise ValueError(f"Activation function {self._activation!r} is not in the activation catalog")

        # Build synapses list (sorted by endpoints)
        synapses = []
        for key in sorted(self._synapses):
            synapse = self._synapses[key]
            synapses.append({
                "from"  : synapse.source,
                "to"    : synapse.target,
                "weight": synapse.weight,
                "bias"  : synapse.bias
            })

        return {
            "activation": name,
            "inputs"    : self._num_inputs,
            "outputs"   : self._num_outputs,
            "hidden"    : self._num_hidden,
            "synapses"  : synapses
        }

    @classmethod
    def from_dict(cls, genome_dict: dict) -> 'Genome':
        """
        Create a Genome from a dictionary description (see to_dict() for the format).

        The method validates that every synapse references existing neurons,
        does not end at an input neuron, is not duplicated, and that the
        resulting network is acyclic.

        Parameters:
            genome_dict: Dictionary describing the genome structure

        Returns:
            A new Genome object with the specified structure

        Raises:
            InvalidDimensions: If the number of inputs or outputs is not positive
            ValueError:        If the structure is invalid (bad IDs, duplicates, cycles, etc.)
            KeyError:          If required fields are missing from the dictionary
        """
        num_inputs  = genome_dict["inputs"]
        num_outputs = genome_dict["outputs"]
        num_hidden  = genome_dict.get("hidden", 0)
        cls._validate_dimensions(num_inputs, num_outputs)
        if isinstance(num_hidden, bool) or not isinstance(num_hidden, int) or num_hidden < 0:
            raise ValueError(f"Number of hidden neurons must be a non-negative integer, got {num_hidden!r}")

        # Create empty genome
        genome = cls.__new__(cls)
        genome._num_inputs  = num_inputs
        genome._num_outputs = num_outputs
        genome._num_hidden  = num_hidden
        genome._activation  = get_activation(genome_dict["activation"])
        genome._synapses    = {}
        genome._cache       = None

        for synapse_data in genome_dict.get("synapses", []):
            source = synapse_data["from"]
            target = synapse_data["to"]
            weight = float(synapse_data["weight"])
            bias   = float(synapse_data["bias"])

            # Validate that neurons exist
            for neuron_id in (source, target):
                if isinstance(neuron_id, bool) or not isinstance(neuron_id, int):
                    raise ValueError(f"Neuron IDs must be integers, got {neuron_id!r}")
                genome.neuron_type(neuron_id)
            if genome.neuron_type(target) == NeuronType.INPUT:
                raise ValueError(f"Synapse {source}->{target} ends at an input neuron")
            if (source, target) in genome._synapses:
                raise ValueError(f"Duplicate synapse {source}->{target}")
            if genome._would_create_cycle(source, target):
                raise ValueError(f"Synapse from {source} to {target} would create a cycle")

            genome._synapses[(source, target)] = Synapse(source, target, weight, bias)

        return genome

    def __repr__(self):
        return (f"Genome(inputs={self._num_inputs}, outputs={self._num_outputs}, "
                f"hidden={self._num_hidden}, synapses={len(self._synapses)}, "
                f"activation={self.activation_name or repr(self._activation)})")

    def __str__(self):
        neurons_str  = ''.join(str(neuron) for neuron in self.neurons)
        synapses_str = ''.join(str(self._synapses[key]) for key in sorted(self._synapses))
        return f"Neurons: {neurons_str}\nSynapses: {synapses_str}"
