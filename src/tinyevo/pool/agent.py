"""
tinyevo Agent Module

This module implements the Agent class: a genome paired with its fitness.

Classes:
    Agent: A member of the population
"""

from itertools import count
from typing    import TYPE_CHECKING

if TYPE_CHECKING:
    from tinyevo.genotype import Genome

class Agent:
    """
    A member of the population.

    An agent is a thin wrapper around the genome it exclusively owns, to which
    it adds a unique ID and the fitness computed during the last evaluation.
    Offspring are produced by cloning the genome and mutating the copy, so an
    agent's genome is never shared with another agent.

    Public Attributes:
        ID:      Globally unique identifier for this agent
        genome:  The genome owned by this agent
        fitness: Fitness from the most recent evaluation (0.0 until evaluated)

    Public Methods:
        clone():                  Create an agent owning a copy of this agent's genome
        spawn_offspring(...):     Clone this agent and mutate the copy
    """

    _id_generator = count(0)

    def __init__(self, genome: 'Genome', fitness: float = 0.0):
        self.ID     : int      = next(Agent._id_generator)
        self.genome : 'Genome' = genome
        self.fitness: float    = fitness

    def clone(self) -> 'Agent':
        """Create a new agent owning an independent copy of this agent's genome."""
        return Agent(self.genome.clone())

    def spawn_offspring(self,
                        mutation_intensity: int,
                        independent_draws : bool = False,
                        connect_unlinked  : bool = False) -> 'Agent':
        """
        Create a mutated copy of this agent; the child's fitness starts at 0.0.

        Parameters:
            mutation_intensity: Number of mutation trials applied to the child's genome
            independent_draws:  See Genome.mutate()
            connect_unlinked:   See Genome.mutate()
        """
        child = self.clone()
        child.genome.mutate(mutation_intensity, independent_draws, connect_unlinked)
        return child

    def __repr__(self):
        return f"Agent(ID={self.ID}, fitness={self.fitness}, genome={self.genome!r})"
