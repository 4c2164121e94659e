"""
tinyevo Population Module

This module implements the Population class, the fixed-size collection of
agents that the simulation evolves generation after generation.

Classes:
    Population: Ordered collection of agents with ranking and elitist breeding
"""

import logging
from typing import TYPE_CHECKING, Iterator

from tinyevo.genotype     import Genome
from tinyevo.pool.agent   import Agent
from tinyevo.pool.ranking import RankingMode

if TYPE_CHECKING:
    from tinyevo.run.config import Config

logger = logging.getLogger(__name__)

class Population:
    """
    A population of evolving agents.

    The population always holds exactly 'population_size' agents. Its ordering
    is only meaningful right after rank() has been called: the best agent then
    occupies slot 0.

    Each generation the top third of the ranked population (the elite) is kept
    unchanged, and every remaining slot i is refilled with a mutated copy of
    the elite agent in slot i % elite_count.

    Public Attributes:
        agents: List of all Agent objects in the current generation

    Public Properties:
        elite_count: Number of agents retained unchanged between generations

    Public Methods:
        rank():                  Sort agents from best to worst
        spawn_next_generation(): Replace non-elite agents by mutated copies of the elite
        get_best_agent():        Return the agent in slot 0
    """

    def __init__(self, config: 'Config'):
        """
        Create 'population_size' agents, each owning a freshly initialized,
        fully connected genome.

        Parameters:
            config: Stores configuration parameters
        """
        self._config = config
        self.agents: list[Agent] = [
            Agent(Genome(config.num_inputs, config.num_outputs, config.activation))
            for _ in range(config.population_size)
        ]

    @property
    def elite_count(self) -> int:
        return len(self.agents) // 3

    def __len__(self):
        return len(self.agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(self.agents)

    def __getitem__(self, index: int) -> Agent:
        return self.agents[index]

    def rank(self) -> None:
        """
        Stable-sort the agents from best to worst according to the configured ranking mode.
        """
        mode   = RankingMode.parse(self._config.ranking_mode)
        target = self._config.target_value
        self.agents.sort(key=lambda agent: mode.sort_key(agent.fitness, target))

    def spawn_next_generation(self) -> None:
        """
        Build the next generation from the (already ranked) current one.

        The first 'elite_count' agents are carried over unchanged. Every other
        slot i receives a clone of the agent in slot i % elite_count, mutated with
        the configured intensity and with its fitness reset to 0.0.

        Raises:
            RuntimeError: If the population is too small to have an elite
        """
        elite_count = self.elite_count
        if elite_count == 0:
            raise RuntimeError(f"Population of {len(self.agents)} agents has no elite to breed from")

        next_generation = self.agents[:elite_count]
        for i in range(elite_count, len(self.agents)):
            parent = next_generation[i % elite_count]
            child  = parent.spawn_offspring(self._config.mutation_intensity,
                                            self._config.independent_mutation_draws,
                                            self._config.connect_unlinked_neurons)
            next_generation.append(child)

        self.agents = next_generation
        logger.debug("Bred %d offspring from %d elite agents", len(self.agents) - elite_count, elite_count)

    def get_best_agent(self) -> Agent:
        """Return the agent in slot 0 (the best one, if the population was just ranked)."""
        return self.agents[0]
