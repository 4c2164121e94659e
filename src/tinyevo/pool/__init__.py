"""
tinyevo Pool Package

This package manages the evolving population.

Exported Classes:
    Agent:       A genome paired with its fitness
    Population:  Fixed-size collection of agents
    RankingMode: Criterion used to rank agents by fitness
"""

from tinyevo.pool.agent      import Agent
from tinyevo.pool.population import Population
from tinyevo.pool.ranking    import RankingMode

__all__ = ['Agent',
           'Population',
           'RankingMode']
