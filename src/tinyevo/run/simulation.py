"""
tinyevo Simulation Module

This module implements the evolutionary loop that drives a population of
genomes through generations of concurrent evaluation, ranking, elitist
selection and mutation-based breeding.

A simulation runs until either the generation budget is exhausted or the
success callback asks it to stop. The callback is invoked whenever the best
fitness of a generation reaches the configured target, and may rewrite the
caller-owned shared state that the fitness function reads (for example to
move on to a harder version of the task).

Classes:
    TerminationReason: Why a simulation stopped
    Simulation:        The evolutionary loop
"""

import logging
import math
import multiprocessing
from enum   import Enum
from typing import Any, Callable

from joblib import Parallel, delayed

from tinyevo.errors     import InvalidConfig
from tinyevo.genotype   import Genome
from tinyevo.pool       import Agent, Population
from tinyevo.run.config import Config

logger = logging.getLogger(__name__)

FitnessFunction = Callable[[Genome, Any], float]
SuccessCallback = Callable[[float, Any], tuple[Any, bool]]

# joblib reports a task exceeding its timeout with either of these, depending on the backend
_TIMEOUT_ERRORS = (TimeoutError, multiprocessing.TimeoutError)

class TerminationReason(Enum):
    BUDGET_EXHAUSTED = "budget_exhausted"
    SUCCESS_STOP     = "success_stop"

def _evaluate_fitness(fitness_fn  : FitnessFunction,
                      slot        : int,
                      genome      : Genome,
                      shared_state: Any,
                      sentinel    : float) -> tuple[int, float]:
    """
    Evaluate one genome, isolating failures.

    Any exception raised by the fitness function, as well as a NaN result,
    yields the sentinel fitness, so one faulty evaluation cannot abort the
    generation for the other agents.

    Returns:
        (slot, fitness): the population slot the result belongs to and its fitness
    """
    try:
        fitness = float(fitness_fn(genome, shared_state))
    except Exception as e:
        logger.warning("Fitness evaluation failed for slot %d: %r", slot, e)
        return slot, sentinel

    if math.isnan(fitness):
        logger.warning("Fitness evaluation returned NaN for slot %d", slot)
        return slot, sentinel
    return slot, fitness

class Simulation:
    """
    The evolutionary loop.

    Each generation goes through four steps:
      1. Evaluate: compute every agent's fitness concurrently, against the shared
                   state as it was at the start of the generation
      2. Rank:     stable-sort the population according to the ranking mode
      3. Breed:    keep the top third unchanged, refill the other slots with
                   mutated copies of the elite
      4. Check:    if the best fitness reaches the target, call the success
                   callback, adopt the state it returns, and stop if it asks to

    Subclasses can override:
    - _report_progress(): Report after each generation (default: log best fitness)
    - _final_report():    Report at the end of the run (default: log the outcome)

    Public Attributes:
        population:         The Population being evolved (None before run())
        shared_state:       The current shared state
        generation:         Number of completed generations
        termination_reason: Why the last run stopped (None before run())

    Public Methods:
        run(): Execute the simulation and return (best agent, final shared state)

    Parallelization of fitness evaluation:
        num_jobs=1:  Serial evaluation (no parallelization, no timeout)
        num_jobs>1:  Use specified number of parallel workers
        num_jobs=-1: Use all available CPU cores
    """

    def __init__(self,
                 config          : Config,
                 fitness_fn      : FitnessFunction,
                 success_callback: SuccessCallback | None = None,
                 shared_state    : Any                    = None,
                 suppress_output : bool                   = False):
        """
        Initialize the simulation.

        Parameters:
            config:           Configuration parameters
            fitness_fn:       fitness_fn(genome, shared_state) -> float. Called concurrently;
                              must not modify 'shared_state'
            success_callback: success_callback(best_fitness, shared_state) -> (new_state, stop).
                              Called at most once per generation, when the target is reached
            shared_state:     Initial value of the caller-defined shared state
            suppress_output:  If True, suppress progress and final reports
        """
        self._config              : Config                 = config
        self._fitness_fn          : FitnessFunction        = fitness_fn
        self._success_callback    : SuccessCallback | None = success_callback
        self._initial_shared_state: Any                    = shared_state
        self._suppress_output     : bool                   = suppress_output
        self._stop_requested      : bool                   = False

        self.population        : Population | None        = None
        self.shared_state      : Any                      = shared_state
        self.generation        : int                      = 0
        self.termination_reason: TerminationReason | None = None

    def run(self, num_jobs: int | None = None) -> tuple[Agent, Any]:
        """
        Run the simulation.

        Validates the configuration, creates a fresh population, and evolves it
        until the generation budget is exhausted or the success callback asks to stop.

        Parameters:
            num_jobs: Number of parallel workers for fitness evaluation;
                      defaults to the 'num_jobs' configuration value

        Returns:
            (best_agent, shared_state): the agent in slot 0 of the final population
            and the shared state as last returned by the success callback

        Raises:
            InvalidConfig: If the configuration or the collaborators are not usable
        """
        num_jobs = self._config.num_jobs if num_jobs is None else num_jobs
        self._validate(num_jobs)

        # Reset the simulation state before starting a new run
        self._reset()

        # Create the initial population
        self.population = Population(self._config)

        # Evolution loop
        while not self._terminate():
            self.generation += 1

            self._evaluate_fitness_all(num_jobs)
            self.population.rank()
            self.population.spawn_next_generation()
            self._check_success()

            # Display progress after each generation
            if not self._suppress_output:
                self._report_progress()

        # Produce final report
        if not self._suppress_output:
            self._final_report()

        return self.population.get_best_agent(), self.shared_state

    def _validate(self, num_jobs: int) -> None:
        self._config.validate()
        if not callable(self._fitness_fn):
            raise InvalidConfig("A callable fitness function is required")
        if self._success_callback is not None and not callable(self._success_callback):
            raise InvalidConfig("The success callback must be callable or None")
        if isinstance(num_jobs, bool) or not isinstance(num_jobs, int) or num_jobs == 0:
            raise InvalidConfig(f"'num_jobs' must be a non-zero integer, got {num_jobs!r}")

    def _reset(self) -> None:
        """
        Reset the simulation state before starting a new run.
        """
        self.population         = None
        self.shared_state       = self._initial_shared_state
        self.generation         = 0
        self.termination_reason = None
        self._stop_requested    = False

    def _evaluate_fitness_all(self, num_jobs: int) -> None:
        """
        Evaluate fitness for all agents in the population.

        Uses serial or parallel evaluation based on num_jobs:
        - num_jobs=1: Sequential evaluation in the calling thread
        - num_jobs>1 or -1: Parallel evaluation using joblib

        Every task reads the shared state as it was at the start of the generation
        and returns its result tagged with the agent's slot; only this method writes
        fitness values. Agents whose evaluation fails, or is abandoned because of a
        timeout, keep the sentinel fitness of the ranking mode.
        """
        agents       = self.population.agents
        shared_state = self.shared_state
        sentinel     = self._config.ranking_mode.sentinel

        for agent in agents:
            agent.fitness = sentinel

        # Calculate agents' fitness
        if num_jobs == 1:
            for slot, agent in enumerate(agents):
                _, agent.fitness = _evaluate_fitness(self._fitness_fn, slot, agent.genome, shared_state, sentinel)
            return

        parallel = Parallel(n_jobs     = num_jobs,
                            backend    = self._config.backend,
                            timeout    = self._config.generation_timeout,
                            return_as  = "generator_unordered")
        tasks = (delayed(_evaluate_fitness)(self._fitness_fn, slot, agent.genome, shared_state, sentinel)
                 for slot, agent in enumerate(agents))

        completed = 0
        try:
            for slot, fitness in parallel(tasks):
                agents[slot].fitness = fitness
                completed += 1
        except _TIMEOUT_ERRORS:
            logger.warning("Generation %d: evaluation timed out after %s seconds, "
                           "%d of %d agents left with the worst fitness",
                           self.generation, self._config.generation_timeout,
                           len(agents) - completed, len(agents))

    def _check_success(self) -> None:
        """
        Invoke the success callback if the best fitness reaches the target.

        The shared state returned by the callback always replaces the current one;
        the simulation stops at the next termination check if the callback asks to.
        """
        if self._success_callback is None:
            return

        best = self.population.get_best_agent().fitness
        if not self._config.ranking_mode.is_success(best, self._config.target_value):
            return

        self.shared_state, stop = self._success_callback(best, self.shared_state)
        if stop:
            self._stop_requested = True

    def _terminate(self) -> bool:
        """
        Determine whether the simulation should terminate.

        The simulation stops when the success callback requested it, or
        after the maximum number of generations.

        Returns:
            bool: True if the simulation should stop, False otherwise
        """
        if self._stop_requested:
            self.termination_reason = TerminationReason.SUCCESS_STOP
            return True
        if self.generation >= self._config.max_iterations:
            self.termination_reason = TerminationReason.BUDGET_EXHAUSTED
            return True
        return False

    def _report_progress(self) -> None:
        """
        Report progress after each generation.

        This method is suppressed by setting 'suppress_output' to 'True'.
        """
        best = self.population.get_best_agent()
        logger.info("Generation %d | best fitness: %.4f | hidden neurons: %d | synapses: %d | shared state: %r",
                    self.generation, best.fitness, best.genome.num_hidden, len(best.genome), self.shared_state)

    def _final_report(self) -> None:
        """
        Produce final report at the end of the simulation.

        This method is suppressed by setting 'suppress_output' to 'True'.
        """
        best = self.population.get_best_agent()
        logger.info("Simulation stopped after %d generations (%s) | best fitness: %.4f | best genome: %r",
                    self.generation, self.termination_reason.value, best.fitness, best.genome)
