"""
Unit tests for tinyevo.run.simulation module.

This module contains tests for the Simulation class: validation, termination,
the shared state protocol, fault isolation of fitness evaluations and elitism.
"""

import logging
import math
import pytest
import threading
import time
from unittest.mock import Mock, patch

from tinyevo.errors         import InvalidConfig
from tinyevo.pool           import Agent, Population, RankingMode
from tinyevo.run.config     import Config
from tinyevo.run.simulation import Simulation, TerminationReason, _evaluate_fitness


def synapse_set(genome):
    return sorted(synapse.as_tuple() for synapse in genome.synapses)


def constant_fitness(value):
    def fitness(genome, state):
        return value
    return fitness


def output_fitness(genome, state):
    """Module-level so that it can be sent to worker processes."""
    return genome.forward_evaluate([1.0, 1.0])[0]


# ============================================================================
# Simulation subclasses for testing
# ============================================================================

class RecordingSimulation(Simulation):
    """Records the calls to the reporting hooks."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.progress_calls      = []
        self.final_report_called = False

    def _report_progress(self):
        self.progress_calls.append(self.generation)

    def _final_report(self):
        self.final_report_called = True


class ElitismCheckingSimulation(Simulation):
    """Checks that the elite of each generation enters the next one unmodified."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.elite_snapshots = {}
        self.checked_agents  = 0
        self.sizes           = []

    def _evaluate_fitness_all(self, num_jobs):
        self.sizes.append(len(self.population))
        for agent in self.population:
            if agent.ID in self.elite_snapshots:
                assert synapse_set(agent.genome) == self.elite_snapshots[agent.ID]
                self.checked_agents += 1
        super()._evaluate_fitness_all(num_jobs)

    def _report_progress(self):
        elite = self.population.agents[:self.population.elite_count]
        self.elite_snapshots = {agent.ID: synapse_set(agent.genome) for agent in elite}

    def _final_report(self):
        pass


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config():
    config = Config()
    config.num_inputs         = 2
    config.num_outputs        = 1
    config.population_size    = 9
    config.max_iterations     = 5
    config.mutation_intensity = 2
    config.num_jobs           = 1
    return config


# ============================================================================
# Test Simulation Initialization
# ============================================================================

class TestSimulationInit:

    def test_initial_state(self, config):
        simulation = Simulation(config, constant_fitness(1.0), shared_state={"level": 1})

        assert simulation.population is None
        assert simulation.shared_state == {"level": 1}
        assert simulation.generation == 0
        assert simulation.termination_reason is None


class TestValidation:

    def test_population_too_small(self, config):
        config.population_size = 2
        with pytest.raises(InvalidConfig, match="population_size"):
            Simulation(config, constant_fitness(1.0)).run()

    def test_missing_dimensions(self, config):
        config.num_inputs = None
        with pytest.raises(InvalidConfig, match="num_inputs"):
            Simulation(config, constant_fitness(1.0)).run()

    def test_fitness_function_required(self, config):
        with pytest.raises(InvalidConfig, match="fitness function"):
            Simulation(config, None).run()

    def test_callback_must_be_callable(self, config):
        with pytest.raises(InvalidConfig, match="callback"):
            Simulation(config, constant_fitness(1.0), success_callback="stop").run()

    @pytest.mark.parametrize("num_jobs", [0, 1.5, True])
    def test_invalid_num_jobs(self, config, num_jobs):
        with pytest.raises(InvalidConfig, match="num_jobs"):
            Simulation(config, constant_fitness(1.0)).run(num_jobs=num_jobs)

    def test_nothing_evaluated_on_invalid_config(self, config):
        config.mutation_intensity = -1
        fitness = Mock(return_value=1.0)
        with pytest.raises(InvalidConfig):
            Simulation(config, fitness).run()
        fitness.assert_not_called()


# ============================================================================
# Test termination
# ============================================================================

class TestTermination:

    @pytest.mark.parametrize("num_jobs", [1, 2])
    def test_success_stop(self, config, num_jobs):
        config.target_value = 0.95
        callback = Mock(return_value=("next", True))
        simulation = Simulation(config, constant_fitness(1.0), callback, shared_state="start")

        best, state = simulation.run(num_jobs=num_jobs)

        assert simulation.generation == 1
        assert simulation.termination_reason is TerminationReason.SUCCESS_STOP
        assert state == "next"
        assert best.fitness == 1.0
        callback.assert_called_once_with(1.0, "start")

    def test_budget_exhausted(self, config):
        config.target_value = 0.5
        callback = Mock(side_effect=lambda best, state: (state + 1, False))
        simulation = Simulation(config, constant_fitness(1.0), callback, shared_state=0)

        best, state = simulation.run()

        assert simulation.generation == 5
        assert simulation.termination_reason is TerminationReason.BUDGET_EXHAUSTED
        assert state == 5
        assert callback.call_count == 5
        assert isinstance(best, Agent)

    def test_no_callback(self, config):
        simulation = Simulation(config, constant_fitness(1.0), shared_state="untouched")
        _, state = simulation.run()
        assert simulation.generation == 5
        assert state == "untouched"

    def test_callback_not_invoked_below_target(self, config):
        config.target_value = 0.95
        callback = Mock(return_value=(None, True))
        simulation = Simulation(config, constant_fitness(0.0), callback)

        simulation.run()

        callback.assert_not_called()
        assert simulation.termination_reason is TerminationReason.BUDGET_EXHAUSTED

    @pytest.mark.parametrize("mode,fitness,target", [
        ("lowest",  0.01,    0.05),
        ("closest", 1.00005, 1.0),
    ])
    def test_success_in_other_modes(self, config, mode, fitness, target):
        config.ranking_mode = mode
        config.target_value = target
        simulation = Simulation(config, constant_fitness(fitness), lambda best, state: (state, True))

        simulation.run()

        assert simulation.generation == 1
        assert simulation.termination_reason is TerminationReason.SUCCESS_STOP

    def test_zero_iterations(self, config):
        config.max_iterations = 0
        fitness = Mock(return_value=1.0)
        simulation = RecordingSimulation(config, fitness, shared_state="initial")

        best, state = simulation.run()

        fitness.assert_not_called()
        assert simulation.generation == 0
        assert simulation.termination_reason is TerminationReason.BUDGET_EXHAUSTED
        assert best.fitness == 0.0
        assert state == "initial"
        assert simulation.progress_calls == []
        assert simulation.final_report_called

    def test_progress_reported_every_generation(self, config):
        simulation = RecordingSimulation(config, constant_fitness(1.0))
        simulation.run()
        assert simulation.progress_calls == [1, 2, 3, 4, 5]
        assert simulation.final_report_called

    def test_suppress_output(self, config):
        simulation = RecordingSimulation(config, constant_fitness(1.0), suppress_output=True)
        simulation.run()
        assert simulation.progress_calls == []
        assert not simulation.final_report_called

    def test_rerun_resets_state(self, config):
        config.target_value = 0.5
        simulation = Simulation(config, constant_fitness(1.0),
                                lambda best, state: (state + 1, False), shared_state=0,
                                suppress_output=True)

        assert simulation.run()[1] == 5
        assert simulation.run()[1] == 5
        assert simulation.generation == 5


# ============================================================================
# Test the shared state protocol
# ============================================================================

class TestSharedState:

    @pytest.mark.parametrize("num_jobs", [1, 2])
    def test_fitness_sees_generation_start_state(self, config, num_jobs):
        config.target_value = 0.5
        seen = []

        def fitness(genome, state):
            seen.append(state)
            return 1.0

        simulation = Simulation(config, fitness, lambda best, state: (state + 1, False),
                                shared_state=0, suppress_output=True)
        simulation.run(num_jobs=num_jobs)

        assert sorted(seen) == [generation for generation in range(5) for _ in range(9)]

    def test_callback_receives_best_fitness(self, config):
        config.target_value = 0.0
        received = []

        def callback(best, state):
            received.append(best)
            return state, False

        simulation = Simulation(config, output_fitness, callback, suppress_output=True)
        simulation.run()

        assert len(received) == 5
        assert received == sorted(received)


# ============================================================================
# Test fitness evaluation
# ============================================================================

class TestFitnessEvaluation:

    @pytest.mark.parametrize("num_jobs", [1, 2, -1])
    def test_every_agent_evaluated(self, config, num_jobs):
        simulation = Simulation(config, output_fitness, suppress_output=True)
        simulation.population = Population(config)

        simulation._evaluate_fitness_all(num_jobs)

        for agent in simulation.population:
            assert agent.fitness == agent.genome.forward_evaluate([1.0, 1.0])[0]

    @pytest.mark.parametrize("num_jobs", [1, 2])
    def test_failure_isolated(self, config, num_jobs):
        failing = set()

        def fitness(genome, state):
            if id(genome) in failing:
                raise RuntimeError("boom")
            return 1.0

        simulation = Simulation(config, fitness)
        simulation.population = Population(config)
        failing.update({id(simulation.population[1].genome), id(simulation.population[4].genome)})

        simulation._evaluate_fitness_all(num_jobs)

        fitnesses = [agent.fitness for agent in simulation.population]
        assert fitnesses == [1.0, -math.inf, 1.0, 1.0, -math.inf, 1.0, 1.0, 1.0, 1.0]

    @pytest.mark.parametrize("mode", ["lowest", "closest"])
    def test_sentinel_for_minimizing_modes(self, config, mode):
        config.ranking_mode = mode

        def fitness(genome, state):
            raise ValueError("bad genome")

        simulation = Simulation(config, fitness)
        simulation.population = Population(config)
        simulation._evaluate_fitness_all(1)

        assert all(agent.fitness == math.inf for agent in simulation.population)

    def test_nan_gets_sentinel(self):
        assert _evaluate_fitness(constant_fitness(math.nan), 3, None, None, -math.inf) == (3, -math.inf)

    def test_failure_logged(self, caplog):
        def fitness(genome, state):
            raise ZeroDivisionError("division by zero")

        with caplog.at_level(logging.WARNING, logger="tinyevo"):
            assert _evaluate_fitness(fitness, 7, None, None, math.inf) == (7, math.inf)
        assert "Fitness evaluation failed for slot 7" in caplog.text

    def test_failing_run_completes(self, config):
        def fitness(genome, state):
            raise RuntimeError("always fails")

        callback = Mock(return_value=(None, True))
        simulation = Simulation(config, fitness, callback, suppress_output=True)

        best, _ = simulation.run()

        assert simulation.generation == 5
        assert best.fitness == RankingMode.HIGHEST.sentinel
        callback.assert_not_called()

    def test_timeout_leaves_sentinel(self, config, caplog):
        config.generation_timeout = 0.5

        def partial_results(tasks):
            list(tasks)
            yield 0, 5.0
            yield 2, 3.0
            raise TimeoutError()

        simulation = Simulation(config, constant_fitness(1.0))
        simulation.population = Population(config)

        with patch("tinyevo.run.simulation.Parallel") as parallel_class, \
             caplog.at_level(logging.WARNING, logger="tinyevo"):
            parallel_class.return_value.side_effect = partial_results
            simulation._evaluate_fitness_all(2)

        parallel_class.assert_called_once_with(n_jobs=2, backend="threading", timeout=0.5,
                                               return_as="generator_unordered")
        fitnesses = [agent.fitness for agent in simulation.population]
        assert fitnesses[0] == 5.0
        assert fitnesses[2] == 3.0
        assert fitnesses.count(-math.inf) == 7
        assert "7 of 9 agents left with the worst fitness" in caplog.text

    def test_timeout_abandons_slow_agent(self, config):
        """A real joblib timeout returns early and only the slow agent keeps the sentinel."""
        config.generation_timeout = 0.5
        release = threading.Event()

        def fitness(genome, state):
            if genome is simulation.population.agents[4].genome:
                release.wait(4.0)
            return 1.0

        simulation = Simulation(config, fitness, suppress_output=True)
        simulation.population = Population(config)

        start = time.monotonic()
        try:
            simulation._evaluate_fitness_all(3)
            elapsed = time.monotonic() - start
        finally:
            release.set()

        fitnesses = [agent.fitness for agent in simulation.population]
        assert elapsed < 3.0
        assert fitnesses[4] == -math.inf
        assert fitnesses.count(1.0) == 8

    def test_process_backend(self, config):
        config.backend          = "loky"
        config.population_size  = 6
        config.max_iterations   = 2
        simulation = Simulation(config, output_fitness, suppress_output=True)

        best, _ = simulation.run(num_jobs=2)

        assert simulation.generation == 2
        assert best.fitness == best.genome.forward_evaluate([1.0, 1.0])[0]


# ============================================================================
# Test elitism
# ============================================================================

class TestElitism:

    @pytest.mark.parametrize("num_jobs", [1, 2])
    def test_elite_carried_over_unmutated(self, config, num_jobs):
        config.max_iterations = 10
        config.mutation_intensity = 4
        config.connect_unlinked_neurons = True
        simulation = ElitismCheckingSimulation(config, output_fitness)

        simulation.run(num_jobs=num_jobs)

        assert simulation.sizes == [9] * 10
        assert simulation.checked_agents == 3 * 9

    def test_best_fitness_never_decreases(self, config):
        config.max_iterations = 15
        received = []

        def callback(best, state):
            received.append(best)
            return state, False

        config.target_value = -math.inf
        simulation = Simulation(config, output_fitness, callback, suppress_output=True)
        simulation.run()

        assert len(received) == 15
        assert all(later >= earlier for earlier, later in zip(received, received[1:]))


# ============================================================================
# Test reporting
# ============================================================================

class TestReporting:

    def test_progress_logged(self, config, caplog):
        config.max_iterations = 2
        with caplog.at_level(logging.INFO, logger="tinyevo"):
            Simulation(config, constant_fitness(1.0)).run()

        assert "Generation 1 | best fitness: 1.0000" in caplog.text
        assert "Generation 2 | best fitness: 1.0000" in caplog.text
        assert "Simulation stopped after 2 generations (budget_exhausted)" in caplog.text

    def test_suppressed_output_logs_nothing(self, config, caplog):
        with caplog.at_level(logging.INFO, logger="tinyevo"):
            Simulation(config, constant_fitness(1.0), suppress_output=True).run()
        assert "Generation" not in caplog.text
