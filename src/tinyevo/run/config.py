import configparser
import os

from tinyevo.activations  import activations
from tinyevo.errors       import InvalidConfig
from tinyevo.pool.ranking import RankingMode

# joblib backends accepted for the parallel evaluation of fitness
PARALLEL_BACKENDS = ("threading", "loky")

class Config:

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a Config holding defaults.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a Config with default values for manual setup
                         ('num_inputs' and 'num_outputs' must then be set by hand).
        """

        # Default config for testing/manual setup
        if config_file is None:
            self.population_size            = 100
            self.num_inputs                 = None
            self.num_outputs                = None
            self.activation                 = "relu"
            self.mutation_intensity         = 2
            self.independent_mutation_draws = False
            self.connect_unlinked_neurons   = False
            self.max_iterations             = 1000
            self.ranking_mode               = RankingMode.HIGHEST
            self.target_value               = 0.0
            self.num_jobs                   = -1
            self.backend                    = "threading"
            self.generation_timeout         = None
            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Sentinel for missing default values
        _NO_DEFAULT = object()

        # Helper function to safely parse values
        def get_value(section, key, value_type, default=_NO_DEFAULT):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                if default is not _NO_DEFAULT:
                    return default
                raise

        # [POPULATION_INIT]

        # The number of agents in each generation.
        # Must be at least 3, so that the elite (a third of the population) is not empty.
        self.population_size = get_value('POPULATION_INIT', 'population_size', int)

        # The number of input neurons, through which the network receives inputs.
        self.num_inputs = get_value('POPULATION_INIT', 'num_inputs', int)

        # The number of output neurons, to which the network delivers outputs.
        self.num_outputs = get_value('POPULATION_INIT', 'num_outputs', int)

        # The activation function shared by all non-input neurons.
        # For the list of all available choices, see the 'activations' package.
        self.activation = get_value('POPULATION_INIT', 'activation', str, default="relu")

        # [REPRODUCTION]

        # The number of mutation trials applied to every offspring.
        self.mutation_intensity = get_value('REPRODUCTION', 'mutation_intensity', int, default=2)

        # Whether each mutation operator draws its own random number. When False
        # (the default), the operators of one trial share a single draw and their
        # probability bands overlap, so a low draw fires several operators at once.
        self.independent_mutation_draws = get_value('REPRODUCTION', 'independent_mutation_draws', bool, default=False)

        # Whether the 'add synapse' mutation links two independently chosen neurons.
        # When False (the default), it re-samples the endpoints of an existing
        # synapse, which almost always collides with that synapse and is skipped.
        self.connect_unlinked_neurons = get_value('REPRODUCTION', 'connect_unlinked_neurons', bool, default=False)

        # [TERMINATION]

        # The maximum number of generations to run.
        self.max_iterations = get_value('TERMINATION', 'max_iterations', int)

        # How agents are ranked by fitness.
        # Allowed values:
        #   "highest" - larger fitness is better
        #   "lowest"  - smaller fitness is better
        #   "closest" - fitness closer to 'target_value' is better
        self.ranking_mode = get_value('TERMINATION', 'ranking_mode', str, default="highest")

        # The fitness value a generation's best agent must reach (in the sense of
        # 'ranking_mode') for the success callback to be invoked.
        self.target_value = get_value('TERMINATION', 'target_value', float)

        # [PARALLEL]

        # The number of concurrent fitness evaluations.
        #   1  = serial (no parallelization)
        #  -1  = use all available CPU cores
        #  >1  = use specified number of workers
        self.num_jobs = get_value('PARALLEL', 'num_jobs', int, default=-1)

        # The joblib backend running the evaluations: "threading" keeps everything
        # in-process; "loky" uses worker processes (fitness function must be picklable).
        self.backend = get_value('PARALLEL', 'backend', str, default="threading")

        # Maximum number of seconds a fitness evaluation may take before it is
        # abandoned (its agent then receives the worst possible fitness).
        # Use "None" for no limit. Not applied when 'num_jobs' is 1.
        self.generation_timeout = get_value('PARALLEL', 'generation_timeout', float, default=None)

    def __setattr__(self, name, value):
        """
        Override 'setattr' to automatically parse 'ranking_mode' when set.
        This allows users to write config.ranking_mode = "lowest" and have it
        automatically converted to RankingMode.LOWEST.
        """
        if name == 'ranking_mode':
            try:
                value = RankingMode.parse(value)
            except ValueError as e:
                raise InvalidConfig(str(e)) from None
        super().__setattr__(name, value)

    def validate(self) -> None:
        """
        Check that the configuration can drive a simulation.

        Raises:
            InvalidConfig: Describing the first violated constraint
        """
        def is_int(value):
            return isinstance(value, int) and not isinstance(value, bool)

        if not is_int(self.population_size) or self.population_size < 3:
            raise InvalidConfig(f"'population_size' must be an integer >= 3, got {self.population_size!r}")

        if not is_int(self.num_inputs) or self.num_inputs <= 0:
            raise InvalidConfig(f"'num_inputs' must be a positive integer, got {self.num_inputs!r}")

        if not is_int(self.num_outputs) or self.num_outputs <= 0:
            raise InvalidConfig(f"'num_outputs' must be a positive integer, got {self.num_outputs!r}")

        if isinstance(self.activation, str):
            if self.activation not in activations:
                raise InvalidConfig(f"Unknown activation '{self.activation}'. "
                                    f"Available: {', '.join(sorted(activations))}")
        elif not callable(self.activation):
            raise InvalidConfig(f"'activation' must be a name or a callable, got {self.activation!r}")

        if not is_int(self.mutation_intensity) or self.mutation_intensity < 0:
            raise InvalidConfig(f"'mutation_intensity' must be a non-negative integer, got {self.mutation_intensity!r}")

        if not is_int(self.max_iterations) or self.max_iterations < 0:
            raise InvalidConfig(f"'max_iterations' must be a non-negative integer, got {self.max_iterations!r}")

        if not isinstance(self.ranking_mode, RankingMode):
            raise InvalidConfig(f"'ranking_mode' must be a RankingMode, got {self.ranking_mode!r}")

        if isinstance(self.target_value, bool) or not isinstance(self.target_value, (int, float)):
            raise InvalidConfig(f"'target_value' must be a number, got {self.target_value!r}")

        if not is_int(self.num_jobs) or self.num_jobs == 0:
            raise InvalidConfig(f"'num_jobs' must be a non-zero integer, got {self.num_jobs!r}")

        if self.backend not in PARALLEL_BACKENDS:
            raise InvalidConfig(f"'backend' must be one of {', '.join(PARALLEL_BACKENDS)}, got {self.backend!r}")

        if self.generation_timeout is not None and \
           (isinstance(self.generation_timeout, bool) or
            not isinstance(self.generation_timeout, (int, float)) or
            self.generation_timeout <= 0):
            raise InvalidConfig(f"'generation_timeout' must be a positive number or None, "
                                f"got {self.generation_timeout!r}")
