import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from core.models import DEFAULT_ALPHABET
from core.parameters import CODE_LENGTH, DEFAULT_N_MAX, SECURITY_LEVELS

logger = logging.getLogger(__name__)

ELECTION_SET_TEMPLATES = ("SINGLE_VOTE", "SIMPLE_SAMPLE", "GC_CE")


@dataclass
class ProtocolConfig:
    security_level: int = 1
    num_authorities: int = 4
    hash_algorithm: str = "sha512"
    n_max: int = DEFAULT_N_MAX
    return_code_length: int = CODE_LENGTH
    finalization_code_length: int = CODE_LENGTH
    alphabet: str = DEFAULT_ALPHABET

    def __post_init__(self):
        if self.security_level not in SECURITY_LEVELS:
            raise ValueError(f"Unknown security level {self.security_level}, "
                             f"expected one of {sorted(SECURITY_LEVELS)}")
        if self.num_authorities < 1:
            raise ValueError("At least one authority is required")
        if self.return_code_length < 1 or self.finalization_code_length < 1:
            raise ValueError("Code lengths must be positive")


@dataclass
class SimulationConfig:
    election_set: str = "SINGLE_VOTE"
    num_voters: int = 10

    def __post_init__(self):
        if self.election_set not in ELECTION_SET_TEMPLATES:
            raise ValueError(f"Unknown election set {self.election_set}, "
                             f"expected one of {', '.join(ELECTION_SET_TEMPLATES)}")
        if self.num_voters < 1:
            raise ValueError("At least one voter is required")


@dataclass
class SystemConfig:
    protocol_config: ProtocolConfig = field(default_factory=ProtocolConfig)
    simulation_config: SimulationConfig = field(default_factory=SimulationConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    log_level: str = "INFO"
    enable_benchmarking: bool = True

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.results_dir.mkdir(parents=True, exist_ok=True)


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = Path("config.yaml")
    config_path = Path(config_path)

    if not config_path.exists():
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Could not parse config file {config_path}: {e}. Using default configuration")
        return SystemConfig()

    protocol_data = config_data.get('protocol', {})
    protocol_config = ProtocolConfig(
        security_level=protocol_data.get('security_level', 1),
        num_authorities=protocol_data.get('num_authorities', 4),
        hash_algorithm=protocol_data.get('hash_algorithm', 'sha512'),
        n_max=protocol_data.get('n_max', DEFAULT_N_MAX),
        return_code_length=protocol_data.get('return_code_length', CODE_LENGTH),
        finalization_code_length=protocol_data.get('finalization_code_length', CODE_LENGTH),
        alphabet=protocol_data.get('alphabet', DEFAULT_ALPHABET)
    )

    simulation_data = config_data.get('simulation', {})
    simulation_config = SimulationConfig(
        election_set=simulation_data.get('election_set', 'SINGLE_VOTE'),
        num_voters=simulation_data.get('num_voters', 10)
    )

    return SystemConfig(
        protocol_config=protocol_config,
        simulation_config=simulation_config,
        log_dir=Path(config_data.get('log_dir', 'logs')),
        results_dir=Path(config_data.get('results_dir', 'results')),
        log_level=config_data.get('log_level', 'INFO'),
        enable_benchmarking=config_data.get('enable_benchmarking', True)
    )


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = Path("config.yaml")

    config_data = {
        'protocol': {
            'security_level': config.protocol_config.security_level,
            'num_authorities': config.protocol_config.num_authorities,
            'hash_algorithm': config.protocol_config.hash_algorithm,
            'n_max': config.protocol_config.n_max,
            'return_code_length': config.protocol_config.return_code_length,
            'finalization_code_length': config.protocol_config.finalization_code_length,
            'alphabet': config.protocol_config.alphabet
        },
        'simulation': {
            'election_set': config.simulation_config.election_set,
            'num_voters': config.simulation_config.num_voters
        },
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'log_level': config.log_level,
        'enable_benchmarking': config.enable_benchmarking
    }

    with open(config_path, 'w') as f:
        yaml.dump(config_data, f, default_flow_style=False)
