import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

# Depth of the eligible-voter tree the predicate is built for (2^20 leaves)
DEFAULT_TREE_DEPTH = 20
DEFAULT_CHOICE_BITS = 32


@dataclass
class CircuitConfig:
    tree_depth: int = DEFAULT_TREE_DEPTH
    choice_bits: int = DEFAULT_CHOICE_BITS

    def __post_init__(self):
        if self.tree_depth < 1:
            raise ValueError(f"tree_depth must be positive, got {self.tree_depth}")
        if self.choice_bits < 1:
            raise ValueError(f"choice_bits must be positive, got {self.choice_bits}")


@dataclass
class SystemConfig:
    circuit: CircuitConfig = field(default_factory=CircuitConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_level: str = "INFO"
    results_dir: Path = field(default_factory=lambda: Path("results"))
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)

        if self.enable_debug_mode:
            self.log_level = "DEBUG"


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = Path("config.yaml")
    config_path = Path(config_path)

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            circuit_data = config_data.get('circuit', {})
            circuit = CircuitConfig(
                tree_depth=int(circuit_data.get('tree_depth', DEFAULT_TREE_DEPTH)),
                choice_bits=int(circuit_data.get('choice_bits', DEFAULT_CHOICE_BITS)),
            )

            return SystemConfig(
                circuit=circuit,
                log_dir=Path(config_data.get('log_dir', 'logs')),
                log_level=config_data.get('log_level', 'INFO'),
                results_dir=Path(config_data.get('results_dir', 'results')),
                enable_debug_mode=config_data.get('enable_debug_mode', False)
            )
        except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not load config file {config_path}: {e}")
            logger.warning("Using default configuration")

    return SystemConfig()


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = Path("config.yaml")
    config_path = Path(config_path)

    config_data = {
        'circuit': {
            'tree_depth': config.circuit.tree_depth,
            'choice_bits': config.circuit.choice_bits,
        },
        'log_dir': str(config.log_dir),
        'log_level': config.log_level,
        'results_dir': str(config.results_dir),
        'enable_debug_mode': config.enable_debug_mode
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        yaml.dump(config_data, f, default_flow_style=False)

    logger.info(f"Configuration saved to {config_path}")
