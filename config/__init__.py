"""Configuration management for the election simulation."""

from .config import ProtocolConfig, SimulationConfig, SystemConfig, load_config, save_config

__all__ = ['ProtocolConfig', 'SimulationConfig', 'SystemConfig', 'load_config', 'save_config']
