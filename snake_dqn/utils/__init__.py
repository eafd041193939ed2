"""Utility modules for the Snake DQN project."""

from .logger import LogLevel, configure_from_config, get_logger, setup_logging

__all__ = ['LogLevel', 'configure_from_config', 'get_logger', 'setup_logging']
