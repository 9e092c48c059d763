"""Configuration management for fssh"""

import os

DEFAULT_HISTORY_FILE = "~/.fssh_history"
DEFAULT_LOG_LEVEL = "WARNING"


class Config:
    """Configuration for the fssh shell"""

    def __init__(self):
        self.location = os.getenv('FSSH_DIR', '.')
        self.history_file = os.getenv('FSSH_HISTFILE', DEFAULT_HISTORY_FILE)
        self.log_level = os.getenv('FSSH_LOG_LEVEL', DEFAULT_LOG_LEVEL).upper()

    @classmethod
    def from_env(cls):
        """Create configuration from environment variables"""
        return cls()

    @classmethod
    def from_args(cls, location: str = None, history_file: str = None, log_level: str = None):
        """Create configuration from command line arguments"""
        config = cls()
        if location:
            config.location = location
        if history_file:
            config.history_file = history_file
        if log_level:
            config.log_level = log_level.upper()
        return config

    def __repr__(self):
        return (
            f"Config(location={self.location}, history_file={self.history_file}, "
            f"log_level={self.log_level})"
        )
