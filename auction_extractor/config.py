"""
Configuration file handling for the extractor.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CLASSIFIER_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_CLASSIFIER_MODEL = "gpt-4o-mini"


class ExtractorConfig:
    """Configuration for the extractor."""

    def __init__(self, config_dict: Dict[str, Any] = None):
        """
        Initialize configuration from a dictionary.

        Args:
            config_dict: Configuration dictionary
        """
        config = config_dict or {}

        # Classification service
        self.classifier_enabled: bool = config.get('classifier_enabled', True)
        self.classifier_endpoint: str = config.get('classifier_endpoint', DEFAULT_CLASSIFIER_ENDPOINT)
        self.classifier_model: str = config.get('classifier_model', DEFAULT_CLASSIFIER_MODEL)
        self.classifier_api_key_env: str = config.get('classifier_api_key_env', 'CLASSIFIER_API_KEY')
        self.classifier_timeout: float = config.get('classifier_timeout', 20.0)
        self.classifier_cache: bool = config.get('classifier_cache', False)
        self.classifier_cache_name: str = config.get('classifier_cache_name', 'classifier_cache')

        # Retry policy (linear backoff: base, 2*base, ...)
        self.retry_max_attempts: int = config.get('retry_max_attempts', 3)
        self.retry_base_delay: float = config.get('retry_base_delay', 2.0)

        # Raw options text sent to the service is cut to this many characters
        self.options_char_limit: int = config.get('options_char_limit', 500)

        # Extra/overriding site configurations
        self.sites_file: Optional[str] = config.get('sites_file')

        # Filtering
        self.only_sold: bool = config.get('only_sold', False)

        # Output options
        self.output_path: str = config.get('output_path', 'listings.json')
        self.output_format: str = config.get('output_format', 'auto')  # 'json', 'jsonl', 'csv', 'auto'

        # Logging options
        self.log_level: str = config.get('log_level', 'INFO')
        self.log_file: Optional[str] = config.get('log_file')

        if self.retry_max_attempts < 1:
            raise ValueError("retry_max_attempts must be at least 1")
        if self.output_format not in ('json', 'jsonl', 'csv', 'auto'):
            raise ValueError(f"Unknown output_format '{self.output_format}'")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'classifier_enabled': self.classifier_enabled,
            'classifier_endpoint': self.classifier_endpoint,
            'classifier_model': self.classifier_model,
            'classifier_api_key_env': self.classifier_api_key_env,
            'classifier_timeout': self.classifier_timeout,
            'classifier_cache': self.classifier_cache,
            'classifier_cache_name': self.classifier_cache_name,
            'retry_max_attempts': self.retry_max_attempts,
            'retry_base_delay': self.retry_base_delay,
            'options_char_limit': self.options_char_limit,
            'sites_file': self.sites_file,
            'only_sold': self.only_sold,
            'output_path': self.output_path,
            'output_format': self.output_format,
            'log_level': self.log_level,
            'log_file': self.log_file,
        }

    @classmethod
    def from_file(cls, config_path: str) -> 'ExtractorConfig':
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to configuration file

        Returns:
            ExtractorConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file: {e}")
        except OSError as e:
            raise ValueError(f"Error reading config file: {e}")

        if not isinstance(config_dict, dict):
            raise ValueError("Config file must contain a JSON object")

        logger.info(f"Loaded configuration from {config_path}")
        return cls(config_dict)

    def save_to_file(self, config_path: str) -> None:
        """
        Save configuration to a JSON file.

        Args:
            config_path: Path to save configuration file
        """
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

        logger.info(f"Saved configuration to {config_path}")

    @classmethod
    def create_default(cls, config_path: str = 'extractor_config.json') -> 'ExtractorConfig':
        """
        Create a default configuration file.

        Args:
            config_path: Path to save default configuration

        Returns:
            ExtractorConfig object with default values
        """
        config = cls()
        config.save_to_file(config_path)
        return config
