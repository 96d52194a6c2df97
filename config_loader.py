"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict
from urllib.parse import urlparse

import yaml

CONTENT_TYPES = ('posts', 'pages', 'all')
POST_STATUSES = ('publish', 'draft', 'all')
IMPORT_MODES = ('create', 'update', 'sync')

DEFAULT_CONFIG: Dict[str, Any] = {
    'wordpress': {
        'url': 'http://localhost:8080',
        'user': 'admin',
        'app_password': '',
        'verify_ssl': True,
    },
    'content_type': 'all',
    'export': {
        'output_dir': './wp-export',
        'status': 'publish',
        'include_media': True,
        'include_plugins': True,
        'same_origin_media_only': True,
    },
    'import': {
        'input_dir': './wp-export',
        'mode': 'sync',
        'include_media': True,
        'include_plugins': True,
        'dry_run': False,
    },
    'advanced': {
        'request_timeout': 30,
        'upload_timeout_multiplier': 2,
        'per_page': 100,
        'progress_bars': True,
    },
    'logging': {
        'level': None,
        'file': None,
    },
}

# Environment fallbacks for connection settings
ENV_DEFAULTS = {
    'url': 'WP_REMOTE_URL',
    'user': 'WP_REMOTE_USER',
    'app_password': 'WP_REMOTE_APP_PASSWORD',
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay ``config`` on the built-in defaults (nested sections merged)."""
        return _deep_merge(DEFAULT_CONFIG, config or {})

    @classmethod
    def apply_env_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fill connection settings from WP_REMOTE_* environment variables.

        Values already present in ``config`` win over the environment; the
        environment wins over built-in defaults.
        """
        merged = copy.deepcopy(config)
        wordpress = merged.setdefault('wordpress', {})
        for key, env_name in ENV_DEFAULTS.items():
            env_value = os.getenv(env_name)
            if not wordpress.get(key) and env_value:
                wordpress[key] = env_value
        return merged

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'wordpress.url')
        cls._validate_required_field(config, 'wordpress.user')
        cls._validate_required_field(config, 'wordpress.app_password')
        cls._validate_url(get_nested(config, 'wordpress.url'), 'wordpress.url')

        content_type = get_nested(config, 'content_type', 'all')
        if content_type not in CONTENT_TYPES:
            raise ValueError(f"Invalid content type: {content_type}. Use: {', '.join(CONTENT_TYPES)}")

        status = get_nested(config, 'export.status', 'publish')
        if status not in POST_STATUSES:
            raise ValueError(f"Invalid status: {status}. Use: {', '.join(POST_STATUSES)}")

        mode = get_nested(config, 'import.mode', 'sync')
        if mode not in IMPORT_MODES:
            raise ValueError(f"Invalid import mode: {mode}. Use: {', '.join(IMPORT_MODES)}")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        multiplier = get_nested(config, 'advanced.upload_timeout_multiplier', 2)
        if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)) or multiplier <= 0:
            raise ValueError("advanced.upload_timeout_multiplier must be a positive number")

        per_page = get_nested(config, 'advanced.per_page', 100)
        if isinstance(per_page, bool) or not isinstance(per_page, int) or not 1 <= per_page <= 100:
            raise ValueError("advanced.per_page must be an integer between 1 and 100")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('wordpress', 'export', 'import', 'logging'):
            merged.setdefault(section, {})

        if getattr(args, 'url', None):
            merged['wordpress']['url'] = args.url
        if getattr(args, 'user', None):
            merged['wordpress']['user'] = args.user
        if getattr(args, 'password', None):
            merged['wordpress']['app_password'] = args.password

        if getattr(args, 'type', None):
            merged['content_type'] = args.type

        command = getattr(args, 'command', None)

        if command == 'export':
            if getattr(args, 'output', None):
                merged['export']['output_dir'] = args.output
            if getattr(args, 'status', None):
                merged['export']['status'] = args.status
            if getattr(args, 'no_media', False):
                merged['export']['include_media'] = False
            if getattr(args, 'no_plugins', False):
                merged['export']['include_plugins'] = False

        if command == 'import':
            if getattr(args, 'input', None):
                merged['import']['input_dir'] = args.input
            if getattr(args, 'mode', None):
                merged['import']['mode'] = args.mode
            if getattr(args, 'no_media', False):
                merged['import']['include_media'] = False
            if getattr(args, 'no_plugins', False):
                merged['import']['include_plugins'] = False
            if getattr(args, 'dry_run', False):
                merged['import']['dry_run'] = True

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        if merged['wordpress'].get('url'):
            merged['wordpress']['url'] = merged['wordpress']['url'].rstrip('/')

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "wordpress.url")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    value = config

    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
