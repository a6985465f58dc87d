"""Environment configuration loader and validator"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from dotenv import dotenv_values, find_dotenv
from rich.console import Console
from rich.table import Table

# Default configuration values
DEFAULTS = {
    # Collection
    'HOSTSCOPE_QUERY_TIMEOUT': '30',
    'HOSTSCOPE_DAYS': '3',
    'HOSTSCOPE_WMIC_PATH': 'wmic',

    # Output
    'HOSTSCOPE_OUTPUT_DIR': '.',
    'HOSTSCOPE_FORMAT': 'html',
    'HOSTSCOPE_AUTO_OPEN': 'true',

    # Logging
    'HOSTSCOPE_LOG_FILE': '',
    'HOSTSCOPE_LOG_LEVEL': 'INFO',
}

VALID_FORMATS = ('html', 'json', 'both')
VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
MAX_DAYS = 365


class ConfigError(Exception):
    """The configuration file could not be read or is malformed."""


def find_env_file() -> Optional[Path]:
    """Find the .env file in standard locations"""
    found = find_dotenv(filename='.env', usecwd=True)
    if found:
        return Path(found)

    home_env = Path.home() / '.hostscope.env'
    if home_env.exists():
        return home_env

    return None


def load_env_file(env_path: Optional[Path] = None, override: bool = False) -> Dict[str, str]:
    """Load environment variables from a .env file

    Args:
        env_path: Optional path to .env file. If None, auto-discovers.
        override: Replace variables already present in the environment

    Returns:
        Dictionary of the variables that were applied
    """
    if env_path is None:
        env_path = find_env_file()

    if env_path is None or not Path(env_path).exists():
        return {}

    loaded = {}
    for key, value in dotenv_values(env_path).items():
        if value is None:
            continue
        if override or key not in os.environ:
            os.environ[key] = value
            loaded[key] = value
    return loaded


def load_yaml_config(path: Union[str, Path]) -> Dict[str, str]:
    """Apply a YAML overlay to the environment

    Keys may be given with or without the ``HOSTSCOPE_`` prefix and in any
    case (``days: 7`` and ``HOSTSCOPE_DAYS: 7`` are equivalent). Values
    from the file replace environment values.

    Raises:
        ConfigError: The file is missing, unreadable or not a mapping
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    applied = {}
    for raw_key, value in data.items():
        key = str(raw_key).upper()
        if not key.startswith('HOSTSCOPE_'):
            key = f'HOSTSCOPE_{key}'
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        text = '' if value is None else str(value)
        os.environ[key] = text
        applied[key] = text
    return applied


def get_config(key: str, default: Optional[str] = None) -> str:
    """Get configuration value from environment or defaults

    Priority:
    1. Environment variable
    2. Provided default
    3. Built-in default
    """
    if default is None:
        default = DEFAULTS.get(key, '')
    return os.environ.get(key, default)


def get_config_bool(key: str, default: Optional[bool] = None) -> bool:
    """Get boolean configuration value"""
    fallback = None if default is None else str(default).lower()
    value = get_config(key, fallback)
    return value.strip().lower() in ('true', 'yes', '1', 'on')


def get_config_int(key: str, default: int = 0) -> int:
    """Get integer configuration value"""
    try:
        return int(get_config(key, str(default)))
    except ValueError:
        return default


def get_config_float(key: str, default: float = 0.0) -> float:
    """Get float configuration value"""
    try:
        return float(get_config(key, str(default)))
    except ValueError:
        return default


def validate_config() -> Dict[str, Any]:
    """Validate current configuration and return status

    Returns:
        Dictionary with validation results
    """
    results = {
        'valid': True,
        'warnings': [],
        'errors': [],
        'config': {}
    }

    # Query timeout
    raw_timeout = get_config('HOSTSCOPE_QUERY_TIMEOUT')
    try:
        timeout = float(raw_timeout)
        if timeout <= 0:
            raise ValueError
    except ValueError:
        results['errors'].append(f"Invalid HOSTSCOPE_QUERY_TIMEOUT: {raw_timeout}")
        results['valid'] = False
        timeout = float(DEFAULTS['HOSTSCOPE_QUERY_TIMEOUT'])
    results['config']['query_timeout'] = timeout

    # Lookback window
    raw_days = get_config('HOSTSCOPE_DAYS')
    try:
        days = int(raw_days)
        if days < 0:
            raise ValueError
    except ValueError:
        results['errors'].append(f"Invalid HOSTSCOPE_DAYS: {raw_days}")
        results['valid'] = False
        days = int(DEFAULTS['HOSTSCOPE_DAYS'])
    if days > MAX_DAYS:
        results['warnings'].append(f"HOSTSCOPE_DAYS={days} is a large window; collection may be slow")
    results['config']['days'] = days

    # Output format
    fmt = get_config('HOSTSCOPE_FORMAT').strip().lower()
    if fmt not in VALID_FORMATS:
        results['errors'].append(f"Invalid HOSTSCOPE_FORMAT: {fmt}")
        results['valid'] = False
        fmt = DEFAULTS['HOSTSCOPE_FORMAT']
    results['config']['format'] = fmt

    # Log level
    log_level = get_config('HOSTSCOPE_LOG_LEVEL').strip().upper()
    if log_level not in VALID_LOG_LEVELS:
        results['errors'].append(f"Invalid HOSTSCOPE_LOG_LEVEL: {log_level}")
        results['valid'] = False
        log_level = DEFAULTS['HOSTSCOPE_LOG_LEVEL']
    results['config']['log_level'] = log_level

    # Output directory
    output_dir = Path(get_config('HOSTSCOPE_OUTPUT_DIR') or '.')
    if output_dir.exists() and not output_dir.is_dir():
        results['errors'].append(f"HOSTSCOPE_OUTPUT_DIR is not a directory: {output_dir}")
        results['valid'] = False
    elif not output_dir.exists():
        results['warnings'].append(f"Output directory will be created: {output_dir}")
    results['config']['output_dir'] = str(output_dir)

    results['config']['log_file'] = get_config('HOSTSCOPE_LOG_FILE')
    results['config']['auto_open'] = get_config_bool('HOSTSCOPE_AUTO_OPEN')
    results['config']['wmic_path'] = get_config('HOSTSCOPE_WMIC_PATH') or DEFAULTS['HOSTSCOPE_WMIC_PATH']

    return results


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one run"""
    query_timeout: float
    days: int
    output_dir: Path
    format: str
    log_file: Optional[Path]
    log_level: str
    auto_open: bool
    wmic_path: str
    warnings: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()


def load_settings(config_file: Optional[Union[str, Path]] = None, env_file: Optional[Path] = None) -> Settings:
    """Load .env and optional YAML overlay, then resolve Settings

    Invalid values fall back to their defaults. The problems found are
    kept on ``Settings.errors`` and ``Settings.warnings``.

    Raises:
        ConfigError: ``config_file`` could not be loaded
    """
    load_env_file(env_file)
    if config_file:
        load_yaml_config(config_file)

    validation = validate_config()
    config = validation['config']
    return Settings(
        query_timeout=config['query_timeout'],
        days=config['days'],
        output_dir=Path(config['output_dir']),
        format=config['format'],
        log_file=Path(config['log_file']) if config['log_file'] else None,
        log_level=config['log_level'],
        auto_open=config['auto_open'],
        wmic_path=config['wmic_path'],
        warnings=tuple(validation['warnings']),
        errors=tuple(validation['errors']),
    )


def show_config_summary(console: Optional[Console] = None):
    """Display current configuration summary"""
    console = console or Console()
    table = Table(title="Current Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source", style="yellow")

    for key in sorted(DEFAULTS.keys()):
        env_value = os.environ.get(key)
        if env_value is not None:
            table.add_row(key, env_value, "env")
        else:
            table.add_row(key, DEFAULTS[key], "default")

    console.print(table)


def show_validation(validation: Dict[str, Any], console: Optional[Console] = None):
    """Display validate_config() warnings and errors"""
    console = console or Console()
    if validation['warnings']:
        console.print("\n[yellow]Warnings:[/yellow]")
        for warning in validation['warnings']:
            console.print(f"  [yellow]⚠ {warning}[/yellow]")

    if validation['errors']:
        console.print("\n[red]Errors:[/red]")
        for error in validation['errors']:
            console.print(f"  [red]✗ {error} (default used)[/red]")
