"""
Centralized settings and path configuration for the shipping rates tool.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    # Walk up from this file to find the project root
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to the package directory's parent
    return Path(__file__).resolve().parent.parent.parent


def get_package_dir() -> Path:
    return Path(__file__).resolve().parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Input files
    countries_csv: Path
    rates_csv: Path

    # Output files
    compiled_rates: Path

    # Store / carrier settings
    currency: str = 'EUR'
    method_label: str = 'Home delivery'
    carrier: str = 'BPost'
    package_type: str = 'custom_box'

    log_level: str = 'INFO'

    # API server
    api_host: str = '127.0.0.1'
    api_port: int = 8000

    @classmethod
    def load(cls, project_root: Optional[Path] = None, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        env_data_dir = os.environ.get('SHIPPING_RATES_DATA_DIR')
        if data_dir is None:
            data_dir = Path(env_data_dir) if env_data_dir else get_package_dir() / 'data'

        return cls(
            project_root=root,
            data_dir=data_dir,
            countries_csv=data_dir / 'countries.csv',
            rates_csv=data_dir / 'rates.csv',
            compiled_rates=data_dir / 'compiled_rates.json',
            currency=os.environ.get('SHIPPING_RATES_CURRENCY', 'EUR').upper(),
            log_level=os.environ.get('SHIPPING_RATES_LOG_LEVEL', 'INFO'),
            api_host=os.environ.get('SHIPPING_RATES_HOST', '127.0.0.1'),
            api_port=int(os.environ.get('SHIPPING_RATES_PORT', '8000')),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
