from dataclasses import dataclass


@dataclass
class AppSettings:
    """Flat application settings kept on-device only."""
    api_key: str = ''
