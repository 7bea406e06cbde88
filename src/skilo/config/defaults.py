"""Built-in default configuration for skilo."""

# Default configuration that serves as the base for all other configs
DEFAULT_CONFIG = {
    "version": "1.0",
    "cache": {
        "home": None,
        "cache_dir": None,
        "max_age_days": 30,
        "offline": False,
    },
}
