"""Open Data Census: survey results for places x datasets, served with Flask."""

from .app_factory import create_app
from .config import Config, ConfigError, ContributePage, load_config
from .startup import StartupMode, StartupPlan, plan_for

__all__ = [
    "Config",
    "ConfigError",
    "ContributePage",
    "StartupMode",
    "StartupPlan",
    "create_app",
    "load_config",
    "plan_for",
]
