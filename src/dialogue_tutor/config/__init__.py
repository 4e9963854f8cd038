from .loader import load_settings
from .schema import (
    AutoplayConfig,
    ContextConfig,
    CourseConfig,
    LoggingConfig,
    ModelConfig,
    NavigationConfig,
    PathsConfig,
    Settings,
)

__all__ = [
    "load_settings",
    "Settings",
    "CourseConfig",
    "NavigationConfig",
    "AutoplayConfig",
    "ContextConfig",
    "ModelConfig",
    "PathsConfig",
    "LoggingConfig",
]
