from .logging import bind_course, configure_logging, get_logger

__all__ = ["bind_course", "configure_logging", "get_logger"]
