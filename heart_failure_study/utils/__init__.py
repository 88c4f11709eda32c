from heart_failure_study.utils.logger import (
    add_file_handler,
    get_logger,
    remove_handler,
    set_level,
)

__all__ = ["get_logger", "set_level", "add_file_handler", "remove_handler"]
