from loguru import logger
import os

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {module}:{function}:{line} - {message}"

_file_sink_id = None


def configure_logging(log_file: str = "logs/app.log", level: str = "INFO"):
    """Add the rotating application log file; calling again replaces the previous sink"""
    global _file_sink_id

    # Create logs directory if it doesn't exist
    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    if _file_sink_id is not None:
        try:
            logger.remove(_file_sink_id)
        except ValueError:
            logger.debug(f"Log sink {_file_sink_id} was already removed")
    _file_sink_id = logger.add(
        log_file,
        rotation="500 MB",
        level=level,
        format=LOG_FORMAT
    )
    return _file_sink_id


# Export logger instance
__all__ = ['logger', 'configure_logging']
