import logging
import sys

from pythonjsonlogger import jsonlogger

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

_configured = False


def setup_logging(name: str | None = None, level: str | int = logging.INFO):
    """
    Configures structured JSON logging and returns a logger.

    The first call installs a single stdout handler with a JSON formatter
    (timestamp, level, logger name, message, trace_id, span_id) on the root
    logger and on the Uvicorn loggers, so request logs and application logs
    share one format. Later calls only look up the requested logger.

    Args:
        name: Logger name. The root logger is returned when omitted.
        level: Level applied on first configuration.

    Returns:
        logging.Logger: The requested logger instance.
    """
    global _configured

    if not _configured:
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
        )
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers = []
        root_logger.addHandler(stream_handler)

        for logger_name in _UVICORN_LOGGERS:
            u_logger = logging.getLogger(logger_name)
            u_logger.setLevel(level)
            u_logger.handlers = [stream_handler]
            u_logger.propagate = False

        _configured = True

    return logging.getLogger(name)
