import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that are chatty at DEBUG
NOISY_LOGGERS = ('httpx', 'httpcore', 'urllib3', 'multipart')


def _configured(name, fallback):
    """Value of *name* from config.py, or *fallback* when there is no config."""
    try:
        import config
    except ImportError:
        return fallback
    return getattr(config, name, fallback)


def _resolve_level(log_level):
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(log_file, level, formatter):
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_file=None, log_level=None):
    """
    Configure the root logger for the API, the CLI and the play-URL pipeline

    Args:
        log_file: Append log records here as well (default: API_LOG_FILE from config)
        log_level: Level name (default: LOG_LEVEL from config, else INFO)

    Returns:
        The root logger
    """
    if log_level is None:
        log_level = _configured('LOG_LEVEL', 'INFO')
    if log_file is None:
        log_file = _configured('API_LOG_FILE', None)

    level = _resolve_level(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        root_logger.addHandler(_file_handler(log_file, level, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    return root_logger


def get_logger(name):
    """Module logger, e.g. ``get_logger(__name__)``."""
    return logging.getLogger(name)
