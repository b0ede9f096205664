import logging
import os
from logging.handlers import RotatingFileHandler
from config.config import Config

# Module loggers are created with get_logger(__name__), so handlers live on the package logger
ROOT_LOGGER_NAME = 'app'


def setup_logger(name=ROOT_LOGGER_NAME, log_file=None):
    """Set up the application logger with rotating file and console handlers"""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, Config.LOG_LEVEL))

    if logger.handlers:
        return logger

    log_file = log_file or Config.LOG_FILE
    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    # File handler with rotation
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10
    )
    file_handler.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def get_logger(name=None):
    """Get logger instance"""
    if not name or name == '__main__':
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(ROOT_LOGGER_NAME + '.') or name == ROOT_LOGGER_NAME:
        return logging.getLogger(name)
    # scripts and other entry points log under the application namespace
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# Create default logger
logger = setup_logger()
