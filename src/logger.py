# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""Primary Logging Configuration Function
"""

import logging
import os


def configure_logger(logger_name):
    """Configures a generic logger which can be imported and used as needed
    """

    # Create logger and define INFO as the log level
    logger = logging.getLogger(logger_name)
    logger.setLevel(os.environ.get("PIPELINE_LOG_LEVEL", logging.INFO))
    logger.propagate = False

    # Define our logging formatter
    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s | (%(filename)s:%(lineno)d)')

    # Configuring the same logger twice would print every line twice
    if not logger.handlers:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    return logger


def set_log_level(level, logger_names):
    """Raises or lowers the level of the given (already configured) loggers
    """
    for logger_name in logger_names:
        logging.getLogger(logger_name).setLevel(level)
