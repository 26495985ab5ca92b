"""Logging setup for the Ordering domain.

Protean configures structlog from the ``[logging]`` section of domain.toml
when the domain is initialized. This module only tones down the libraries
that log every unit of work and every dispatched command at INFO.
"""

import logging

NOISY_LOGGERS = ("protean", "sqlalchemy.engine", "psycopg2")


def quiet_library_loggers(level=logging.WARNING):
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)
