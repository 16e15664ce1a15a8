"""Utility mixin classes"""

__all__ = ['LoggingMixin']

import logging
from typing import Optional

from qiblacompass.utils.logging import LOGGER


class LoggingMixin:  # pylint: disable=too-few-public-methods
    """
    Gives each instance a logger named after its class, as a child of the package
    logger, so that the package's handler and level apply.

    Args:
        logstr:
            (Optional) A suffix distinguishing this instance's logger, e.g. an id
    """
    logger: logging.Logger

    def __init__(self, logstr: Optional[str] = None):
        name = self.__class__.__name__
        if logstr:
            name += f'.{logstr}'

        self.logger = LOGGER.getChild(name)
