"""User facing reporting for build steps."""

import logging


_logger = logging.getLogger('qemu-image')


class LoggingUi:
    """Report progress and errors through the qemu-image logger."""

    def __init__(self, logger=None):
        self._logger = _logger if logger is None else logger

    def say(self, message):
        self._logger.info(message)

    def error(self, message):
        self._logger.error(message)
