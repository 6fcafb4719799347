"""Useful helper functions."""

import os
import shutil
import logging

from subprocess import PIPE, run as subprocess_run
from qemu_image.state import ExpectedError


__all__ = [
    'DependencyError',
    'as_bool',
    'find_executable',
    'run',
    ]


_logger = logging.getLogger('qemu-image')


def as_bool(value):
    if isinstance(value, bool):
        return value
    value = str(value)
    if value.lower() in {
            'no',
            'false',
            '0',
            'disable',
            'disabled',
            }:
        return False
    if value.lower() in {
            'yes',
            'true',
            '1',
            'enable',
            'enabled',
            }:
        return True
    raise ValueError(value)


def run(command, *, check=True, **args):
    runnable_command = (
        command.split() if isinstance(command, str) and 'shell' not in args
        else command)
    stdout = args.pop('stdout', PIPE)
    stderr = args.pop('stderr', PIPE)
    proc = subprocess_run(
        runnable_command,
        stdout=stdout, stderr=stderr,
        universal_newlines=True,
        **args)
    if check and proc.returncode != 0:
        _logger.error('COMMAND FAILED: %s', command)
        if proc.stdout is not None:
            _logger.error(proc.stdout)
        if proc.stderr is not None:
            _logger.error(proc.stderr)
        proc.check_returncode()
    return proc


def find_executable(name, envar=None):
    """Locate an external tool.

    :param name: The executable to search for on $PATH.
    :param envar: Optional environment variable which, when set, overrides
        the search with an explicit path.
    :return: The path to the executable.
    :raises DependencyError: When the executable can't be found.
    """
    if envar is not None:
        path = os.environ.get(envar)
        if path is not None:
            return path
    path = shutil.which(name)
    if path is None:
        raise DependencyError(
            name,
            '' if envar is None
            else 'Use {} in case of non-standard paths.'.format(envar))
    return path


class DependencyError(ExpectedError):
    """An external dependency is missing."""

    def __init__(self, name, additional_info=''):
        super().__init__(name)
        self.name = name
        self.additional_info = additional_info
