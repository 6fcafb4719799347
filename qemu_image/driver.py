"""Access to the qemu-img tool.

The disk preparation logic never calls qemu-img directly.  It goes through a
driver object which can inspect the on-disk format of an image and run an
arbitrary qemu-img subcommand.  `QemuDriver` is the real thing; the test
suite uses a recording fake with the same interface.
"""

import json
import logging

from qemu_image.helpers import find_executable, run
from qemu_image.state import ExpectedError


__all__ = [
    'Driver',
    'InspectionError',
    'QemuDriver',
    'QemuImgError',
    ]


_logger = logging.getLogger('qemu-image')


class InspectionError(ExpectedError):
    """The format of an image could not be determined."""

    def __init__(self, path, reason):
        super().__init__('Cannot inspect {}: {}'.format(path, reason))
        self.path = path
        self.reason = reason


class QemuImgError(ExpectedError):
    """A qemu-img invocation exited with a non-zero status."""

    def __init__(self, command, returncode, stderr):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = 'qemu-img exited with status {}'.format(returncode)
        if stderr:
            message = '{}: {}'.format(message, stderr.strip())
        super().__init__(message)


class Driver:
    """The operations a build needs from the image tooling."""

    def get_image_format(self, path):
        """Return the storage format of the image at `path`.

        :raises InspectionError: When the format can't be determined.
        """
        raise NotImplementedError

    def qemu_img(self, *args):
        command = [self.qemu_img_path]
        command.extend(args)
        _logger.debug('Running: {}'.format(' '.join(command)))
        # Failures are reported once, by whoever catches QemuImgError, so
        # don't let run() log them too.
        try:
            proc = run(command, check=False)
        except OSError as error:
            raise QemuImgError(command, None, str(error)) from error
        if proc.returncode != 0:
            _logger.debug('qemu-img failed ({}): {}'.format(
                proc.returncode, proc.stderr))
            raise QemuImgError(command, proc.returncode, proc.stderr)
