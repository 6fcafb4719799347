"""Testing helpers."""

import os
import shutil
import logging

from contextlib import ExitStack, contextmanager
from qemu_image.config import BuildConfig
from qemu_image.driver import Driver, InspectionError, QemuImgError
from qemu_image.state import Action, BuildState
from unittest.mock import patch


class RecordingDriver(Driver):
    """A driver which never runs qemu-img.

    The image format is whatever the test says it is; a format of None
    makes inspection fail.  Every qemu-img invocation is recorded.  A
    successful `convert` copies the source bytes to the destination so that
    later checks have a file to look at.
    """

    def __init__(self, image_format=None, fail_with=None):
        self.image_format = image_format
        self.fail_with = fail_with
        self.inspected = []
        self.call_args_list = []

    def get_image_format(self, path):
        self.inspected.append(path)
        if self.image_format is None:
            raise InspectionError(path, 'corrupt header')
        return self.image_format

    def qemu_img(self, *args):
        self.call_args_list.append(list(args))
        if self.fail_with is not None:
            raise QemuImgError(
                ['qemu-img'] + list(args), 1, self.fail_with)
        if args[0] == 'convert':
            shutil.copy(args[-2], args[-1])


class RecordingUi:
    def __init__(self):
        self.said = []
        self.errors = []

    def say(self, message):
        self.said.append(message)

    def error(self, message):
        self.errors.append(message)


class RecordingStep:
    """A build step which remembers the order things happened in."""

    def __init__(self, name, trace, action=Action.continue_, crash=False):
        self.name = name
        self.trace = trace
        self.action = action
        self.crash = crash

    def run(self, cancel, build):
        self.trace.append(('run', self.name))
        if self.crash:
            raise RuntimeError(self.name)
        return self.action

    def cleanup(self, build):
        self.trace.append(('cleanup', self.name))


def make_config(output_dir, **kws):
    kws.setdefault('vm_name', 'vm1')
    return BuildConfig(output_dir=output_dir, **kws)


def make_build(config, driver=None, iso_path='source.img', ui=None):
    return BuildState(
        config=config,
        driver=RecordingDriver() if driver is None else driver,
        iso_path=iso_path,
        ui=RecordingUi() if ui is None else ui,
        )


def write_image(path, contents=b'\x00QFI\xfb' + bytes(range(256)) * 64):
    with open(path, 'wb') as fp:
        fp.write(contents)
    return contents


def read_image(path):
    with open(path, 'rb') as fp:
        return fp.read()


class LogCapture:
    def __init__(self):
        self.logs = []
        self._resources = ExitStack()

    def capture(self, *args, **kws):
        level, fmt, fmt_args = args
        self.logs.append((level, fmt % fmt_args))
        # Was .exception() called?
        exc_info = kws.pop('exc_info', None)
        kws.pop('stacklevel', None)
        assert len(kws) == 0, kws
        if exc_info:
            self.logs.append('IMAGINE THE TRACEBACK HERE')

    def __enter__(self):
        log = logging.getLogger('qemu-image')
        self._resources.enter_context(patch.object(log, '_log', self.capture))
        return self

    def __exit__(self, *exception):
        self._resources.close()
        # Don't suppress any exceptions.
        return False


@contextmanager
def envar(key, value):
    missing = object()
    # Temporarily set an environment variable.
    old_value = os.environ.get(key, missing)
    os.environ[key] = value
    try:
        yield
    finally:
        if old_value is missing:
            del os.environ[key]
        else:
            os.environ[key] = old_value
