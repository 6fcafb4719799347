"""Prepare the disk which backs the virtual machine being built."""

import os
import shutil
import attr
import logging

from enum import Enum
from qemu_image.driver import InspectionError, QemuImgError
from qemu_image.state import Action, ExpectedError


__all__ = [
    'ConversionError',
    'CopyError',
    'DiskAction',
    'PrepareResult',
    'StepCopyDisk',
    'copy_file',
    'decide_action',
    'destination_path',
    'inspect_format',
    'prepare_disk',
    ]


_logger = logging.getLogger('qemu-image')


class CopyError(ExpectedError):
    """The source image could not be copied to the output directory."""


class ConversionError(ExpectedError):
    """qemu-img failed to convert the source image."""


class DiskAction(Enum):
    direct_copy = 'direct-copy'
    convert = 'convert'
    skip = 'skip'


@attr.s
class PrepareResult:
    action = attr.ib()
    outcome = attr.ib()
    disk_filename = attr.ib(default=None)
    error = attr.ib(default=None)


def inspect_format(driver, path):
    """Return the format of the image at `path`, or None if it's unknown."""
    try:
        return driver.get_image_format(path)
    except InspectionError as error:
        _logger.debug('Image format unknown, assuming a conversion is '
                      'needed: {}'.format(error))
        return None


def destination_path(config):
    return os.path.join(config.output_dir, config.vm_name)


def decide_action(source_format, config):
    """Choose how the disk gets prepared.

    A source already in the requested format is copied as is, because
    qemu-img convert is both unneeded and known to be broken on some
    platforms in that case.  Note that this check happens before the
    disk-image and backing file settings are looked at, so a matching source
    is copied even when no disk would otherwise be prepared.

    :param source_format: The inspected format of the source image, or None
        if it could not be determined.
    :param config: The build configuration.
    :type config: BuildConfig
    :rtype: DiskAction
    """
    if source_format is not None and source_format == config.format:
        return DiskAction.direct_copy
    if not config.disk_image or config.use_backing_file:
        return DiskAction.skip
    return DiskAction.convert


def copy_file(src, dst):
    with open(src, 'rb') as infp:
        with open(dst, 'wb') as outfp:
            shutil.copyfileobj(infp, outfp)


def prepare_disk(source, destination, config, driver, ui=None):
    """Copy, convert, or skip preparing the primary disk.

    :param source: Path to the source image.
    :param destination: Path of the disk to create.
    :param config: The build configuration.
    :type config: BuildConfig
    :param driver: Used to inspect and convert images.
    :type driver: Driver
    :param ui: When given, told about the conversion before it starts.
    :return: What was done and how it went.  Failures are reported through
        the result's error and a halt outcome, never raised.
    :rtype: PrepareResult
    """
    action = decide_action(inspect_format(driver, source), config)
    _logger.debug('Preparing disk {} from {}: {}'.format(
        destination, source, action.value))
    if action is DiskAction.direct_copy:
        try:
            copy_file(source, destination)
        except OSError as error:
            return PrepareResult(
                action, Action.halt,
                error=CopyError('Error copying source file: {}'.format(error)))
        return PrepareResult(action, Action.continue_)
    if action is DiskAction.skip:
        return PrepareResult(action, Action.continue_)
    if ui is not None:
        ui.say('Copying hard drive...')
    try:
        driver.qemu_img(
            'convert',
            '-O', config.format,
            source,
            destination)
    except QemuImgError as error:
        return PrepareResult(
            action, Action.halt,
            error=ConversionError(
                'Error creating hard drive: {}'.format(error)))
    return PrepareResult(action, Action.continue_, disk_filename=config.vm_name)


class StepCopyDisk:
    """Copy or convert the source image into the output directory."""

    name = 'copy_disk'

    def run(self, cancel, build):
        config = build.config
        path = destination_path(config)
        result = prepare_disk(
            build.iso_path, path, config, build.driver, build.ui)
        if result.error is not None:
            build.error = result.error
            build.ui.error(str(result.error))
        if result.disk_filename is not None:
            build.disk_filename = result.disk_filename
        return result.outcome

    def cleanup(self, build):
        # The disk belongs to the build, not to this step.
        pass
