"""Allows the package to be run with `python3 -m qemu_image`."""

import sys
import logging
import argparse

from contextlib import suppress
from qemu_image import __version__
from qemu_image.builder import DiskBuilder
from qemu_image.config import ConfigurationError, parse
from qemu_image.driver import QemuDriver
from qemu_image.helpers import DependencyError
from qemu_image.i18n import _


_logger = logging.getLogger('qemu-image')


PROGRAM = 'qemu-image'


def parseargs(argv=None):
    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description=_('Prepare the primary disk of a QEMU virtual machine.'))
    parser.add_argument(
        '--version', action='version',
        version='{} {}'.format(PROGRAM, __version__))
    parser.add_argument(
        'source', nargs='?',
        help=_("""Path to the source disk image.  This argument must be given
        unless the configuration file names the source."""))
    parser.add_argument(
        '-d', '--debug',
        default=False, action='store_true',
        help=_('Enable debugging output'))
    parser.add_argument(
        '-c', '--config',
        default=None, metavar='FILENAME',
        help=_("""YAML build configuration file.  Command line options
        override the values it contains."""))
    image_group = parser.add_argument_group(_('Image options'))
    image_group.add_argument(
        '-O', '--output-dir',
        default=None, metavar='DIRECTORY',
        help=_("""The directory in which to put the prepared disk.  It must
        not exist, unless --force is given."""))
    image_group.add_argument(
        '-n', '--vm-name',
        default=None, metavar='NAME',
        help=_("""File name of the prepared disk inside the output directory.
        Defaults to the source file name with the format as extension."""))
    image_group.add_argument(
        '-f', '--format',
        default=None, choices=('qcow2', 'raw'),
        help=_('Format of the prepared disk (default: qcow2)'))
    image_group.add_argument(
        '--disk-image',
        default=None, action='store_true',
        help=_("""The source is a disk image rather than an installation
        medium, so it is converted into the primary disk."""))
    image_group.add_argument(
        '--use-backing-file',
        default=None, action='store_true',
        help=_("""The virtual machine references the source image as a
        backing file instead of owning a converted copy of it."""))
    image_group.add_argument(
        '--force',
        default=None, action='store_true',
        help=_('Delete the output directory if it already exists'))
    image_group.add_argument(
        '--qemu-img',
        default=None, metavar='PATH',
        help=_('Path to the qemu-img executable'))
    # State machine options.
    state_group = parser.add_argument_group(
        _('State machine options'),
        _("""Options for controlling the internal state machine.  These
        options are mutually exclusive.""")).add_mutually_exclusive_group()
    state_group.add_argument(
        '-u', '--until',
        default=None, metavar='STEP',
        help=_("""Run the state machine until the given STEP, non-inclusively.
        STEP can be a name or number."""))
    state_group.add_argument(
        '-t', '--thru',
        default=None, metavar='STEP',
        help=_("""Run the state machine through the given STEP, inclusively.
        STEP can be a name or number."""))
    # Perform the actual argument parsing.
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(message)s')
    if args.source is None and args.config is None:
        parser.error('source image is required')
    # --until and --thru can take an int.
    with suppress(ValueError, TypeError):
        args.thru = int(args.thru)
    with suppress(ValueError, TypeError):
        args.until = int(args.until)
    return args


def load_config(args):
    overrides = dict(
        source=args.source,
        output_dir=args.output_dir,
        vm_name=args.vm_name,
        format=args.format,
        disk_image=args.disk_image,
        use_backing_file=args.use_backing_file,
        force=args.force,
        )
    if args.config is None:
        config = parse('', **overrides)
    else:
        with open(args.config, 'r', encoding='utf-8') as fp:
            config = parse(fp, **overrides)
    if config.source is None:
        raise ConfigurationError('source image is required')
    return config


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    args = parseargs(argv)
    try:
        config = load_config(args)
        driver = QemuDriver(args.qemu_img)
    except ConfigurationError as error:
        _logger.error('Invalid configuration: {}'.format(error))
        return 1
    except DependencyError as error:
        _logger.error('Required dependency {} seems to be missing. {}'.format(
            error.name, error.additional_info))
        return 1
    except OSError as error:
        _logger.error('Cannot read configuration: {}'.format(error))
        return 1
    state_machine = DiskBuilder(config, driver)
    try:
        # Run the state machine, either to the end or thru/until the named
        # state.
        with state_machine:
            if args.thru is not None:
                state_machine.run_thru(args.thru)
            elif args.until is not None:
                state_machine.run_until(args.until)
            else:
                list(state_machine)
    except Exception:
        _logger.exception('Crash in state machine')
        return 1
    except KeyboardInterrupt:
        _logger.error('Build interrupted')
        return 1
    # It's possible that the state machine didn't crash, but it still didn't
    # complete successfully.  For example, if `qemu-img convert` failed.
    if state_machine.exitcode != 0:
        return state_machine.exitcode
    if state_machine.disk_path is not None:
        print(state_machine.disk_path)
    return 0


if __name__ == '__main__':                          # pragma: nocover
    sys.exit(main())
