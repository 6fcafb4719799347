"""Create the directory the build writes its artifacts to."""

import os
import shutil

from qemu_image.config import ConfigurationError
from qemu_image.state import Action


class StepPrepareOutputDir:
    name = 'prepare_output_dir'

    def __init__(self):
        self._created = False

    def run(self, cancel, build):
        config = build.config
        if os.path.exists(config.output_dir):
            if not os.path.isdir(config.output_dir):
                return self._fail(
                    build, ConfigurationError(
                        'Output directory is not a directory: {}'.format(
                            config.output_dir)))
            if not config.force:
                return self._fail(
                    build, ConfigurationError(
                        'Output directory exists: {} '
                        '(use --force to overwrite)'.format(
                            config.output_dir)))
            build.ui.say('Deleting previous output directory...')
            shutil.rmtree(config.output_dir)
        os.makedirs(config.output_dir)
        # Only a directory we created may be removed on failure.
        self._created = True
        return Action.continue_

    def _fail(self, build, error):
        build.error = error
        build.ui.error(str(error))
        return Action.halt

    def cleanup(self, build):
        if not self._created:
            return
        if build.halted or build.cancelled:
            build.ui.say('Deleting output directory...')
            shutil.rmtree(build.config.output_dir, ignore_errors=True)
