"""Assemble the build steps into a runnable state machine."""

import os

from qemu_image.copy_disk import StepCopyDisk, destination_path
from qemu_image.output_dir import StepPrepareOutputDir
from qemu_image.state import BuildState, State
from qemu_image.ui import LoggingUi


def build_steps():
    return [
        StepPrepareOutputDir(),
        StepCopyDisk(),
        ]


class DiskBuilder(State):
    """Prepare the primary disk of a QEMU virtual machine."""

    def __init__(self, config, driver, ui=None, cancel=None):
        build = BuildState(
            config=config,
            driver=driver,
            iso_path=config.source,
            ui=LoggingUi() if ui is None else ui,
            )
        super().__init__(build_steps(), build, cancel)

    @property
    def exitcode(self):
        return 1 if self.build.halted or self.build.cancelled else 0

    @property
    def disk_path(self):
        """The prepared disk, or None if the build didn't produce one."""
        if self.exitcode != 0:
            return None
        path = destination_path(self.build.config)
        return path if os.path.exists(path) else None
