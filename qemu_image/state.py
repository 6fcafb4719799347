"""Build state and the step sequencing state machine."""

import attr

from collections import deque
from contextlib import ExitStack
from enum import Enum
from logging import getLogger
from threading import Event


log = getLogger('qemu-image')


class ExpectedError(Exception):
    """An exception that is expected to happen, and handled gracefully."""


class Action(Enum):
    continue_ = 'continue'
    halt = 'halt'


@attr.s
class BuildState:
    """Information passed between the steps of a build.

    The inputs are mandatory, so a build can never start with any of them
    missing.  The outputs are filled in by the steps.
    """
    # Inputs.
    config = attr.ib()
    driver = attr.ib()
    iso_path = attr.ib()
    ui = attr.ib()
    # Outputs.
    disk_filename = attr.ib(default=None)
    error = attr.ib(default=None)
    # Set by the state machine.
    halted = attr.ib(default=False)
    cancelled = attr.ib(default=False)


class State:
    def __init__(self, steps, build, cancel=None):
        # Variables which manage state transitions.
        self._next = deque(steps)
        self._debug_step = 0
        self.build = build
        self.cancel = Event() if cancel is None else cancel
        # Manage all resources so they get cleaned up whenever the state
        # machine exits for any reason.  Step cleanups live here too.
        self.resources = ExitStack()

    def close(self):
        # Transfer all resources to a new ExitStack, and release them from
        # there.  That way, if .close() gets called more than once, only the
        # first call will release the resources, while subsequent ones will
        # no-op.
        self.resources.pop_all().close()

    def __enter__(self):
        return self

    def __exit__(self, *exception):
        self.close()
        # Don't suppress any exceptions.
        return False

    def __del__(self):
        self.close()

    def __iter__(self):
        return self

    def _pop(self):
        step = self._next.popleft()
        name = getattr(step, 'name', type(step).__name__)
        log.debug('-> [{:2}] {}'.format(self._debug_step, name))
        return step, name

    def _run_step(self, step):
        if self.cancel.is_set():
            log.debug('build cancelled before step: {}'.format(
                self._debug_step))
            self.build.cancelled = True
            self._next.clear()
            return
        # The cleanup is registered first so that a step which halts, or
        # crashes, still gets to clean up after itself.
        self.resources.callback(step.cleanup, self.build)
        action = step.run(self.cancel, self.build)
        if action is Action.halt:
            self.build.halted = True
            self._next.clear()

    def _interrupted(self):
        # Step cleanups treat an interrupted build as a cancelled one.
        log.debug('build interrupted in step: {}'.format(self._debug_step))
        self.build.cancelled = True
        self._next.clear()
        self.close()

    def __next__(self):
        try:
            step, name = self._pop()
        except IndexError:
            # Do not chain the exception.
            self.close()
            raise StopIteration from None
        try:
            self._run_step(step)
        except Exception:
            log.exception(
                'uncaught exception in state machine step: [{}] {}'.format(
                    self._debug_step, name))
            self.build.halted = True
            self.close()
            raise
        except KeyboardInterrupt:
            self._interrupted()
            raise
        self._debug_step += 1

    @property
    def done(self):
        return len(self._next) == 0

    def run_thru(self, stop_after):
        """Partially run the state machine.

        Note that any resources maintained by this state machine are
        *not* automatically cleaned up when .run_thru() completes,
        unless an exception occurs, because execution can be continued.
        Call .close() explicitly to release the resources.

        :param stop_after: Name or step number of the step to run the state
            machine through.  In other words, the state machine runs until the
            specified step completes.  Step numbers begin at 0.
        """
        while True:
            try:
                step, name = self._pop()
            except IndexError:
                # We're done.
                break
            try:
                self._run_step(step)
            except Exception:
                self.build.halted = True
                self.close()
                raise
            except KeyboardInterrupt:
                self._interrupted()
                raise
            try:
                if name == stop_after or self._debug_step == stop_after:
                    break
            finally:
                self._debug_step += 1

    def run_until(self, stop_before):
        """Partially run the state machine.

        Note that any resources maintained by this state machine are
        *not* automatically cleaned up when .run_until() completes,
        unless an exception occurs, because execution can be continued.
        Call .close() explicitly to release the resources.

        :param stop_before: Name or step number of the step that the state
            machine is run until.  Unlike `run_thru()` the step is not run.
            Step numbers begin at 0.
        """
        while True:
            try:
                step, name = self._pop()
            except IndexError:
                # We're done.
                break
            if name == stop_before or self._debug_step == stop_before:
                # Stop executing, but not before we push the last step back
                # onto the deque.  Otherwise, resuming the state machine would
                # skip this step.
                self._next.appendleft(step)
                break
            try:
                self._run_step(step)
            except Exception:
                self.build.halted = True
                self.close()
                raise
            except KeyboardInterrupt:
                self._interrupted()
                raise
            self._debug_step += 1
