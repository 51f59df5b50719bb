# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Threads that hand the exception of their target back to the caller of join
"""

from threading import Thread

from logger import configure_logger

LOGGER = configure_logger(__name__)


class PropagatingThread(Thread):
    def run(self):
        self.exc = None
        self.ret = None
        try:
            self.ret = self._target(
                *self._args,
                **self._kwargs
            )
        except BaseException as e:  # pylint: disable=broad-except
            self.exc = e

    def join(self, timeout=None):
        super().join(timeout)
        if self.exc:
            raise self.exc
        return self.ret


def start_thread(target, *args, name=None, **kwargs):
    thread = PropagatingThread(
        target=target,
        args=args,
        kwargs=kwargs,
        name=name,
    )
    thread.start()
    return thread


def join_all(threads):
    """
    Waits for every thread to finish, then raises the first failure.

    All threads are joined before raising, so no work is left running
    in the background when the caller aborts.
    """
    errors = join_all_best_effort(threads)
    if errors:
        _, first_error = errors[0]
        raise first_error
    return [thread.ret for thread in threads]


def join_all_best_effort(threads):
    """
    Waits for every thread to finish and returns the failures as a list of
    (thread name, exception) tuples. Failures do not stop the other joins.
    """
    errors = []
    for thread in threads:
        try:
            thread.join()
        except Exception as error:  # pylint: disable=broad-except
            LOGGER.error("%s - failed: %s", thread.name, error)
            errors.append((thread.name, error))
    return errors
