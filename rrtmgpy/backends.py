# -*- coding: utf-8 -*-
"""Execution backends running a task for every block of columns.

A task is a callable ``task(start, stop, work)`` that processes the
columns ``start:stop`` using the work arrays ``work``. Blocks are
independent and write into disjoint column ranges, therefore they can be
processed in any order.

    >>> backend = ThreadPoolBackend(max_workers=4)
    >>> backend.run(task, blocks=[(0, 1024), (1024, 1500)], pool=pool)

"""
import abc
import concurrent.futures
import logging


__all__ = [
    'Backend',
    'SerialBackend',
    'ThreadPoolBackend',
]

logger = logging.getLogger(__name__)


class Backend(metaclass=abc.ABCMeta):
    """Base class for all execution backends."""
    @abc.abstractmethod
    def run(self, task, blocks, pool):
        """Run a task for every block.

        Parameters:
            task (callable): Function ``task(start, stop, work)``.
            blocks (list[tuple[int, int]]): Start and stop index of every
                block of columns.
            pool (WorkArrayPool): Pool providing work arrays.
        """

    def __repr__(self):
        return f'{self.__class__.__name__}()'


class SerialBackend(Backend):
    """Process all blocks one after another reusing a single arena."""
    def run(self, task, blocks, pool):
        with pool.acquire() as work:
            for start, stop in blocks:
                logger.debug(f'Processing columns {start}:{stop}.')
                task(start, stop, work.view(stop - start))


class ThreadPoolBackend(Backend):
    """Process blocks concurrently in a pool of threads.

    Every running task holds its own arena. NumPy releases the global
    interpreter lock in most array operations so that blocks overlap.
    """
    def __init__(self, max_workers=None):
        """
        Parameters:
            max_workers (int): Maximum number of threads. If ``None``,
                the default of :class:`concurrent.futures.ThreadPoolExecutor`
                is used.
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError(
                f'Number of workers has to be positive but is {max_workers}.')

        self.max_workers = max_workers

    def __repr__(self):
        return f'{self.__class__.__name__}(max_workers={self.max_workers})'

    def run(self, task, blocks, pool):
        def job(start, stop):
            with pool.acquire() as work:
                logger.debug(f'Processing columns {start}:{stop}.')
                task(start, stop, work.view(stop - start))

        with concurrent.futures.ThreadPoolExecutor(self.max_workers) as ex:
            futures = [ex.submit(job, start, stop) for start, stop in blocks]

            # Re-raise the first error of any block.
            for future in futures:
                future.result()
