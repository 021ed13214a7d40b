# -*- coding: utf-8 -*-
"""Scratch arrays reused across blocks of columns.

A :class:`WorkArrays` arena holds every intermediate array needed to
process one block of columns. It is sized once for the largest block and
reused for all blocks; a smaller (residual) block works on a view of the
first columns of each array:

    >>> work = gas_optics.create_work_arrays(ncol=1024, nlay=60)
    >>> residual = work.view(ncol=17)  # shares memory with ``work``

An arena must never be used by two concurrent calls. The
:class:`WorkArrayPool` hands out one arena per concurrent task.
"""
import contextlib
import logging
import queue
import threading

import numpy as np


__all__ = [
    'WorkArrays',
    'WorkArrayPool',
]

logger = logging.getLogger(__name__)


class WorkArrays:
    """Named scratch arrays for a fixed maximum number of columns."""
    def __init__(self, ncol, dtype=np.float64):
        """
        Parameters:
            ncol (int): Maximum number of columns per block.
            dtype (numpy.dtype): Default floating point precision.
        """
        self.ncol = ncol
        self.dtype = np.dtype(dtype)
        self._arrays = {}
        self._components = {}

    def __repr__(self):
        return (f'<WorkArrays(ncol: {self.ncol}, arrays: {len(self._arrays)}, '
                f'nbytes: {self.nbytes}) object at {id(self)}>')

    def __getitem__(self, name):
        if name in self._arrays:
            return self._arrays[name][0]
        return self._components[name]

    def __contains__(self, name):
        return name in self._arrays or name in self._components

    @property
    def nbytes(self):
        """Memory held by all arrays (views included) [bytes]."""
        return sum(array.nbytes for array, _ in self._arrays.values())

    def allocate(self, name, shape, col_axis=0, dtype=None):
        """Allocate a named array.

        Parameters:
            name (str): Array name.
            shape (tuple[int]): Array shape.
            col_axis (int): Axis along which the columns are stored.
            dtype (numpy.dtype): Data type. Defaults to the arena precision.

        Returns:
            ndarray: The allocated array.
        """
        if shape[col_axis] != self.ncol:
            raise ValueError(
                f'Work array "{name}" has {shape[col_axis]} columns '
                f'along axis {col_axis} but the arena holds {self.ncol}.'
            )

        array = np.zeros(shape, dtype=self.dtype if dtype is None else dtype)
        self._arrays[name] = (array, col_axis)

        logger.debug(f'Allocated work array "{name}" {shape}.')

        return array

    def add_component(self, name, component):
        """Register a :class:`rrtmgpy.component.Component` holding columns.

        Parameters:
            name (str): Name of the component.
            component (Component): Container with a ``col`` dimension.
        """
        ncol = component.coords['col'].size
        if ncol != self.ncol:
            raise ValueError(
                f'Component "{name}" holds {ncol} columns '
                f'but the arena holds {self.ncol}.'
            )
        self._components[name] = component

        return component

    def view(self, ncol):
        """Return an arena sharing the memory of the first ``ncol`` columns.

        Parameters:
            ncol (int): Number of columns of the view.

        Returns:
            WorkArrays: Arena view (``self`` if ``ncol`` is the full size).
        """
        if ncol == self.ncol:
            return self

        if not 0 < ncol < self.ncol:
            raise ValueError(
                f'Can not create a view of {ncol} columns on an arena '
                f'holding {self.ncol} columns.'
            )

        view = WorkArrays(ncol, dtype=self.dtype)
        for name, (array, col_axis) in self._arrays.items():
            index = [slice(None)] * array.ndim
            index[col_axis] = slice(0, ncol)
            view._arrays[name] = (array[tuple(index)], col_axis)

        for name, component in self._components.items():
            view._components[name] = component.subset(0, ncol)

        return view

    def reset(self):
        """Set all arrays to zero."""
        for array, _ in self._arrays.values():
            array[...] = 0

        for component in self._components.values():
            for _, data in component.data_vars.values():
                if data is not None:
                    data[...] = 0


class WorkArrayPool:
    """Thread-safe pool of arenas.

    Arenas are created lazily by ``factory`` whenever all existing ones
    are in use, i.e. the pool grows to the number of concurrent tasks.
    """
    def __init__(self, factory):
        """
        Parameters:
            factory (callable): Function without arguments that returns
                a new :class:`WorkArrays` instance.
        """
        self._factory = factory
        self._free = queue.LifoQueue()
        self._lock = threading.Lock()
        self.size = 0

    @contextlib.contextmanager
    def acquire(self):
        """Borrow an arena for the duration of a ``with`` block."""
        try:
            work = self._free.get_nowait()
        except queue.Empty:
            work = self._factory()
            with self._lock:
                self.size += 1
            logger.debug(f'Created arena #{self.size}: {work!r}.')

        try:
            yield work
        finally:
            self._free.put(work)
