"""Command Registry & Pool"""

import contextlib
import itertools
import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional, Type

from .command import Command

logger = logging.getLogger(__name__)

CommandFactory = Callable[[], Command]


class CommandRegistry:
    """
    Maps command names to factories and recycles command instances.

    acquire() hands out a pooled instance (or a new one), release() resets
    it and returns it to the pool. Every method is safe to call from
    several threads.
    """

    def __init__(self):
        self._factories: Dict[str, CommandFactory] = {}
        self._pools: Dict[str, List[Command]] = {}
        # Registration each name's pool belongs to
        self._generations: Dict[str, int] = {}
        self._counter = itertools.count(1)
        self._sorted: Optional[List[str]] = None
        self._lock = threading.Lock()

    def register(self, name: str, factory: CommandFactory) -> None:
        """Register factory under name; a later registration replaces an earlier one"""
        with self._lock:
            if name in self._factories:
                logger.debug("replacing command %s", name)
            self._factories[name] = factory
            self._pools[name] = []
            self._generations[name] = next(self._counter)
            self._sorted = None

    def register_command(self, cls: Type[Command]) -> None:
        """Register a Command subclass under its own name"""
        self.register(cls.name, cls)

    def deregister(self, name: str) -> None:
        with self._lock:
            self._factories.pop(name, None)
            self._pools.pop(name, None)
            self._generations.pop(name, None)
            self._sorted = None

    def acquire(self, name: str) -> Optional[Command]:
        """Return a ready-to-use instance of name, or None if it is not registered"""
        with self._lock:
            factory = self._factories.get(name)
            if factory is None:
                return None
            pool = self._pools[name]
            if pool:
                return pool.pop()
            generation = self._generations[name]
        cmd = factory()
        cmd._registration = (name, generation)
        return cmd

    def release(self, cmd: Command) -> None:
        """Reset cmd and make it available to the next acquire"""
        cmd.reset()
        with self._lock:
            name, generation = getattr(cmd, "_registration", (cmd.name, None))
            # Dropped if its name was deregistered or re-registered while it was in use
            if generation is not None and self._generations.get(name) == generation:
                self._pools[name].append(cmd)

    @contextlib.contextmanager
    def borrow(self, name: str) -> Iterator[Optional[Command]]:
        """acquire() for the duration of a with block, then release()"""
        cmd = self.acquire(name)
        try:
            yield cmd
        finally:
            if cmd is not None:
                self.release(cmd)

    def sorted_names(self) -> List[str]:
        """Registered names in ascending order"""
        with self._lock:
            if self._sorted is None:
                self._sorted = sorted(self._factories)
            return list(self._sorted)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._factories
