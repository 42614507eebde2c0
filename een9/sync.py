"""Named locks, a condition "bed" and guards usable as context managers."""

import logging
import threading

_log = logging.getLogger(__name__)


class RwLock:
    """A readers-writer lock; traces lock operations when given a name."""

    def __init__(self, name=None):
        self.name = name
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @property
    def readers(self):
        """Number of current readers."""
        return self._readers

    @property
    def write_locked(self):
        """Whether a writer holds the lock."""
        return self._writer

    def _trace(self, action, who):
        if self.name:
            _log.debug("Rwl %s %s by %s", self.name, action, who)

    def read_lock(self, who=""):
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        self._trace("read-locked", who)

    def write_lock(self, who=""):
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        self._trace("write-locked", who)

    def read_unlock(self, who=""):
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("rwlock is not read-locked")
            self._readers -= 1
            self._trace("unlocked", who)
            if self._readers == 0:
                self._cond.notify_all()

    def write_unlock(self, who=""):
        with self._cond:
            if not self._writer:
                raise RuntimeError("rwlock is not write-locked")
            self._writer = False
            self._trace("unlocked", who)
            self._cond.notify_all()


class Mutex:
    """A mutex that remembers whether it is held; traces when given a name."""

    def __init__(self, name=None):
        self.name = name
        self._lock = self._make_lock()
        self._locked = False

    @staticmethod
    def _make_lock():
        return threading.Lock()

    @property
    def locked(self):
        """Whether the mutex is currently held."""
        return self._locked

    def _trace(self, action, who):
        if self.name:
            _log.debug("Mut %s %s (%s)", self.name, action, who)

    def lock(self, who=""):
        self._lock.acquire()
        self._locked = True
        self._trace("locked", who)

    def unlock(self, who=""):
        if not self._locked:
            raise RuntimeError("mutex is not locked")
        self._locked = False
        self._trace("unlocked", who)
        self._lock.release()


class CondVarBed(Mutex):
    """A mutex with a condition variable on which threads can sleep."""

    def __init__(self, name=None):
        super().__init__(name)
        self._cond = threading.Condition(self._lock)

    @staticmethod
    def _make_lock():
        # Reentrant so that waking sleepers works whether or not the caller holds the mutex.
        return threading.RLock()

    def sleep(self, who=""):
        """Release the held mutex, wait for a wake-up, and hold it again."""
        if not self._locked:
            raise RuntimeError("sleeping requires the mutex to be locked")
        self._locked = False
        self._trace("unlocked, sleeping", who)
        self._cond.wait()
        self._locked = True
        self._trace("locked, woke up", who)

    def din_don(self):
        """Wake one sleeping thread."""
        with self._cond:
            self._cond.notify()

    def wake_them_all(self):
        """Wake every sleeping thread."""
        with self._cond:
            self._cond.notify_all()


class _Guard:
    def __init__(self, release, who):
        self._release = release
        self._who = who
        self._released = False

    def unlock(self):
        """Release early; releasing twice is an error."""
        if self._released:
            raise RuntimeError("guard already released")
        self._released = True
        self._release(self._who)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        if not self._released:
            self._released = True
            self._release(self._who)


class MutexLockGuard(_Guard):
    """Holds a Mutex from construction until exit or an explicit unlock."""

    def __init__(self, mutex, who=""):
        mutex.lock(who)
        super().__init__(mutex.unlock, who)

    def unlock(self):
        super().unlock()

    def __enter__(self):
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)


class RwlockReadGuard(_Guard):
    """Holds a read lock from construction until exit or an explicit unlock."""

    def __init__(self, lock, who=""):
        lock.read_lock(who)
        super().__init__(lock.read_unlock, who)

    def unlock(self):
        super().unlock()

    def __enter__(self):
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)


class RwlockWriteGuard(_Guard):
    """Holds a write lock from construction until exit or an explicit unlock."""

    def __init__(self, lock, who=""):
        lock.write_lock(who)
        super().__init__(lock.write_unlock, who)

    def unlock(self):
        super().unlock()

    def __enter__(self):
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)