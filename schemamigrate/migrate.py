"""Run migrations from a source driver against a database driver."""

from __future__ import annotations

import queue
import sys
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, Optional, Protocol, TextIO, Union
from urllib.parse import urlsplit

from . import planning
from .errors import (
    DirtyError,
    InvalidVersionError,
    LockedError,
    LockTimeoutError,
    NilVersionError,
    NoChangeError,
)
from .migration import Migration
from .source.driver import Driver as SourceDriver
from .source.driver import open_source
from .util import MultiError

NIL_VERSION = -1

# How many migrations are read ahead of the one being run.
DEFAULT_PREFETCH_MIGRATIONS = 10

# Seconds a database driver has to acquire its lock.
DEFAULT_LOCK_TIMEOUT = 15.0

_DONE = object()
_PUT_INTERVAL = 0.05


class DatabaseDriver(Protocol):
    """What the runner needs from a database driver.

    ``version`` returns the current version (-1 when none) and the dirty flag.
    """

    def lock(self) -> None: ...

    def unlock(self) -> None: ...

    def version(self) -> tuple[int, bool]: ...

    def set_version(self, version: int, dirty: bool) -> None: ...

    def run(self, body) -> None: ...

    def drop(self) -> None: ...

    def close(self) -> None: ...


class Logger:
    """Writes progress messages to a text stream (standard error by default)."""

    def __init__(self, stream: Optional[TextIO] = None, verbose: bool = False) -> None:
        self.stream = stream
        self.verbose = verbose

    def log(self, message: str) -> None:
        """Write ``message`` as it is."""
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(message)
        stream.flush()


def _scheme_from_url(url: str) -> str:
    if not url:
        raise ValueError("URL cannot be empty")
    scheme = urlsplit(url).scheme
    if not scheme:
        raise ValueError(f"no scheme in URL {url!r}")
    return scheme


class Migrate:
    """Moves a database between migration versions read from a source.

    Set ``graceful_stop`` to stop at the next safe point between migrations.
    """

    def __init__(
        self,
        source_name: str,
        source: SourceDriver,
        database_name: str,
        database: DatabaseDriver,
        *,
        log: Optional[Logger] = None,
        prefetch_migrations: Optional[int] = None,
        lock_timeout: Optional[float] = None,
    ) -> None:
        self.source_name = source_name
        self.source = source
        self.database_name = database_name
        self.database = database
        self.log = log
        self.graceful_stop = threading.Event()
        self.prefetch_migrations = (
            DEFAULT_PREFETCH_MIGRATIONS if prefetch_migrations is None else prefetch_migrations
        )
        self.lock_timeout = DEFAULT_LOCK_TIMEOUT if lock_timeout is None else lock_timeout
        self._is_locked_mu = threading.Lock()
        self._is_locked = False
        self._is_graceful_stop = False

    def __enter__(self) -> "Migrate":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the source and the database; raise MultiError if either fails."""
        self._log_verbose("Closing source and database\n")
        failures: list[BaseException] = []
        for closer in (self.source.close, self.database.close):
            try:
                closer()
            except Exception as err:
                failures.append(err)
        if failures:
            raise MultiError(*failures)

    def migrate(self, version: int) -> None:
        """Migrate up or down to ``version``."""
        if version < 0:
            raise ValueError(f"version must be >= 0, got {version}")
        with self._locked():
            current = self._clean_version()
            self._run_plan(planning.read(self.source, current, version, self._stop))

    def steps(self, n: int) -> None:
        """Apply ``n`` up migrations if positive, ``-n`` down migrations if negative."""
        if n == 0:
            raise NoChangeError()
        with self._locked():
            current = self._clean_version()
            if n > 0:
                plan = planning.read_up(self.source, current, n, self._stop)
            else:
                plan = planning.read_down(self.source, current, -n, self._stop)
            self._run_plan(plan)

    def up(self) -> None:
        """Apply all up migrations."""
        with self._locked():
            current = self._clean_version()
            self._run_plan(planning.read_up(self.source, current, -1, self._stop))

    def down(self) -> None:
        """Apply all down migrations."""
        with self._locked():
            current = self._clean_version()
            self._run_plan(planning.read_down(self.source, current, -1, self._stop))

    def drop(self) -> None:
        """Delete everything in the database."""
        with self._locked():
            self.database.drop()

    def run(self, *args: Migration) -> None:
        """Run the given migrations without checking them against the source."""
        if not args:
            raise NoChangeError()
        with self._locked():
            self._clean_version()
            self._run_plan(iter(args))

    def force(self, version: int) -> None:
        """Set ``version`` and clear the dirty flag without running anything."""
        if version < -1:
            raise InvalidVersionError()
        with self._locked():
            self.database.set_version(version, False)

    def version(self) -> tuple[int, bool]:
        """Return the current version and dirty flag.

        Raises NilVersionError when no migration has been applied.
        """
        current, dirty = self.database.version()
        if current == NIL_VERSION:
            raise NilVersionError()
        return current, dirty

    def _clean_version(self) -> int:
        current, dirty = self.database.version()
        if dirty:
            raise DirtyError(current)
        return current

    def _run_plan(self, plan: Iterator[Migration]) -> None:
        items: "queue.Queue[object]" = queue.Queue(maxsize=max(self.prefetch_migrations, 1))
        cancelled = threading.Event()

        def put(item: object) -> bool:
            while not cancelled.is_set():
                try:
                    items.put(item, timeout=_PUT_INTERVAL)
                    return True
                except queue.Full:
                    continue
            return False

        def produce() -> None:
            try:
                for migration in plan:
                    if self.prefetch_migrations > 0 and migration.body is not None:
                        self._log_verbose(f"Start buffering {migration.log_string()}\n")
                    else:
                        self._log_verbose(f"Scheduled {migration.log_string()}\n")
                    if not put(migration):
                        return
                    self._start_buffering(migration)
            except BaseException as err:
                put(err)
            put(_DONE)

        producer = threading.Thread(target=produce, daemon=True)
        producer.start()
        try:
            self._run_migrations(iter(items.get, _DONE))
        finally:
            cancelled.set()

    def _run_migrations(self, items: Iterable[object]) -> None:
        for item in items:
            if self._stop():
                return
            if isinstance(item, BaseException):
                raise item
            if not isinstance(item, Migration):
                raise TypeError(f"unknown type: {type(item).__name__} with value: {item!r}")
            migration = item

            self.database.set_version(migration.target_version, True)
            if migration.body is not None:
                self._log_verbose(f"Read and execute {migration.log_string()}\n")
                self.database.run(migration.buffered_body)
            self.database.set_version(migration.target_version, False)

            if self.log is not None:
                end_time = datetime.now()
                finished = migration.finished_reading or end_time
                started = migration.started_buffering or finished
                read_time = finished - started
                run_time = end_time - finished
                if self.log.verbose:
                    self._log(
                        f"Finished {migration.log_string()} "
                        f"(read {read_time}, ran {run_time})\n"
                    )
                else:
                    self._log(f"{migration.log_string()} ({read_time + run_time})\n")

    def _start_buffering(self, migration: Migration) -> None:
        def work() -> None:
            try:
                migration.buffer()
            except Exception as err:
                self._log_err(err)

        threading.Thread(target=work, daemon=True).start()

    def _stop(self) -> bool:
        if self._is_graceful_stop:
            return True
        if self.graceful_stop.is_set():
            self._is_graceful_stop = True
            return True
        return False

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self._lock()
        try:
            yield
        except BaseException as err:
            try:
                self._unlock()
            except Exception as unlock_err:
                raise MultiError(err, unlock_err) from err
            raise
        self._unlock()

    def _lock(self) -> None:
        with self._is_locked_mu:
            if self._is_locked:
                raise LockedError()
            outcome: "queue.SimpleQueue[Optional[BaseException]]" = queue.SimpleQueue()

            def attempt() -> None:
                try:
                    self.database.lock()
                except BaseException as err:
                    outcome.put(err)
                    return
                outcome.put(None)

            threading.Thread(target=attempt, daemon=True).start()
            try:
                result = outcome.get(timeout=self.lock_timeout)
            except queue.Empty:
                raise LockTimeoutError() from None
            if result is not None:
                raise result
            self._is_locked = True

    def _unlock(self) -> None:
        with self._is_locked_mu:
            self.database.unlock()
            self._is_locked = False

    def _log(self, message: str) -> None:
        if self.log is not None:
            self.log.log(message)

    def _log_verbose(self, message: str) -> None:
        if self.log is not None and self.log.verbose:
            self.log.log(message)

    def _log_err(self, err: BaseException) -> None:
        if self.log is not None:
            self.log.log(f"error: {err}")


def new_with_instance(
    source_name: str,
    source_instance: SourceDriver,
    database_name: str,
    database_instance: DatabaseDriver,
) -> Migrate:
    """Return a runner over an existing source and database.

    Closing the underlying clients stays the caller's job.
    """
    return Migrate(source_name, source_instance, database_name, database_instance)


def new_with_database_instance(
    source_url: str, database_name: str, database_instance: DatabaseDriver
) -> Migrate:
    """Return a runner opening the source from ``source_url`` and using an existing database."""
    source_name = _scheme_from_url(source_url)
    source = open_source(source_url)
    return Migrate(source_name, source, database_name, database_instance)


NumberOrNone = Union[int, None]