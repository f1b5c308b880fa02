"""Community — the single repository injected into every service.

Owns the in-memory core (locker space, open custody index, OTP
authenticator, custody id counter) plus the ledger and, when storage is
persistent, the SQLite engine behind them.

Persistence model: the database is the source of truth and several
processes (staff terminals, the kiosk) may share it.

- **Units of work**: :meth:`Community.transaction` takes the SQLite write
  lock with ``BEGIN IMMEDIATE``, reloads the open state inside that
  transaction, runs the body, then writes the snapshot and commits. The
  ledger row of a retrieval goes into the same transaction, so the closed
  record and the released locker are stored together or not at all.
- **Reads**: services call :meth:`Community.refresh` first so they see
  what other processes committed.
- **Failures**: any SQLAlchemy error inside a unit of work rolls back and
  surfaces as :class:`PersistenceError`. The next unit of work reloads, so
  in-memory leftovers of a failed one are never stored.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError

from lockerctl.domain.custody import OpenCustodyIndex
from lockerctl.domain.errors import PersistenceError
from lockerctl.domain.ids import SequenceCounter
from lockerctl.domain.ledger import CustodyLedger, Ledger
from lockerctl.domain.otp import OTPAuthenticator
from lockerctl.domain.space import CommunityLockerSpace
from lockerctl.infrastructure.database.engine import init_database
from lockerctl.infrastructure.database.snapshot import SnapshotStore
from lockerctl.infrastructure.ledger import SqlCustodyLedger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Connection, Engine

    from lockerctl.config.settings import LockerSettings
    from lockerctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class Community:
    """Repository for one community's lockers and packages."""

    def __init__(self, settings: LockerSettings) -> None:
        self.settings = settings
        self.plugins: PluginManager | None = None

        self._engine: Engine | None = None
        self._snapshots: SnapshotStore | None = None
        self._persist_lock = threading.RLock()
        self._reset_state()

        if settings.storage.persist:
            self._engine = init_database(
                settings.site_root,
                db_dir=settings.storage.db_dir,
                db_name=settings.storage.db_name,
            )
            self.ledger: Ledger = SqlCustodyLedger(self._engine)
            self._snapshots = SnapshotStore(self._engine)
            self.refresh()
        else:
            self.ledger = CustodyLedger()

    @property
    def root(self) -> Path:
        return self.settings.site_root

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @property
    def persistent(self) -> bool:
        return self._snapshots is not None

    def init_plugins(self, *, discover: bool = True) -> PluginManager:
        """Create the plugin manager (idempotent).

        With *discover*, entry-point plugins and local plugins from
        ``{state_dir}/plugins`` are loaded.
        """
        if self.plugins is None:
            from lockerctl.plugins.manager import PluginManager

            self.plugins = PluginManager()
            if discover:
                loaded = self.plugins.discover_and_load(
                    local_dir=self.settings.state_dir / "plugins"
                )
                logger.debug("Plugins loaded: %s", loaded)
        return self.plugins

    def refresh(self) -> None:
        """Reload the open state from the database. No-op in memory."""
        if self._engine is None:
            return
        with self._persist_lock, _storage_errors():
            with self._engine.connect() as conn:
                self._load(conn)

    @contextmanager
    def transaction(self) -> Iterator[Community]:
        """Run a unit of work against current state and store it atomically.

        In-memory communities yield immediately; operations stay fully
        concurrent. Persistent communities hold the database write lock for
        the whole unit, so no other process can commit in between the
        reload and the save.
        """
        if self._engine is None or self._snapshots is None:
            yield self
            return
        assert isinstance(self.ledger, SqlCustodyLedger)
        with self._persist_lock, _storage_errors():
            with self._engine.connect() as conn:
                conn = conn.execution_options(sqlite_begin="IMMEDIATE")
                with conn.begin():
                    self._load(conn)
                    with self.ledger.bind(conn):
                        yield self
                    self._snapshots.save(self.space, self.custody, self.custody_ids, conn=conn)

    def next_custody_id(self) -> int:
        return self.custody_ids.next()

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Call *hook_name* on all registered plugins. No-op without plugins."""
        if self.plugins is None:
            return
        getattr(self.plugins.hook, hook_name)(**payload)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()

    def _reset_state(self) -> None:
        self.space = CommunityLockerSpace(self.settings.community.id)
        self.custody = OpenCustodyIndex()
        self.custody_ids = SequenceCounter()
        self.otp = OTPAuthenticator(max_attempts=self.settings.otp.max_issue_attempts)

    def _load(self, conn: Connection) -> None:
        assert self._snapshots is not None
        space = CommunityLockerSpace(self.settings.community.id)
        custody = OpenCustodyIndex()
        custody_ids = SequenceCounter()
        otp = OTPAuthenticator(max_attempts=self.settings.otp.max_issue_attempts)
        self._snapshots.load(space, custody, otp, custody_ids, conn=conn)
        # Swap only fully loaded state into view.
        self.space, self.custody, self.custody_ids, self.otp = space, custody, custody_ids, otp


@contextmanager
def _storage_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning("Unit of work rolled back: %s", exc)
        cause = getattr(exc, "orig", None) or exc
        msg = f"Could not store the change: {cause}"
        raise PersistenceError(msg) from exc
