"""MySQL connection pool handle.

One `Database` is built per application in `create_app` and stored on
`app.extensions`; nothing here is a module global. Every query checks a
connection out of the pool for the duration of one statement and always
hands it back, whether the statement succeeded or not.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from contextlib import contextmanager
from importlib import resources
from typing import NamedTuple

import click
from flask import current_app
from mysql.connector import errors, pooling

from wishlist_api.exceptions import StoreError

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'wishlist_db'

# Lock wait timeout, deadlock, max_execution_time exceeded, and the
# client-side "can't connect" / "server gone away" / "lost connection" codes.
TRANSIENT_ERRNOS = {1205, 1213, 3024, 2002, 2003, 2006, 2013}

ACQUIRE_POLL_INTERVAL = 0.05


class ExecResult(NamedTuple):
    lastrowid: int | None
    rowcount: int


def is_transient(exc: errors.Error) -> bool:
    if isinstance(exc, (errors.PoolError, errors.InterfaceError, errors.OperationalError)):
        return True
    return getattr(exc, 'errno', None) in TRANSIENT_ERRNOS


def translate_error(exc: errors.Error) -> StoreError:
    """Map a mysql-connector error onto the store taxonomy."""
    if is_transient(exc):
        return StoreError('Database temporarily unavailable', transient=True)
    return StoreError('Database error')


class Database:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        pool_name: str = 'wishlist_pool',
        pool_size: int = 5,
        connect_timeout: int = 10,
        acquire_timeout: float = 5.0,
        statement_timeout_ms: int = 5000,
        connect_retries: int = 5,
        connect_backoff: float = 1.0,
        drain_timeout: float = 10.0,
    ):
        self.connect_args = {
            'host': host,
            'port': port,
            'user': user,
            'password': password,
            'database': database,
            'connection_timeout': connect_timeout,
            'autocommit': False,
        }
        self.pool_name = pool_name
        self.pool_size = pool_size
        self.acquire_timeout = acquire_timeout
        self.statement_timeout_ms = statement_timeout_ms
        self.connect_retries = max(1, connect_retries)
        self.connect_backoff = connect_backoff
        self.drain_timeout = drain_timeout

        self._pool: pooling.MySQLConnectionPool | None = None
        self._in_flight = 0
        self._closing = False
        self._cond = threading.Condition()

    @classmethod
    def from_config(cls, config) -> 'Database':
        return cls(
            host=config['DB_HOST'],
            port=config['DB_PORT'],
            user=config['DB_USER'],
            password=config['DB_PASSWORD'],
            database=config['DB_NAME'],
            pool_name=config['DB_POOL_NAME'],
            pool_size=config['DB_POOL_SIZE'],
            connect_timeout=config['DB_CONNECT_TIMEOUT'],
            acquire_timeout=config['DB_ACQUIRE_TIMEOUT'],
            statement_timeout_ms=config['DB_STATEMENT_TIMEOUT_MS'],
            connect_retries=config['DB_CONNECT_RETRIES'],
            connect_backoff=config['DB_CONNECT_BACKOFF'],
            drain_timeout=config['DB_DRAIN_TIMEOUT'],
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None and not self._closing

    # ── lifecycle ────────────────────────────────────────────────

    def open(self) -> 'Database':
        """Create the pool and verify it, retrying with exponential backoff."""
        delay = self.connect_backoff
        for attempt in range(1, self.connect_retries + 1):
            try:
                self._pool = pooling.MySQLConnectionPool(
                    pool_name=self.pool_name,
                    pool_size=self.pool_size,
                    pool_reset_session=True,
                    **self.connect_args,
                )
                self._closing = False
                self.ping()
                logger.info(
                    'Database pool %s ready (%d connections to %s:%s/%s)',
                    self.pool_name, self.pool_size,
                    self.connect_args['host'], self.connect_args['port'], self.connect_args['database'],
                )
                return self
            except (errors.Error, StoreError) as e:
                # the pool opened pool_size connections before the ping failed
                pool, self._pool = self._pool, None
                if pool is not None:
                    self._discard(pool)
                if attempt >= self.connect_retries:
                    logger.error('Database unreachable after %d attempts: %s', attempt, e)
                    if isinstance(e, StoreError):
                        raise
                    raise translate_error(e) from e
                logger.warning(
                    'Database not ready (attempt %d/%d): %s; retrying in %.1fs',
                    attempt, self.connect_retries, e, delay,
                )
                time.sleep(delay)
                delay *= 2
        return self

    def close(self) -> None:
        """Stop new checkouts, wait for in-flight statements, close idle connections."""
        with self._cond:
            if self._pool is None:
                return
            self._closing = True
            drained = self._cond.wait_for(lambda: self._in_flight == 0, timeout=self.drain_timeout)
            if not drained:
                logger.warning('Closing pool with %d operations still in flight', self._in_flight)
            pool, self._pool = self._pool, None

        removed = self._discard(pool)
        logger.info('Database pool %s closed (%d connections)', self.pool_name, removed)

    @staticmethod
    def _discard(pool) -> int:
        """Close every idle connection held by `pool`."""
        try:
            return pool._remove_connections()
        except errors.Error as e:
            logger.warning('Failed to close pool connections: %s', e)
            return 0

    def init_app(self, app) -> None:
        app.extensions[EXTENSION_KEY] = self
        app.cli.add_command(init_db_command)

    # ── checkout ─────────────────────────────────────────────────

    def _enter(self) -> None:
        with self._cond:
            if not self.is_open:
                raise StoreError('Database pool is not open', transient=True)
            self._in_flight += 1

    def _leave(self) -> None:
        with self._cond:
            self._in_flight -= 1
            self._cond.notify_all()

    def _checkout(self):
        # get_connection() fails immediately when the pool is exhausted,
        # so wait for a free slot up to acquire_timeout.
        deadline = time.monotonic() + self.acquire_timeout
        while True:
            try:
                cnx = self._pool.get_connection()
                break
            except errors.PoolError:
                if time.monotonic() >= deadline:
                    raise StoreError('Timed out waiting for a database connection', transient=True)
                time.sleep(ACQUIRE_POLL_INTERVAL)

        try:
            cursor = cnx.cursor()
            try:
                cursor.execute(
                    'SET SESSION max_execution_time = %s, innodb_lock_wait_timeout = %s',
                    (self.statement_timeout_ms, max(1, math.ceil(self.statement_timeout_ms / 1000))),
                )
            finally:
                cursor.close()
        except Exception:
            self._release(cnx)
            raise
        return cnx

    def _release(self, cnx, pool=None) -> None:
        try:
            cnx.close()  # returns the connection to the pool
        except errors.Error as e:
            logger.warning('Failed to reset pooled connection: %s', e)
        # closed while this connection was out: it went back to a retired pool
        if pool is not None and pool is not self._pool:
            self._discard(pool)

    @contextmanager
    def connection(self):
        self._enter()
        pool = self._pool
        cnx = None
        try:
            cnx = self._checkout()
            yield cnx
        except errors.Error as e:
            self._rollback(cnx)
            err = translate_error(e)
            log = logger.warning if err.transient else logger.exception
            log('Database error (errno=%s): %s', getattr(e, 'errno', None), e)
            raise err from e
        except Exception:
            self._rollback(cnx)
            raise
        finally:
            if cnx is not None:
                self._release(cnx, pool)
            self._leave()

    @staticmethod
    def _rollback(cnx) -> None:
        if cnx is None:
            return
        try:
            cnx.rollback()
        except errors.Error as e:
            logger.warning('Rollback failed: %s', e)

    # ── statements ───────────────────────────────────────────────

    def query(self, query, args=(), one=False):
        """Execute a SELECT query and return results as list of dicts.

        Args:
            query: SQL query string with %s placeholders
            args: tuple of parameters
            one: if True, return only the first result (or None)
        """
        with self.connection() as cnx:
            cursor = cnx.cursor(dictionary=True)
            try:
                cursor.execute(query, args)
                results = cursor.fetchall()
            finally:
                cursor.close()

        if one:
            return results[0] if results else None
        return results

    def execute(self, query, args=()) -> ExecResult:
        """Execute a single INSERT/UPDATE/DELETE statement and commit it."""
        with self.connection() as cnx:
            cursor = cnx.cursor()
            try:
                cursor.execute(query, args)
                result = ExecResult(cursor.lastrowid, cursor.rowcount)
            finally:
                cursor.close()
            cnx.commit()
        return result

    def ping(self) -> None:
        with self.connection() as cnx:
            cnx.ping(reconnect=False)


def get_db() -> Database:
    """Return the pool handle of the current application."""
    return current_app.extensions[EXTENSION_KEY]


def load_schema() -> list[str]:
    sql = resources.files('wishlist_api').joinpath('schema.sql').read_text(encoding='utf-8')
    statements = []
    for chunk in sql.split(';'):
        lines = [ln for ln in chunk.splitlines() if ln.strip() and not ln.strip().startswith('--')]
        if lines:
            statements.append('\n'.join(lines))
    return statements


def init_schema(db: Database) -> int:
    """Apply schema.sql. Safe to run repeatedly."""
    statements = load_schema()
    for statement in statements:
        db.execute(statement)
    return len(statements)


@click.command('init-db')
def init_db_command():
    """Create the wishlist table and normalize legacy rows."""
    count = init_schema(get_db())
    click.echo(f'Applied {count} schema statements.')
