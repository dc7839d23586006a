"""PostgreSQL access for DealerDesk.

One lazily created ThreadedConnectionPool per worker. Connections leave
get_db() in autocommit mode; BaseRepository.execute_many() switches a
connection back to a transaction when several statements must land together.
"""

import os
import time
import logging
import threading

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor


logger = logging.getLogger('dealerdesk.database')

DATABASE_URL = os.environ.get('DATABASE_URL')

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required. Set it to your PostgreSQL connection string.")

POOL_MIN_CONN = int(os.environ.get('DB_POOL_MIN_CONN', '2'))
POOL_MAX_CONN = int(os.environ.get('DB_POOL_MAX_CONN', '8'))
POOL_GETCONN_TIMEOUT = int(os.environ.get('DB_POOL_TIMEOUT', '10'))
CHECKOUT_ATTEMPTS = 3

_pool = None
_pool_lock = threading.Lock()

# Connection errors that mean "throw this one away and try another"
_STALE_ERRORS = (psycopg2.OperationalError, psycopg2.InterfaceError, psycopg2.DatabaseError)


def _get_pool():
    global _pool
    if _pool is None:
        with _pool_lock:
            if _pool is None:
                _pool = pool.ThreadedConnectionPool(
                    minconn=POOL_MIN_CONN,
                    maxconn=POOL_MAX_CONN,
                    dsn=DATABASE_URL,
                    keepalives=1,
                    keepalives_idle=30,
                    keepalives_interval=10,
                    keepalives_count=5,
                    connect_timeout=5,
                )
                logger.info(f'Connection pool created: min={POOL_MIN_CONN}, max={POOL_MAX_CONN}')
    return _pool


def _checkout(timeout=POOL_GETCONN_TIMEOUT):
    """pool.getconn() with a deadline.

    ThreadedConnectionPool blocks forever once exhausted, so the checkout runs
    on a daemon thread joined with `timeout`.
    """
    box = {}

    def _get():
        try:
            box['conn'] = _get_pool().getconn()
        except Exception as e:
            box['error'] = e

    worker = threading.Thread(target=_get, daemon=True)
    worker.start()
    worker.join(timeout=timeout)

    if worker.is_alive():
        raise psycopg2.OperationalError(f'No pooled connection available after {timeout}s')
    if 'error' in box:
        raise box['error']
    return box['conn']


def _discard(conn):
    try:
        _get_pool().putconn(conn, close=True)
    except Exception:
        logger.debug('Could not close discarded connection', exc_info=True)


def get_db():
    """Check out a live connection, replacing ones the server has dropped."""
    last_error = None
    for attempt in range(1, CHECKOUT_ATTEMPTS + 1):
        conn = _checkout()
        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            conn.rollback()
            conn.autocommit = True
            return conn
        except _STALE_ERRORS as e:
            last_error = e
            logger.warning(f'Dropping stale connection ({attempt}/{CHECKOUT_ATTEMPTS}): {e}')
            _discard(conn)

    raise psycopg2.OperationalError(f'No usable connection after {CHECKOUT_ATTEMPTS} attempts: {last_error}')


def release_db(conn):
    """Hand a connection back to the pool; broken ones are closed instead."""
    if not conn or _pool is None:
        return
    if conn.closed:
        _discard(conn)
        return
    try:
        conn.autocommit = False
        _pool.putconn(conn)
    except Exception:
        logger.debug('Returning connection failed, closing it', exc_info=True)
        _discard(conn)


def get_cursor(conn):
    """Cursor whose rows are dicts."""
    return conn.cursor(cursor_factory=RealDictCursor)


def dict_from_row(row):
    """Row -> plain dict, with dates and timestamps as ISO strings."""
    if row is None:
        return None
    result = dict(row)
    for key, value in result.items():
        if hasattr(value, 'isoformat'):
            result[key] = value.isoformat()
    return result


_ping_cache = {'ok': False, 'ts': 0.0}
PING_CACHE_SECONDS = 5


def ping_db():
    """True when the database answers SELECT 1. Successes are cached briefly."""
    now = time.time()
    if _ping_cache['ok'] and now - _ping_cache['ts'] < PING_CACHE_SECONDS:
        return True

    ok = False
    try:
        conn = get_db()
        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            ok = True
        finally:
            release_db(conn)
    except Exception:
        logger.warning('Database ping failed', exc_info=True)

    _ping_cache.update(ok=ok, ts=now)
    return ok


def init_db():
    """Create the schema on first start; later starts see tracker_snapshots and skip."""
    conn = get_db()
    try:
        cursor = get_cursor(conn)
        cursor.execute("SELECT to_regclass('public.tracker_snapshots') IS NOT NULL AS ready")
        if cursor.fetchone()['ready']:
            logger.info('Database schema already initialized, skipping init_db()')
            return

        from migrations.init_schema import create_schema
        conn.autocommit = False
        create_schema(conn, cursor)
        logger.info('Database schema initialized successfully')
    finally:
        release_db(conn)
