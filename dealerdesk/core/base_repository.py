"""Base Repository - connection handling shared by every repository.

query_one(), query_all(), query_value(), execute() and execute_many() take care
of get_db()/get_cursor()/release_db() so repositories only carry SQL.

Usage:
    class TrailerRepository(BaseRepository):
        def get_by_stock_number(self, stock_number):
            return self.query_one(
                'SELECT * FROM inventory_trailers WHERE stock_number = %s',
                (stock_number,))

        def count_available(self):
            return self.query_value(
                "SELECT COUNT(*) FROM inventory_trailers WHERE status = 'available'")

        def reassign(self, from_id, to_id):
            def _work(cursor):
                cursor.execute('UPDATE ...')
                cursor.execute('INSERT ...')
                return cursor.rowcount
            return self.execute_many(_work)
"""

from database import get_db, get_cursor, release_db, dict_from_row


class BaseRepository:

    def query_one(self, sql, params=None):
        """Execute a SELECT and return a single row as dict, or None."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            row = cursor.fetchone()
            return dict_from_row(row) if row else None
        finally:
            release_db(conn)

    def query_all(self, sql, params=None):
        """Execute a SELECT and return all rows as list of dicts."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            return [dict_from_row(r) for r in cursor.fetchall()]
        finally:
            release_db(conn)

    def query_value(self, sql, params=None, default=None):
        """Execute a SELECT and return the first column of the first row."""
        row = self.query_one(sql, params)
        if not row:
            return default
        return next(iter(row.values()), default)

    def execute(self, sql, params=None, returning=False):
        """Execute an INSERT/UPDATE/DELETE and commit.

        Returns the RETURNING row as dict when returning=True, else rowcount.
        """
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            if returning:
                result = cursor.fetchone()
                conn.commit()
                return dict_from_row(result) if result else None
            conn.commit()
            return cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)

    def execute_many(self, callback):
        """Run callback(cursor) inside a single transaction and return its result."""
        conn = get_db()
        try:
            # get_db() hands out autocommit connections
            conn.autocommit = False
            cursor = get_cursor(conn)
            result = callback(cursor)
            conn.commit()
            return result
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)
