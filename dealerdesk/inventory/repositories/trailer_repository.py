"""Trailer Repository - read-only lookups over inventory_trailers."""

from core.base_repository import BaseRepository

# Statuses a salesperson can still quote
SELLABLE_STATUSES = ('available', 'pending')

_COLUMNS = '''id, vin, stock_number, manufacturer, model, year, sale_price,
              category, length, width, height, status'''


class TrailerRepository(BaseRepository):

    def get_available(self, category=None):
        conditions, params = ['status = ANY(%s)'], [list(SELLABLE_STATUSES)]
        if category:
            conditions.append('category = %s')
            params.append(category)
        return self.query_all(f'''
            SELECT {_COLUMNS}
            FROM inventory_trailers
            WHERE {' AND '.join(conditions)}
            ORDER BY manufacturer ASC, year DESC
        ''', tuple(params))

    def get_by_stock_number(self, stock_number):
        if not stock_number or not stock_number.strip():
            return None
        return self.query_one(
            f'SELECT {_COLUMNS} FROM inventory_trailers WHERE stock_number = %s',
            (stock_number.strip(),))

    def get_by_vin(self, vin):
        if not vin or not vin.strip():
            return None
        return self.query_one(
            f'SELECT {_COLUMNS} FROM inventory_trailers WHERE vin = %s',
            (vin.strip().upper(),))

    def get_cost(self, stock_number):
        """{'stock_number', 'cost'} for pricing, or None. Cost stays out of _COLUMNS."""
        if not stock_number or not stock_number.strip():
            return None
        return self.query_one(
            'SELECT stock_number, cost FROM inventory_trailers WHERE stock_number = %s',
            (stock_number.strip(),))
