"""CRM Customer Repository - filtered search, detail, status and stats for crm_customers."""

import logging

from core.base_repository import BaseRepository

logger = logging.getLogger('dealerdesk.crm.repositories.customer')

VALID_STATUSES = ('new', 'contacted', 'qualified', 'applied', 'approved', 'won', 'dead')

# Roles that see every customer regardless of assignment
FULL_VISIBILITY_ROLES = ('owner', 'director')

_SELECT = '''
    SELECT c.*, u.name AS assigned_to_name
    FROM crm_customers c
    LEFT JOIN users u ON u.id = c.assigned_to_id
'''


def scope_condition(user):
    """SQL condition + params limiting customers to what `user` may see.

    Owners/directors see everyone; managers see their own, their team's and
    the ones they manage; everyone else sees only their assigned customers.
    """
    if user is None or getattr(user, 'role_name', None) in FULL_VISIBILITY_ROLES:
        return None, []
    if user.role_name == 'manager':
        return ('''(c.assigned_to_id = %s OR c.manager_id = %s
                    OR c.assigned_to_id IN (SELECT id FROM users WHERE manager_id = %s))''',
                [user.id, user.id, user.id])
    return 'c.assigned_to_id = %s', [user.id]


def build_conditions(filters, search=None):
    """Translate a FilterState (+ free text) into WHERE conditions and params."""
    conditions, params = [], []

    def add(sql, *values):
        conditions.append(sql)
        params.extend(values)

    if filters.unassigned_only:
        add('c.assigned_to_id IS NULL')
    elif filters.assigned_to_id:
        add('c.assigned_to_id = %s', filters.assigned_to_id)
    if filters.manager_id:
        add('c.manager_id = %s', filters.manager_id)

    if filters.statuses:
        add('c.status = ANY(%s)', list(filters.statuses))
    if filters.temperatures:
        add('c.temperature = ANY(%s)', list(filters.temperatures))
    if filters.priorities:
        add('c.priority = ANY(%s)', list(filters.priorities))
    if filters.lost_reason:
        add('c.lost_reason = %s', filters.lost_reason)

    if filters.financing_type:
        add('c.financing_type = %s', filters.financing_type)
    if filters.rto_approval_status:
        add('c.rto_approval_status = %s', filters.rto_approval_status)
    if filters.finance_approval_status:
        add('c.finance_approval_status = %s', filters.finance_approval_status)
    if filters.applied == 'true':
        add('c.applied = TRUE')
    elif filters.applied == 'false':
        add('(c.applied = FALSE OR c.applied IS NULL)')

    if filters.state:
        add('c.state = %s', filters.state)
    if filters.city:
        add('c.city ILIKE %s', f'%{filters.city}%')
    if filters.zipcode:
        add('c.zipcode = %s', filters.zipcode)

    if filters.trailer_type:
        add('c.trailer_type = %s', filters.trailer_type)
    if filters.trailer_size:
        add('c.trailer_size = %s', filters.trailer_size)
    if filters.stock_number:
        add('c.stock_number ILIKE %s', f'%{filters.stock_number}%')
    if filters.vin:
        add('UPPER(c.vin) LIKE %s', f'%{filters.vin.upper()}%')

    # Inclusive day bounds
    if filters.created_after:
        add('c.created_at >= %s::date', filters.created_after)
    if filters.created_before:
        add("c.created_at < (%s::date + INTERVAL '1 day')", filters.created_before)
    if filters.last_contacted_after:
        add('c.last_contacted_at >= %s::date', filters.last_contacted_after)
    if filters.last_contacted_before:
        add("c.last_contacted_at < (%s::date + INTERVAL '1 day')", filters.last_contacted_before)

    if filters.never_contacted:
        add('c.last_contacted_at IS NULL')
    if filters.follow_up_overdue:
        add('c.next_follow_up_at < NOW()')

    if search:
        term = f'%{search.strip()}%'
        add('''(c.first_name ILIKE %s OR c.last_name ILIKE %s OR c.email ILIKE %s
                OR c.phone ILIKE %s OR c.company_name ILIKE %s)''',
            term, term, term, term, term)

    return conditions, params


class CustomerRepository(BaseRepository):

    def search(self, filters, search=None, limit=50, offset=0, user=None):
        """Returns (rows, total) for one page of customers."""
        conditions, params = build_conditions(filters, search)
        scope_sql, scope_params = scope_condition(user)
        if scope_sql:
            conditions.append(scope_sql)
            params.extend(scope_params)

        where = ' AND '.join(conditions) if conditions else 'TRUE'
        count_params = tuple(params)
        params.extend([limit, offset])

        # Urgent first, then hottest leads, then most recent activity
        rows = self.query_all(f'''
            {_SELECT}
            WHERE {where}
            ORDER BY CASE c.priority WHEN 'urgent' THEN 0 WHEN 'high' THEN 1
                                     WHEN 'medium' THEN 2 ELSE 3 END,
                     c.lead_score DESC NULLS LAST,
                     c.last_activity_at DESC NULLS LAST,
                     c.created_at DESC
            LIMIT %s OFFSET %s
        ''', tuple(params))
        total = self.query_value(
            f'SELECT COUNT(*) AS count FROM crm_customers c WHERE {where}',
            count_params, default=0)
        return rows, total

    def get_by_id(self, customer_id, user=None):
        scope_sql, scope_params = scope_condition(user)
        extra = f' AND {scope_sql}' if scope_sql else ''
        return self.query_one(
            f'{_SELECT} WHERE c.id = %s{extra}',
            tuple([customer_id] + scope_params))

    def update_status(self, customer_id, status, user_id=None):
        """Set the pipeline status and log it as a completed note. Returns the previous status or None."""
        if status not in VALID_STATUSES:
            raise ValueError(f'Invalid status. Must be one of: {", ".join(VALID_STATUSES)}')

        def _work(cursor):
            cursor.execute('SELECT status FROM crm_customers WHERE id = %s FOR UPDATE', (customer_id,))
            row = cursor.fetchone()
            if not row:
                return None
            previous = row['status']
            cursor.execute('''
                UPDATE crm_customers
                SET status = %s, days_in_stage = 0,
                    last_activity_at = NOW(), updated_at = NOW()
                WHERE id = %s
            ''', (status, customer_id))
            cursor.execute('''
                INSERT INTO crm_activities
                    (customer_id, user_id, type, subject, description, status, completed_at)
                VALUES (%s, %s, 'note', 'Status Changed', %s, 'completed', NOW())
            ''', (customer_id, user_id, f'Status changed from "{previous}" to "{status}"'))
            return previous

        previous = self.execute_many(_work)
        if previous is not None:
            logger.info(f'Customer {customer_id} status {previous} -> {status}')
        return previous

    def get_stats(self, user=None):
        scope_sql, scope_params = scope_condition(user)
        where = f'WHERE {scope_sql}' if scope_sql else ''
        return self.query_one(f'''
            SELECT
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE c.status = 'new') AS new,
                COUNT(*) FILTER (WHERE c.status = 'won') AS won,
                COUNT(*) FILTER (WHERE c.status = 'dead') AS dead,
                COUNT(*) FILTER (WHERE c.temperature = 'hot') AS hot,
                COUNT(*) FILTER (WHERE c.assigned_to_id IS NULL) AS unassigned,
                COUNT(*) FILTER (WHERE c.last_contacted_at IS NULL) AS never_contacted,
                COUNT(*) FILTER (WHERE c.next_follow_up_at < NOW()) AS follow_up_overdue
            FROM crm_customers c
            {where}
        ''', tuple(scope_params))
