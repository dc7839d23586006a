"""CRM Activity Repository - timeline entries in crm_activities."""

import json
import logging

from core.base_repository import BaseRepository
from ..activities import ActivityKind, touches_last_contacted

logger = logging.getLogger('dealerdesk.crm.repositories.activity')


class ActivityRepository(BaseRepository):

    def create(self, activity) -> int:
        """Insert an activity. Calls and emails also stamp the customer's last_contacted_at."""
        completed = activity.kind == ActivityKind.CALL

        def _work(cursor):
            cursor.execute('''
                INSERT INTO crm_activities
                    (customer_id, user_id, type, subject, description, details,
                     status, completed_at, created_at)
                VALUES (%s, %s, %s, %s, %s, %s::jsonb, %s, %s, %s)
                RETURNING id
            ''', (
                activity.customer_id, activity.user_id, activity.kind.value,
                activity.subject, activity.description(), json.dumps(activity.details()),
                'completed' if completed else 'pending',
                activity.created_at if completed else None,
                activity.created_at,
            ))
            activity_id = cursor.fetchone()['id']

            if touches_last_contacted(activity):
                cursor.execute('''
                    UPDATE crm_customers
                    SET last_contacted_at = %s, last_activity_at = %s, updated_at = NOW()
                    WHERE id = %s
                ''', (activity.created_at, activity.created_at, activity.customer_id))
            else:
                cursor.execute(
                    'UPDATE crm_customers SET last_activity_at = %s WHERE id = %s',
                    (activity.created_at, activity.customer_id))
            return activity_id

        activity_id = self.execute_many(_work)
        logger.info(f'Activity {activity_id} ({activity.kind.value}) logged for customer {activity.customer_id}')
        return activity_id

    def list_for_customer(self, customer_id, limit=50):
        return self.query_all('''
            SELECT a.*, u.name AS user_name
            FROM crm_activities a
            LEFT JOIN users u ON u.id = a.user_id
            WHERE a.customer_id = %s
            ORDER BY a.created_at DESC
            LIMIT %s
        ''', (customer_id, limit))
