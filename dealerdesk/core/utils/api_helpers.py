"""Shared API utilities: permission decorators, JSON envelope helpers, rate limiter."""
import time
import logging
import threading
from collections import defaultdict
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

logger = logging.getLogger('dealerdesk.api')


# ============== Decorators ==============

def permission_required(flag, label=None):
    """Require an authenticated user whose role grants `flag`.

    Usage:
        crm_required = permission_required('can_access_crm', 'CRM access denied')

        @bp.route('/api/crm/customers')
        @login_required
        @crm_required
        def api_customers(): ...
    """
    message = label or 'Permission denied'

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'success': False, 'error': 'Authentication required'}), 401
            if not getattr(current_user, flag, False):
                return jsonify({'success': False, 'error': message}), 403
            return f(*args, **kwargs)
        return decorated
    return decorator


# ============== Request Validation ==============

def get_json_or_error():
    """Get JSON from request body with null check.

    Returns (data, error_response) tuple. Caller pattern:
        data, error = get_json_or_error()
        if error:
            return error
    """
    data = request.get_json(silent=True)
    if data is None:
        return None, error_response('Invalid or missing JSON body', 400)
    return data, None


# ============== Error Handling ==============

def error_response(message, status_code=400):
    """Build the standard {'success': False, 'error': ...} envelope."""
    return jsonify({'success': False, 'error': message}), status_code


def safe_error_response(e, status_code=500):
    """Return error response without leaking internals.

    - ValueError/KeyError: str(e) as 400 (business validation, safe to expose)
    - Everything else: full exception logged, generic message returned
    """
    if isinstance(e, KeyError):
        # str(KeyError('x')) is "'x'"
        return error_response(e.args[0] if e.args else 'Not found', 400)
    if isinstance(e, ValueError):
        return error_response(str(e), 400)

    logger.exception('Unhandled error in API route')
    return error_response('An internal error occurred', status_code)


# ============== Rate Limiter ==============

class RateLimiter:
    """Simple in-memory sliding-window rate limiter.

    Per-worker state (3 gunicorn workers = 3 separate states).
    Acceptable for internal tooling, not for public-facing APIs.
    """

    def __init__(self):
        self._requests = defaultdict(list)
        self._lock = threading.Lock()

    def is_allowed(self, key, max_requests=10, window_seconds=60):
        """Check if request is allowed.

        Args:
            key: String identifier (user_id, IP address, etc.)
            max_requests: Max requests per window
            window_seconds: Window duration in seconds

        Returns:
            (is_allowed: bool, retry_after: int) tuple
        """
        now = time.time()
        window_start = now - window_seconds

        with self._lock:
            self._requests[key] = [ts for ts in self._requests[key] if ts > window_start]

            if len(self._requests[key]) >= max_requests:
                oldest = min(self._requests[key])
                retry_after = int(oldest + window_seconds - now) + 1
                return False, max(1, retry_after)

            self._requests[key].append(now)
            return True, 0
