"""Session auth routes: login, logout, current user."""
import logging

from flask import jsonify, request
from flask_login import login_user, logout_user, login_required, current_user

from . import auth_bp
from .models import User
from .repositories import UserRepository
from core.utils.api_helpers import RateLimiter, get_json_or_error, error_response

logger = logging.getLogger('dealerdesk.core.auth.routes')

_user_repo = UserRepository()
_auth_limiter = RateLimiter()


@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    # 10 attempts per 5 minutes per IP
    allowed, retry_after = _auth_limiter.is_allowed(
        f'login:{request.remote_addr}', max_requests=10, window_seconds=300)
    if not allowed:
        return error_response(f'Too many login attempts. Try again in {retry_after} seconds.', 429)

    data, error = get_json_or_error()
    if error:
        return error

    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return error_response('email and password are required')

    user_data = _user_repo.authenticate(email, password)
    if not user_data:
        logger.info(f'Failed login attempt for {email}')
        return error_response('Invalid email or password', 401)

    user = User(user_data)
    login_user(user, remember=bool(data.get('remember')))
    _user_repo.update_last_login(user.id)
    logger.info(f'User {email} logged in')
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/api/auth/logout', methods=['POST'])
@login_required
def api_logout():
    logger.info(f'User {current_user.email} logged out')
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/api/auth/current-user')
def api_current_user():
    if current_user.is_authenticated:
        return jsonify({'authenticated': True, 'user': current_user.to_dict()})
    return jsonify({'authenticated': False})
