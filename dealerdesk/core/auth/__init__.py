"""DealerDesk authentication module.

Session login/logout for the JSON API and the flask-login user model.
"""
from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from . import routes  # noqa: E402, F401
