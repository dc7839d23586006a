"""DealerDesk core platform module.

Shared infrastructure used by every feature module:
- Database access (BaseRepository)
- Authentication (users, role flags)
- Logging and API helpers
"""
