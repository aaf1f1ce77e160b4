"""
Accounts module.

Only the user record needed to attribute actions; authentication and
authorisation live outside this service.
"""

from . import models  # noqa: F401
