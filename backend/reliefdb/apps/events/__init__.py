"""
Events module.

In-process structured event hook. Services publish an envelope after each
committed stock change; clients poll `/events/history` with the last id they
saw.
"""

from . import router  # noqa: F401
