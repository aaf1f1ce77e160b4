"""
Inventory module.

Current stock per relief item plus the append-only transaction ledger that
records every quantity change.
"""

from . import router  # noqa: F401
from . import models  # noqa: F401
