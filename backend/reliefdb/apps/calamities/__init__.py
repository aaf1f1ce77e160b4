"""
Calamities module.

Calamity events and their standard relief kits. Kits are templates used to
pre-fill distribution line items; distributions never modify them.
"""

from .router import router  # noqa: F401
from . import models  # noqa: F401
