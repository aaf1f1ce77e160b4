"""
Distribution module.

Records aid handed to a beneficiary, decrements stock and writes the ledger in
one transaction; voiding reverses all three.
"""

from .router import router  # noqa: F401
from . import models  # noqa: F401
