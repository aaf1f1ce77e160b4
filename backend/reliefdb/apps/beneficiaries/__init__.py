"""
Beneficiaries module.

Registration and profile maintenance are handled elsewhere; this service only
needs to know that a beneficiary exists and what to call them.
"""

from . import models  # noqa: F401
