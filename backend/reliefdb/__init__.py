# backend/reliefdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- Relationship targets (users, inventory) are registered before mappers
  are configured.

The actual model classes are kept in reliefdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models            # actors
from .apps.beneficiaries import models as beneficiaries_models  # aid recipients
from .apps.inventory import models as inventory_models          # stock + ledger
from .apps.calamities import models as calamities_models        # calamities + kits
from .apps.distribution import models as distribution_models    # distributions + lines

__all__ = [
    "accounts_models",
    "beneficiaries_models",
    "inventory_models",
    "calamities_models",
    "distribution_models",
]
