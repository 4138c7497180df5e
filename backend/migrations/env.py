# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Alembic environment for the share service schema.

The connection string comes from ``core.config.settings`` (etc/app.conf or
the environment) and the engine is built by ``database.build_engine``, so
migrations and the application always agree on the target database.

Run from the project root:
    alembic upgrade head
"""

import os
import sys

# backend/ must be importable for ``core``, ``database`` and ``models``.
_BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from alembic import context  # noqa: E402

from core.config import settings  # noqa: E402
from database import Base, build_engine  # noqa: E402

# Every ORM model must be imported so Base.metadata sees all five tables.
import models.user            # noqa: F401, E402
import models.password_entry  # noqa: F401, E402
import models.share           # noqa: F401, E402
import models.activity_log    # noqa: F401, E402


def run_migrations_online():
    connectable = build_engine(settings.database_url)
    with connectable.connect() as conn:
        context.configure(connection=conn, target_metadata=Base.metadata)
        with context.begin_transaction():
            context.run_migrations()


def run_migrations_offline():
    """Emit SQL to stdout instead of touching a live database."""
    context.configure(
        url=settings.database_url,
        target_metadata=Base.metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
