# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_EMAIL, FIRST_ADMIN_PASSWORD and
FIRST_ADMIN_NAME from etc/app.conf.  After the row is inserted those values
are no longer used by the application.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.config import settings             # noqa: E402
from database import SessionLocal            # noqa: E402
from auth.service import ensure_admin        # noqa: E402
import models.ticket                         # noqa: F401, E402  (registers the Ticket mapper)


def seed():
    if not settings.first_admin_email or not settings.first_admin_password:
        print("[seed_admin] FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return

    db = SessionLocal()
    try:
        _, created = ensure_admin(
            db,
            email=settings.first_admin_email,
            password=settings.first_admin_password,
            name=settings.first_admin_name,
        )
        if created:
            print(f"[seed_admin] Admin '{settings.first_admin_email}' created successfully.")
        else:
            print(f"[seed_admin] Admin '{settings.first_admin_email}' already exists – skipping.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
