"""
Account Activation Script
New accounts are created inactive; an administrator runs this to activate
(or deactivate) them and, optionally, to clear a login lockout.

Usage:
    python -m app.scripts.activate_user ana@example.com
    python -m app.scripts.activate_user ana@example.com --deactivate
    python -m app.scripts.activate_user ana@example.com --unlock
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config import settings
from app.core.validators import normalize_email
from app.database.supabase_client import SupabaseClient, first_row
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_user_active(supabase: Client, email: str, active: bool, unlock: bool = False) -> bool:
    """Flip the active flag of a user; returns False when no user has that email"""
    email = normalize_email(email)
    user = first_row(
        supabase.table("users")
        .select("id, active")
        .eq("email", email)
        .limit(1)
        .execute()
    )
    if not user:
        logger.error(f"No user with email {email}")
        return False

    update_data = {"active": active}
    if unlock:
        update_data.update({"failed_login_count": 0, "locked_until": None})
    supabase.table("users").update(update_data).eq("id", user["id"]).execute()

    if not active:
        # A deactivated account must not keep using sessions it already holds
        supabase.table("sessions")\
            .update({"active": False})\
            .eq("user_id", user["id"])\
            .eq("active", True)\
            .execute()

    logger.info(f"User {user['id']} ({email}) active={active} unlock={unlock}")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Activate or deactivate an ND Express account")
    parser.add_argument("email")
    parser.add_argument("--deactivate", action="store_true", help="deactivate instead of activating")
    parser.add_argument("--unlock", action="store_true", help="reset failed login counter and lockout")
    args = parser.parse_args(argv)

    if not settings.supabase_service_role_key:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; using the anon key (RLS may block updates)")

    try:
        supabase = SupabaseClient.get_service_client()
        if not set_user_active(supabase, args.email, not args.deactivate, unlock=args.unlock):
            sys.exit(1)
    except Exception as e:
        logger.error(f"Error updating account: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
