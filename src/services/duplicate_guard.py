"""Duplicate address guard for new box drops."""

from typing import Optional
from src.services.supabase_client import SupabaseClient, BOX_DROPS, first_row
from src.utils.errors import DuplicateAddressError, SupabaseError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


async def find_drop_by_address(address: str) -> Optional[dict]:
    """Oldest drop whose address matches exactly (case-sensitive, any status)."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(BOX_DROPS)
                .select("id", "scheduled_date", "created_at", "status")
                .eq("homeowner_address", address)
                .order("created_at")
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to check duplicate address: {e}")
    return first_row(result)


async def ensure_address_available(address: Optional[str], allow_duplicate: bool = False) -> None:
    """
    Raise DuplicateAddressError if a drop already exists at this address.

    Skipped when the caller overrides or no address was given. The check
    and the following insert are separate statements, so two simultaneous
    requests for a brand-new address can both pass.
    """
    if allow_duplicate or not address:
        return

    existing = await find_drop_by_address(address)
    if existing is None:
        return

    logger.info(
        "Duplicate address rejected",
        existing_drop_id=existing.get("id"),
        existing_status=existing.get("status"),
    )
    raise DuplicateAddressError(address, existing)
