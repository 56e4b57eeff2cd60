"""Realtor service - CRUD, email upsert and the referral counters."""

from datetime import datetime, timezone
from typing import Optional
from src.models.realtor import Realtor, RealtorCreate, RealtorUpdate
from src.services.supabase_client import (
    SupabaseClient,
    REALTORS,
    BOX_DROPS,
    first_row,
    all_rows,
)
from src.utils.errors import SupabaseError, NotFoundError, InputValidationError
from src.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)

COUNTERS = ("total_drops", "total_conversions")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def list_realtors() -> list[dict]:
    """All realtors, alphabetical by first name."""
    async with SupabaseClient() as client:
        try:
            result = client.table(REALTORS).select("*").order("first_name").execute()
        except Exception as e:
            raise SupabaseError(f"Failed to list realtors: {e}")
    return [Realtor.model_validate(row).model_dump() for row in all_rows(result)]


async def get_realtor_row(realtor_id: int) -> Optional[dict]:
    async with SupabaseClient() as client:
        try:
            result = client.table(REALTORS).select("*").eq("id", realtor_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get realtor: {e}")
    return first_row(result)


async def get_realtors_by_ids(realtor_ids: list[int]) -> dict[int, dict]:
    """Realtor rows keyed by id, for joining onto drops."""
    ids = sorted({rid for rid in realtor_ids if rid is not None})
    if not ids:
        return {}
    async with SupabaseClient() as client:
        try:
            result = client.table(REALTORS).select("*").in_("id", ids).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get realtors: {e}")
    return {row["id"]: row for row in all_rows(result)}


async def get_realtor(realtor_id: int) -> dict:
    """Realtor with their box drops, newest first."""
    realtor = await get_realtor_row(realtor_id)
    if realtor is None:
        raise NotFoundError("Realtor", realtor_id)

    async with SupabaseClient() as client:
        try:
            result = (
                client.table(BOX_DROPS)
                .select("*")
                .eq("realtor_id", realtor_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to get drops for realtor: {e}")

    return {**Realtor.model_validate(realtor).model_dump(), "drops": all_rows(result)}


async def create_realtor(data: RealtorCreate) -> dict:
    """Insert a realtor; counters start at zero."""
    async with SupabaseClient() as client:
        try:
            result = client.table(REALTORS).insert(data.model_dump()).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create realtor: {e}")
    row = first_row(result)
    if row is None:
        raise SupabaseError("Failed to create realtor: no data returned")
    logger.info("Realtor created", realtor_id=row.get("id"), email=mask_email(row.get("email")))
    return row


async def update_realtor(realtor_id: int, data: RealtorUpdate) -> dict:
    """Apply allow-listed edits to a realtor."""
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise InputValidationError("No fields to update")

    if await get_realtor_row(realtor_id) is None:
        raise NotFoundError("Realtor", realtor_id)

    updates["updated_at"] = _now()
    async with SupabaseClient() as client:
        try:
            result = client.table(REALTORS).update(updates).eq("id", realtor_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update realtor: {e}")
    return first_row(result) or {"id": realtor_id, **updates}


async def find_realtor_by_email(email: str) -> Optional[dict]:
    async with SupabaseClient() as client:
        try:
            result = client.table(REALTORS).select("*").eq("email", email).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to find realtor by email: {e}")
    return first_row(result)


async def upsert_realtor_by_email(
    email: Optional[str],
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
    company: Optional[str] = None,
) -> dict:
    """
    Find a realtor by email or create one.

    An existing realtor only gets blank phone/company/last_name filled in;
    values already on file are never overwritten. Without an email a new
    realtor is always created.
    """
    if email:
        existing = await find_realtor_by_email(email)
        if existing:
            fills = {
                field: value
                for field, value in (("phone", phone), ("company", company), ("last_name", last_name))
                if value and not existing.get(field)
            }
            if not fills:
                return existing

            fills["updated_at"] = _now()
            async with SupabaseClient() as client:
                try:
                    result = client.table(REALTORS).update(fills).eq("id", existing["id"]).execute()
                except Exception as e:
                    raise SupabaseError(f"Failed to update realtor: {e}")
            logger.info(
                "Filled missing realtor details",
                realtor_id=existing["id"],
                fields=sorted(k for k in fills if k != "updated_at"),
            )
            return first_row(result) or {**existing, **fills}

    return await create_realtor(RealtorCreate(
        first_name=first_name or "Unknown",
        last_name=last_name or None,
        email=email or None,
        phone=phone or None,
        company=company or None,
    ))


async def increment_realtor_counter(realtor_id: int, counter: str) -> None:
    """
    Add one to total_drops or total_conversions.

    Uses the increment_realtor_counter database function (single atomic
    statement) and falls back to read-then-write if it is not installed.
    A missing realtor is logged and skipped.
    """
    if counter not in COUNTERS:
        raise ValueError(f"Unknown realtor counter: {counter}")

    async with SupabaseClient() as client:
        try:
            client.rpc("increment_realtor_counter", {
                "p_realtor_id": realtor_id,
                "p_counter": counter,
            }).execute()
            logger.info("Realtor counter incremented", realtor_id=realtor_id, counter=counter)
            return
        except Exception as rpc_error:
            logger.debug(
                "increment_realtor_counter RPC unavailable, using direct update",
                realtor_id=realtor_id,
                error=str(rpc_error),
            )

        try:
            result = client.table(REALTORS).select("id", counter).eq("id", realtor_id).execute()
            row = first_row(result)
            if row is None:
                logger.warning("Realtor missing, counter not incremented", realtor_id=realtor_id, counter=counter)
                return
            client.table(REALTORS).update({
                counter: (row.get(counter) or 0) + 1,
                "updated_at": _now(),
            }).eq("id", realtor_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to increment {counter}: {e}")

    logger.info("Realtor counter incremented", realtor_id=realtor_id, counter=counter)
