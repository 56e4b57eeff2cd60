"""Delivery lifecycle manager - box drop intake, updates and status side effects."""

from datetime import date, datetime, timezone
from typing import Optional
from src.models.box_drop import (
    AutoDropRequest,
    BoxDrop,
    BoxDropCreate,
    BoxDropUpdate,
    DropStatus,
    TERMINAL_STATUSES,
    ListingStatus,
    next_status,
)
from src.services.supabase_client import SupabaseClient, BOX_DROPS, first_row, all_rows
from src.services.duplicate_guard import ensure_address_available
from src.services.realtors import (
    get_realtor_row,
    get_realtors_by_ids,
    increment_realtor_counter,
    upsert_realtor_by_email,
)
from src.utils.errors import InputValidationError, NotFoundError, SupabaseError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

AUTO_ADDRESS_PLACEHOLDER = "Address pending"
AUTO_CAMPAIGN_SOURCE = "instantly_webhook"
AUTO_NOTE = "Auto-created from email reply."

# Realtor columns flattened onto drop rows as realtor_<column>
JOINED_REALTOR_COLUMNS = ("first_name", "last_name", "email", "phone", "company")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _today() -> str:
    return date.today().isoformat()


def _join_realtor(drop: dict, realtor: Optional[dict]) -> dict:
    joined = dict(drop)
    for column in JOINED_REALTOR_COLUMNS:
        joined[f"realtor_{column}"] = realtor.get(column) if realtor else None
    return joined


async def attach_realtors(drops: list[dict]) -> list[dict]:
    """Left-join realtor contact details onto drop rows."""
    realtors = await get_realtors_by_ids([d.get("realtor_id") for d in drops])
    return [_join_realtor(d, realtors.get(d.get("realtor_id"))) for d in drops]


async def get_drop_row(drop_id: int) -> Optional[dict]:
    async with SupabaseClient() as client:
        try:
            result = client.table(BOX_DROPS).select("*").eq("id", drop_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get box drop: {e}")
    return first_row(result)


async def get_drop(drop_id: int) -> dict:
    """Single drop with realtor details; NotFoundError if absent."""
    drop = await get_drop_row(drop_id)
    if drop is None:
        raise NotFoundError("Box drop", drop_id)
    joined = await attach_realtors([drop])
    return joined[0]


async def list_drops(
    status: Optional[str] = None,
    realtor_id: Optional[int] = None,
    needs_followup: bool = False,
) -> list[dict]:
    """
    Newest-first drop list with optional filters.

    needs_followup keeps delivered drops where either email follow-up is
    still outstanding. It narrows any status filter rather than replacing it.
    """
    if status:
        try:
            status = DropStatus(status).value
        except ValueError:
            raise InputValidationError(f"Unknown status: {status}")
    if needs_followup:
        if status and status != DropStatus.DELIVERED.value:
            return []
        status = DropStatus.DELIVERED.value

    async with SupabaseClient() as client:
        try:
            query = client.table(BOX_DROPS).select("*")
            if status:
                query = query.eq("status", status)
            if realtor_id is not None:
                query = query.eq("realtor_id", realtor_id)
            result = query.order("created_at", desc=True).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to list box drops: {e}")

    rows = all_rows(result)
    if needs_followup:
        rows = [r for r in rows if BoxDrop.model_validate(r).needs_email_followup]
    return await attach_realtors(rows)


async def list_pending_followups() -> dict:
    """Delivered drops missing any of the four follow-ups, oldest delivery first."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(BOX_DROPS)
                .select("*")
                .eq("status", DropStatus.DELIVERED.value)
                .order("delivered_date")
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to list pending follow-ups: {e}")

    rows = [r for r in all_rows(result) if BoxDrop.model_validate(r).needs_followup]
    drops = await attach_realtors(rows)
    return {"count": len(drops), "drops": drops}


async def ensure_realtor_exists(realtor_id: Optional[int]) -> None:
    """Reject references to realtors that are not stored."""
    if realtor_id is not None and await get_realtor_row(realtor_id) is None:
        raise InputValidationError("Unknown realtor_id")


async def _insert_drop(record: dict) -> dict:
    async with SupabaseClient() as client:
        try:
            result = client.table(BOX_DROPS).insert(record).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create box drop: {e}")
    row = first_row(result)
    if row is None:
        raise SupabaseError("Failed to create box drop: no data returned")
    return row


async def create_drop(data: BoxDropCreate, allow_duplicate: bool = False) -> dict:
    """
    Create a box drop from manual intake.

    Runs the duplicate address guard unless overridden, stamps the
    requested date, and bumps the realtor's drop counter once. The insert
    and the counter update are separate writes.
    """
    await ensure_realtor_exists(data.realtor_id)
    await ensure_address_available(data.homeowner_address, allow_duplicate=allow_duplicate)

    record = data.model_dump(mode="json")
    record["requested_date"] = _today()

    with log_timing("create_drop", logger=logger, allow_duplicate=allow_duplicate):
        row = await _insert_drop(record)
        if row.get("realtor_id") is not None:
            await increment_realtor_counter(row["realtor_id"], "total_drops")

    logger.info(
        "Box drop created",
        drop_id=row.get("id"),
        realtor_id=row.get("realtor_id"),
        status=row.get("status"),
        allow_duplicate=allow_duplicate,
    )
    return row


async def update_drop(drop_id: int, fields: dict) -> dict:
    """
    Apply an allow-listed partial update.

    status=delivered stamps delivered_date with today unless one was sent.
    status=converted adds one to the realtor's conversion counter on every
    such call, including repeats.
    """
    updates = BoxDropUpdate.model_validate(fields).to_fields()
    if not updates:
        raise InputValidationError("No fields to update")

    existing = await get_drop_row(drop_id)
    if existing is None:
        raise NotFoundError("Box drop", drop_id)
    await ensure_realtor_exists(updates.get("realtor_id"))

    updates["updated_at"] = _now()
    status = updates.get("status")

    if status == DropStatus.DELIVERED.value and not updates.get("delivered_date"):
        updates["delivered_date"] = _today()
        logger.info("Delivered date stamped", drop_id=drop_id, delivered_date=updates["delivered_date"])

    if status == DropStatus.CONVERTED.value:
        realtor_id = existing.get("realtor_id")
        if realtor_id is not None:
            await increment_realtor_counter(realtor_id, "total_conversions")

    async with SupabaseClient() as client:
        try:
            result = client.table(BOX_DROPS).update(updates).eq("id", drop_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update box drop: {e}")

    logger.info(
        "Box drop updated",
        drop_id=drop_id,
        fields=sorted(k for k in updates if k != "updated_at"),
        status_from=existing.get("status"),
        status_to=status or existing.get("status"),
    )
    return first_row(result) or {**existing, **updates}


async def advance_drop(drop_id: int) -> dict:
    """Move a drop exactly one step forward along the delivery flow."""
    existing = await get_drop_row(drop_id)
    if existing is None:
        raise NotFoundError("Box drop", drop_id)

    try:
        current = DropStatus(existing.get("status"))
    except ValueError:
        raise InputValidationError(f"Unknown status on drop {drop_id}: {existing.get('status')}")

    target = None if current in TERMINAL_STATUSES else next_status(current)
    if target is None:
        raise InputValidationError(f"Cannot advance a drop that is {current.value}")

    return await update_drop(drop_id, {"status": target.value})


async def delete_drop(drop_id: int) -> None:
    """Hard delete; realtor counters are left as they are."""
    if await get_drop_row(drop_id) is None:
        raise NotFoundError("Box drop", drop_id)

    async with SupabaseClient() as client:
        try:
            client.table(BOX_DROPS).delete().eq("id", drop_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete box drop: {e}")
    logger.info("Box drop deleted", drop_id=drop_id)


def split_name(full_name: Optional[str]) -> tuple[str, str]:
    """First word is the first name, the rest is the last name."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def build_auto_notes(request: AutoDropRequest) -> str:
    lines = [
        request.notes or "",
        f"Scheduling: {request.scheduling_note}" if request.scheduling_note else "",
        AUTO_NOTE,
    ]
    return "\n".join(line for line in lines if line)


async def create_auto_drop(request: AutoDropRequest) -> dict:
    """
    Intake from the automated email-reply process.

    Resolves the realtor by email (creating one when unknown), then creates
    the drop without the duplicate guard.
    """
    if not request.realtor_email and not request.realtor_name:
        raise InputValidationError("At least realtorEmail or realtorName is required")

    first_name, last_name = split_name(request.realtor_name)
    realtor = await upsert_realtor_by_email(
        request.realtor_email,
        first_name=first_name,
        last_name=last_name,
        phone=request.phone,
        company=request.realtor_company,
    )
    realtor_id = realtor["id"]

    record = {
        "realtor_id": realtor_id,
        "homeowner_address": request.address or AUTO_ADDRESS_PLACEHOLDER,
        "homeowner_name": request.homeowner_name,
        "homeowner_email": request.homeowner_email,
        "listing_status": (request.listing_status or ListingStatus.NEW_LISTING).value,
        "campaign_source": request.campaign_source or AUTO_CAMPAIGN_SOURCE,
        "status": DropStatus.REQUESTED.value,
        "requested_date": _today(),
        "notes": build_auto_notes(request),
    }
    row = await _insert_drop(record)
    await increment_realtor_counter(realtor_id, "total_drops")

    drop_id = row.get("id")
    logger.info("Automated box drop created", drop_id=drop_id, realtor_id=realtor_id)
    return {
        "success": True,
        "dropId": drop_id,
        "realtorId": realtor_id,
        "message": f"Box drop #{drop_id} created for realtor #{realtor_id}",
    }
