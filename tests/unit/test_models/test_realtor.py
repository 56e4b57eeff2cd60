"""Tests for Realtor models."""

import pytest
from pydantic import ValidationError
from src.models.realtor import Realtor, RealtorCreate, RealtorUpdate


@pytest.mark.unit
def test_realtor_valid():
    """Test valid realtor creation."""
    realtor = Realtor(id=7, first_name="Dana", email="dana@peakrealty.com")

    assert realtor.id == 7
    assert realtor.first_name == "Dana"
    assert realtor.email == "dana@peakrealty.com"
    assert realtor.total_drops == 0  # Default value
    assert realtor.total_conversions == 0


@pytest.mark.unit
def test_realtor_with_optional_fields():
    """Test realtor with all optional fields."""
    realtor = Realtor(
        id=7,
        first_name="Dana",
        last_name="Reyes",
        email="dana@peakrealty.com",
        phone="719-555-0101",
        company="Peak Realty",
        total_drops=12,
        total_conversions=3,
    )

    assert realtor.last_name == "Reyes"
    assert realtor.company == "Peak Realty"
    assert realtor.total_drops == 12
    assert realtor.total_conversions == 3


@pytest.mark.unit
def test_realtor_missing_required_fields():
    """Test that required fields are enforced."""
    with pytest.raises(ValidationError):
        Realtor(id=7)


@pytest.mark.unit
def test_realtor_counters_cannot_be_negative():
    with pytest.raises(ValidationError):
        Realtor(id=7, first_name="Dana", total_drops=-1)


@pytest.mark.unit
def test_realtor_create_requires_first_name():
    with pytest.raises(ValidationError):
        RealtorCreate(first_name="")


@pytest.mark.unit
def test_realtor_update_ignores_counters_and_unknown_fields():
    """Counters only change through box drop side effects."""
    update = RealtorUpdate.model_validate({
        "company": "Summit Homes",
        "total_drops": 99,
        "total_conversions": 99,
        "favorite_color": "teal",
    })

    assert update.model_dump(exclude_unset=True) == {"company": "Summit Homes"}
