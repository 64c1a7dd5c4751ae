"""Tests for listing case models."""

import pytest
from pydantic import ValidationError

from src.models.listing_case import (
    ListcaseStatus,
    ListingCase,
    ListingCaseUpdateRequest,
    ListingCaseUpdateResponse,
)
from src.models.roles import UserRole
from tests.utils.factories import create_listing_case_data


@pytest.mark.unit
def test_listing_case_defaults():
    """New listing cases start in Created and are not deleted."""
    listing = ListingCase(id=1, title="Harbour View")

    assert listing.listcase_status == ListcaseStatus.CREATED
    assert listing.is_deleted is False
    assert listing.agent_listing_cases == []


@pytest.mark.unit
def test_listing_case_from_row_with_embedded_user():
    row = create_listing_case_data(case_id=7, status=ListcaseStatus.PENDING)

    listing = ListingCase.model_validate(row)

    assert listing.id == 7
    assert listing.listcase_status == ListcaseStatus.PENDING
    assert listing.user.role == UserRole.USER


@pytest.mark.unit
def test_listing_case_rejects_negative_price():
    with pytest.raises(ValidationError):
        ListingCase(id=1, title="Harbour View", price=-1)


@pytest.mark.unit
def test_listing_case_rejects_unknown_status():
    with pytest.raises(ValidationError):
        ListingCase(id=1, title="Harbour View", listcase_status="Archived")


@pytest.mark.unit
def test_to_row_only_contains_table_columns(sample_listing):
    row = sample_listing.to_row()

    assert row == {
        "title": "Test Listing",
        "description": "Three bedroom house",
        "postcode": 2000,
        "price": 1000000.0,
        "user_id": "owner-1",
        "listcase_status": "Created",
        "is_deleted": False,
    }


@pytest.mark.unit
def test_update_request_changes_skip_unset_fields():
    request = ListingCaseUpdateRequest(title="New title", price=250000)

    assert request.changes() == {"title": "New title", "price": 250000.0}


@pytest.mark.unit
def test_update_request_rejects_empty_title():
    with pytest.raises(ValidationError):
        ListingCaseUpdateRequest(title="")


@pytest.mark.unit
def test_update_response_from_listing(sample_listing):
    response = ListingCaseUpdateResponse.model_validate(sample_listing.model_dump())

    assert response.id == 1
    assert response.title == "Test Listing"
    assert response.listcase_status == ListcaseStatus.CREATED
    assert not hasattr(response, "user")
