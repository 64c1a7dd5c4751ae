"""Test data factories using Faker."""

from faker import Faker
from typing import Optional

from src.models.listing_case import ListcaseStatus

fake = Faker()


def create_user_data(role: Optional[str] = None) -> dict:
    """Create test user row data."""
    return {
        "id": fake.uuid4(),
        "email": fake.email(),
        "role": role,
    }


def create_agent_data(with_user: bool = True) -> dict:
    """Create an agent row with its embedded user."""
    user = create_user_data(role="Agent")
    return {
        "id": f"agent-{fake.random_int(min=1000, max=9999)}",
        "user_id": user["id"],
        "user": user if with_user else None,
    }


def create_listing_case_data(
    case_id: Optional[int] = None,
    status: ListcaseStatus = ListcaseStatus.CREATED
) -> dict:
    """Create a listing_cases row as returned by Supabase."""
    owner = create_user_data(role="User")
    return {
        "id": case_id if case_id is not None else fake.random_int(min=1, max=100000),
        "title": fake.sentence(nb_words=4),
        "description": fake.text(max_nb_chars=120),
        "postcode": fake.random_int(min=2000, max=7999),
        "price": fake.random_int(min=100000, max=2000000),
        "user_id": owner["id"],
        "user": owner,
        "listcase_status": status.value,
        "is_deleted": False,
        "created_at": "2024-12-01T09:00:00+00:00",
        "updated_at": "2024-12-01T09:00:00+00:00",
    }
