"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock, AsyncMock, MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DATABASE", "realestate_test")
os.environ.setdefault("FRONTEND_URL", "http://test-frontend.com")
os.environ.setdefault("AWS_SES_SENDER_EMAIL", "noreply@example.com")
os.environ.setdefault("FOLLOW_UP_MAX_ATTEMPTS", "5")

from src.models.listing_case import Agent, ListcaseStatus, ListingCase, User
from src.services.email_sender import EmailSender
from src.services.follow_up_dispatcher import FollowUpDispatcher
from src.services.listing_case_service import ListingCaseService

FRONTEND_URL = "http://test-frontend.com"


@pytest.fixture
def sample_listing():
    """Listing case 1 in Created status."""
    return ListingCase(
        id=1,
        title="Test Listing",
        description="Three bedroom house",
        postcode=2000,
        price=1000000,
        user_id="owner-1",
        user=User(id="owner-1", email="listing-owner@example.com"),
        listcase_status=ListcaseStatus.CREATED,
    )


@pytest.fixture
def sample_agent():
    """Agent with a user email contact."""
    return Agent(
        id="agent-1",
        user_id="agent-user-1",
        user=User(id="agent-user-1", email="agent@example.com"),
    )


@pytest.fixture
def mock_repository():
    """ListingCaseRepository with every store call mocked."""
    repository = Mock()
    repository.get_listing_case_by_id = AsyncMock(return_value=None)
    repository.create_listing_case = AsyncMock()
    repository.update_status = AsyncMock()
    repository.update_listing_case = AsyncMock()
    repository.soft_delete_listing_case = AsyncMock()
    repository.get_agents_of_listing_case = AsyncMock(return_value=[])
    repository.log_status_history = AsyncMock(return_value=True)
    repository.log_case_history = AsyncMock(return_value=True)
    repository.log_user_activity = AsyncMock(return_value=True)
    return repository


@pytest.fixture
def mock_follow_ups():
    """FollowUpRepository that stores nothing and echoes enqueued tasks."""
    follow_ups = Mock()
    follow_ups.enqueue = AsyncMock(side_effect=lambda task: task)
    follow_ups.get_pending_batch = AsyncMock(return_value=[])
    follow_ups.get_for_listing_case = AsyncMock(return_value=[])
    follow_ups.mark_step_completed = AsyncMock()
    follow_ups.mark_completed = AsyncMock()
    follow_ups.record_failure = AsyncMock()
    return follow_ups


@pytest.fixture
def mock_status_history_repository():
    repository = Mock()
    repository.get_by_listing_case_ids = AsyncMock(return_value=[])
    return repository


@pytest.fixture
def mock_email_sender():
    """EmailSender that renders real templates but never calls SES."""
    sender = EmailSender(sender="noreply@example.com", ses_client=MagicMock())
    sender.send_email = AsyncMock()
    return sender


@pytest.fixture
def dispatcher(mock_repository, mock_follow_ups, mock_email_sender):
    return FollowUpDispatcher(
        mock_repository,
        mock_follow_ups,
        mock_email_sender,
        frontend_url=FRONTEND_URL,
        max_attempts=3,
    )


@pytest.fixture
def listing_case_service(
    mock_repository,
    mock_status_history_repository,
    mock_follow_ups,
    mock_email_sender,
    dispatcher
):
    return ListingCaseService(
        mock_repository,
        mock_status_history_repository,
        mock_follow_ups,
        mock_email_sender,
        dispatcher=dispatcher,
    )


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for testing."""
    client = Mock()
    client.table = Mock(return_value=Mock())
    return client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
