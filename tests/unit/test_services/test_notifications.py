"""Tests for agent status change notifications."""

import pytest

from src.models.listing_case import Agent, ListcaseStatus, User
from src.services.notifications import (
    STATUS_CHANGED_SUBJECT,
    build_listing_url,
    notify_agents_of_status_change,
)
from tests.utils.assertions import assert_email_sent

FRONTEND_URL = "http://test-frontend.com"


@pytest.mark.unit
@pytest.mark.parametrize("base", ["http://test-frontend.com", "http://test-frontend.com/"])
def test_build_listing_url(base):
    assert build_listing_url(base, 42) == "http://test-frontend.com/listing-cases/42"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_notify_agents_sends_one_email_per_agent(mock_email_sender, sample_listing, sample_agent):
    second = Agent(id="agent-2", user_id="u2", user=User(id="u2", email="second@example.com"))

    sent = await notify_agents_of_status_change(
        mock_email_sender,
        [sample_agent, second],
        sample_listing,
        ListcaseStatus.CREATED,
        ListcaseStatus.PENDING,
        FRONTEND_URL,
    )

    assert sent == 2
    for recipient in ("agent@example.com", "second@example.com"):
        assert_email_sent(
            mock_email_sender.send_email,
            recipient,
            STATUS_CHANGED_SUBJECT,
            "http://test-frontend.com/listing-cases/1",
        )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_notify_agents_body_names_both_statuses(mock_email_sender, sample_listing, sample_agent):
    await notify_agents_of_status_change(
        mock_email_sender, [sample_agent], sample_listing,
        ListcaseStatus.PENDING, ListcaseStatus.DELIVERED, FRONTEND_URL
    )

    html_body = mock_email_sender.send_email.await_args.args[2]
    assert "Test Listing" in html_body
    assert "Pending" in html_body
    assert "Delivered" in html_body


@pytest.mark.unit
@pytest.mark.asyncio
async def test_notify_agents_skips_agents_without_email(mock_email_sender, sample_listing):
    agents = [Agent(id="agent-3", user_id=None, user=None)]

    sent = await notify_agents_of_status_change(
        mock_email_sender, agents, sample_listing,
        ListcaseStatus.CREATED, ListcaseStatus.PENDING, FRONTEND_URL
    )

    assert sent == 0
    mock_email_sender.send_email.assert_not_awaited()
