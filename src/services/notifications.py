"""Agent notifications for listing case changes."""

from src.models.listing_case import Agent, ListcaseStatus, ListingCase
from src.services.email_sender import EmailSender
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

STATUS_CHANGED_SUBJECT = "Your ListingCase Status Has Changed"
STATUS_CHANGED_TEMPLATE = "listing_status_changed.html"


def build_listing_url(frontend_url: str, case_id: int) -> str:
    return f"{frontend_url.rstrip('/')}/listing-cases/{case_id}"


def render_status_changed_email(
    email_sender: EmailSender,
    listing: ListingCase,
    previous_status: ListcaseStatus,
    new_status: ListcaseStatus,
    frontend_url: str
) -> str:
    """HTML body announcing a status change."""
    return email_sender.render_template(STATUS_CHANGED_TEMPLATE, {
        "title": listing.title,
        "previous_status": ListcaseStatus(previous_status).value,
        "new_status": ListcaseStatus(new_status).value,
        "listing_url": build_listing_url(frontend_url, listing.id),
    })


async def notify_agents_of_status_change(
    email_sender: EmailSender,
    agents: list[Agent],
    listing: ListingCase,
    previous_status: ListcaseStatus,
    new_status: ListcaseStatus,
    frontend_url: str
) -> int:
    """
    Email every agent's user about a status change.

    Agents without a user email are skipped. Returns the number of emails sent.
    """
    html_body = render_status_changed_email(email_sender, listing, previous_status, new_status, frontend_url)

    sent = 0
    for agent in agents:
        if agent.user is None or not agent.user.email:
            logger.warning("Agent has no email contact, skipping", agent_id=agent.id, listing_case_id=listing.id)
            continue
        await email_sender.send_email(agent.user.email, STATUS_CHANGED_SUBJECT, html_body)
        sent += 1

    logger.info(
        "Agents notified of status change",
        listing_case_id=listing.id,
        agents_total=len(agents),
        emails_sent=sent
    )
    return sent
