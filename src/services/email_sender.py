"""Email delivery via Amazon SES with Jinja2-rendered HTML bodies."""

import asyncio
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from jinja2 import Environment, FileSystemLoader, TemplateError

from src.utils.config import AppConfig
from src.utils.errors import ConfigurationError, EmailDeliveryError
from src.utils.logging import get_structured_logger, mask_sensitive_data

logger = get_structured_logger(__name__)

TEMPLATE_PATH = Path(__file__).parent.parent / "templates" / "emails"


class EmailSender:
    """
    Sends single-recipient HTML emails through SES.

    The boto3 client is created on first send so the sender can be built
    without AWS credentials in the environment.
    """

    def __init__(self, sender: Optional[str] = None, ses_client=None):
        self.sender = sender if sender is not None else AppConfig.ses_sender_email()
        self._ses_client = ses_client
        self.jinja_env = Environment(loader=FileSystemLoader(TEMPLATE_PATH), autoescape=True)

    @property
    def ses_client(self):
        if self._ses_client is None:
            self._ses_client = boto3.client("ses", region_name=AppConfig.aws_region())
        return self._ses_client

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render an HTML email template using Jinja2."""
        try:
            template = self.jinja_env.get_template(template_name)
            return template.render(context)
        except TemplateError as e:
            logger.error("Error rendering email template", template=template_name, error=str(e))
            raise

    async def send_email(self, recipient: str, subject: str, html_body: str) -> None:
        """Send one HTML email. Raises EmailDeliveryError when SES rejects it."""
        if not self.sender:
            raise ConfigurationError("AWS_SES_SENDER_EMAIL must be set to send email")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.attach(MIMEText(html_body, "html"))

        try:
            # boto3 is synchronous
            await asyncio.to_thread(
                self.ses_client.send_raw_email,
                Source=self.sender,
                Destinations=[recipient],
                RawMessage={"Data": msg.as_string()},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to send email",
                subject=subject,
                recipient=mask_sensitive_data(recipient),
                error=str(e)
            )
            raise EmailDeliveryError(f"Failed to send email: {e}")

        logger.info("Email sent", subject=subject, recipient=mask_sensitive_data(recipient))
