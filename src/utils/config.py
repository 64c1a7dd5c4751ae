"""Application settings read from environment variables."""

import os

from src.utils.errors import ConfigurationError


class AppConfig:
    """Settings resolved at call time so tests and cron handlers see current env."""

    DEFAULT_MONGODB_DATABASE = "realestate"
    DEFAULT_AWS_REGION = "ap-southeast-2"
    DEFAULT_FOLLOW_UP_MAX_ATTEMPTS = 5
    DEFAULT_FOLLOW_UP_BATCH_SIZE = 10

    REQUIRED_SETTINGS: dict[str, tuple[str, ...]] = {
        "supabase": ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"),
        "mongodb": ("MONGODB_URI",),
        "email": ("AWS_SES_SENDER_EMAIL",),
        "frontend": ("FRONTEND_URL",),
    }

    @classmethod
    def frontend_url(cls) -> str:
        """Base URL of the front end, used in notification links."""
        url = os.environ.get("FRONTEND_URL")
        if not url:
            raise ConfigurationError("FRONTEND_URL must be set")
        return url.rstrip("/")

    @classmethod
    def mongodb_uri(cls) -> str:
        uri = os.environ.get("MONGODB_URI")
        if not uri:
            raise ConfigurationError("MONGODB_URI must be set")
        return uri

    @classmethod
    def mongodb_database(cls) -> str:
        return os.environ.get("MONGODB_DATABASE", cls.DEFAULT_MONGODB_DATABASE)

    @classmethod
    def aws_region(cls) -> str:
        return os.environ.get("AWS_REGION", cls.DEFAULT_AWS_REGION)

    @classmethod
    def ses_sender_email(cls) -> str | None:
        return os.environ.get("AWS_SES_SENDER_EMAIL") or None

    @classmethod
    def follow_up_max_attempts(cls) -> int:
        return int(os.environ.get("FOLLOW_UP_MAX_ATTEMPTS", cls.DEFAULT_FOLLOW_UP_MAX_ATTEMPTS))

    @classmethod
    def follow_up_batch_size(cls) -> int:
        return int(os.environ.get("FOLLOW_UP_BATCH_SIZE", cls.DEFAULT_FOLLOW_UP_BATCH_SIZE))

    @classmethod
    def settings_status(cls) -> dict[str, bool]:
        """Presence of each backing service's settings, keyed by service."""
        return {
            name: all(os.environ.get(var) for var in env_vars)
            for name, env_vars in cls.REQUIRED_SETTINGS.items()
        }
