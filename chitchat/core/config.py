import os
from pathlib import Path

from pydantic import ConfigDict, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    SECRET: str
    DATABASE_URL: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    COOKIE_SECURE: bool = True

    # Registration rules
    ALLOWED_EMAIL_DOMAINS: list[str] = ["gmail.com"]
    PASSWORD_MIN_LENGTH: int = 8
    HANDLE_PREFIX: str = "73"

    # AI assistant quota
    QUESTION_LIMIT: int = 3
    RESET_INTERVAL_HOURS: float = 5

    # AI upstream
    AI_API_URL: str = (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-1.5-flash-latest:generateContent"
    )
    AI_API_KEYS: list[str] = []
    AI_TIMEOUT_SECONDS: float = 30.0

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8")

    @classmethod
    def get_required_fields(cls) -> list[str]:
        """Get all required fields (those without default values)."""
        return [
            name for name, field in cls.model_fields.items() if field.is_required()
        ]

    def __init__(self, **kwargs):
        try:
            super().__init__(**kwargs)
        except ValidationError as e:
            env_file = Path(".env")
            required_fields = self.get_required_fields()

            missing_fields = []
            for field in required_fields:
                if not os.getenv(field) and field not in kwargs:
                    missing_fields.append(field)

            if missing_fields:
                fields_str = "\n".join(f"- {field}" for field in missing_fields)
                example_env = "\n".join(
                    f"{field}=your_{field.lower()}_here" for field in missing_fields
                )

                if not env_file.exists():
                    error_msg = (
                        f"\n\nError: Missing required environment variables!"
                        f"\nMissing variables: {fields_str}"
                        f"\n\nFor local development, create a .env file with:"
                        f"\n{example_env}"
                    )
                else:
                    error_msg = (
                        f"\n\nError: Missing required environment variables!"
                        f"\nMissing variables: {fields_str}"
                        f"\n\nPlease add these to your .env file or set as environment variables."
                    )

                raise ValueError(error_msg) from e
            else:
                # Not a missing-variable problem, surface pydantic's own report
                raise


settings = Settings()
