import enum
from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings

LIVE_API_BASE = "https://api-m.paypal.com"
SANDBOX_API_BASE = "https://api-m.sandbox.paypal.com"


class Profile(str, enum.Enum):
    LIVE = "live"
    SANDBOX = "sandbox"


class Settings(BaseSettings):
    database_url: str
    environment: str = "development"

    # Live credentials
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_webhook_id: str = ""
    paypal_live_plan_monthly: str = ""
    paypal_live_plan_yearly: str = ""
    paypal_live_plan_trial: str = ""
    paypal_live_api_base: str = LIVE_API_BASE

    # Sandbox credentials, each falls back to its live counterpart when empty
    paypal_sandbox_client_id: str = ""
    paypal_sandbox_client_secret: str = ""
    paypal_sandbox_webhook_id: str = ""
    paypal_sandbox_plan_monthly: str = ""
    paypal_sandbox_plan_yearly: str = ""
    paypal_sandbox_plan_trial: str = ""
    paypal_sandbox_api_base: str = SANDBOX_API_BASE

    paypal_timeout: float = 10.0
    max_body_bytes: int = 1_048_576
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


# field -> (live attribute, sandbox attribute)
PROFILE_FIELDS = {
    "client_id": ("paypal_client_id", "paypal_sandbox_client_id"),
    "client_secret": ("paypal_client_secret", "paypal_sandbox_client_secret"),
    "webhook_id": ("paypal_webhook_id", "paypal_sandbox_webhook_id"),
    "plan_monthly": ("paypal_live_plan_monthly", "paypal_sandbox_plan_monthly"),
    "plan_yearly": ("paypal_live_plan_yearly", "paypal_sandbox_plan_yearly"),
    "plan_trial": ("paypal_live_plan_trial", "paypal_sandbox_plan_trial"),
    "api_base": ("paypal_live_api_base", "paypal_sandbox_api_base"),
}


def profile_for(environment: str) -> Profile:
    if environment.strip().lower() == "production":
        return Profile.LIVE
    return Profile.SANDBOX


def resolve(settings: Settings, profile: Profile, field: str) -> str:
    """
    Return the value of ``field`` for ``profile``.

    Sandbox values fall back to the live value when unset.
    """
    live_attr, sandbox_attr = PROFILE_FIELDS[field]
    live_value = getattr(settings, live_attr)
    if profile is Profile.LIVE:
        return live_value
    return getattr(settings, sandbox_attr) or live_value


@dataclass(frozen=True)
class PlanIds:
    monthly: str = ""
    yearly: str = ""
    trial: str = ""


@dataclass(frozen=True)
class PayPalConfig:
    profile: Profile
    client_id: str
    client_secret: str
    webhook_id: str
    api_base: str
    plans: PlanIds
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PayPalConfig":
        profile = profile_for(settings.environment)
        return cls(
            profile=profile,
            client_id=resolve(settings, profile, "client_id"),
            client_secret=resolve(settings, profile, "client_secret"),
            webhook_id=resolve(settings, profile, "webhook_id"),
            api_base=resolve(settings, profile, "api_base").rstrip("/"),
            plans=PlanIds(
                monthly=resolve(settings, profile, "plan_monthly"),
                yearly=resolve(settings, profile, "plan_yearly"),
                trial=resolve(settings, profile, "plan_trial"),
            ),
            timeout=settings.paypal_timeout,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


@lru_cache
def get_paypal_config() -> PayPalConfig:
    return PayPalConfig.from_settings(get_settings())
