"""
Process-wide configuration.

Settings are read from the environment once, when a Lambda container starts,
and handed to every service and AWS client at construction time. Each field
is read from the environment variable of the same name in upper case
(GROUPS_TABLE, LOG_LEVEL, CASCADE_MIRROR_ON_PAYMENT_DELETE, ...).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(extra="ignore")

    groups_table: str = 'household-ledger-groups'
    members_table: str = 'household-ledger-members'
    categories_table: str = 'household-ledger-categories'
    recurring_expenses_table: str = 'household-ledger-recurring-expenses'
    one_time_expenses_table: str = 'household-ledger-one-time-expenses'
    expense_payments_table: str = 'household-ledger-expense-payments'
    payments_table: str = 'household-ledger-payments'

    log_level: str = 'INFO'

    # LocalStack support
    use_localstack: bool = False
    localstack_endpoint: Optional[str] = None

    # Receipt text extraction (AWS Textract)
    receipt_ocr_enabled: bool = True
    textract_region: Optional[str] = None
    receipt_max_size_mb: int = Field(default=5, ge=1, le=10)

    cascade_mirror_on_payment_delete: bool = False

    @property
    def endpoint_url(self) -> Optional[str]:
        """Endpoint override for AWS clients, if any."""
        if self.use_localstack and self.localstack_endpoint:
            return self.localstack_endpoint
        return None


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached for the life of the process).

    Call get_settings.cache_clear() to reload.
    """
    return Settings()
