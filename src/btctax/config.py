from decimal import Decimal

from pydantic_settings import BaseSettings

from btctax.domain.enums.tax import AccountingMethod


class Settings(BaseSettings):
    annual_loss_limit_usd: Decimal = Decimal("3000")  # $1,500 if married filing separately
    transfer_tolerance_btc: Decimal = Decimal("0.00000001")
    transfer_window_days: int = 7
    default_method: AccountingMethod = AccountingMethod.FIFO

    class Config:
        env_file = ".env"
        env_prefix = "BTCTAX_"
