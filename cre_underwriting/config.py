from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    app_name: str = "CRE Underwriting Engine"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # IRR solver (Newton-Raphson)
    irr_guess: Decimal = Decimal("0.10")
    irr_tolerance: Decimal = Decimal("0.0001")
    irr_max_iterations: int = 100

    # Advisory thresholds for underwriting warnings
    min_dscr_warning: Decimal = Decimal("1.25")
    max_ltv_warning: Decimal = Decimal("0.80")

    # Projection defaults
    default_exit_cap_rate: Decimal = Decimal("0.055")
    default_selling_cost_rate: Decimal = Decimal("0.02")
    default_hold_period: int = 5

    # Sensitivity grid guard (cells per matrix)
    sensitivity_max_points: int = 100


settings = Settings()
