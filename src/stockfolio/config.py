from pydantic_settings import BaseSettings, SettingsConfigDict

from stockfolio.domain.enums import MatchingPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOCKFOLIO_", env_file=".env", extra="ignore")

    matching_policy: MatchingPolicy = MatchingPolicy.FIFO
    price_stale_after_hours: float = 24.0
    include_closed_holdings: bool = False

    # Return solver
    days_per_year: int = 365
    xirr_guess: float = 0.1
    xirr_max_iterations: int = 50
    xirr_tolerance: float = 1e-7
    xirr_derivative_floor: float = 1e-9


settings = Settings()
