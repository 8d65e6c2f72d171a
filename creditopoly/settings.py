"""
Engine configuration using pydantic-settings.

Feature toggles and economic rates that shape the credit economy. Values can
be overridden per process through environment variables or a `.env` file:

    CREDITOPOLY_ENABLE_BANK_LOANS=false
    CREDITOPOLY_LOAN_INTEREST_RATE=0.15

Per-game overrides are passed directly: `EngineSettings(enable_jackpot=True)`.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Feature toggles and rates for a game.

    Environment variables (prefix: CREDITOPOLY_):
        CREDITOPOLY_ENABLE_HOUSING_SCARCITY  - limit houses/hotels to the bank supply
        CREDITOPOLY_ENABLE_BANK_LOANS        - allow bank loans
        CREDITOPOLY_ENABLE_ECONOMIC_EVENTS   - roll economic events on Free Parking
        CREDITOPOLY_ENABLE_RENT_NEGOTIATION  - negotiate unpaid rent instead of bankruptcy
        CREDITOPOLY_ENABLE_JACKPOT           - fund a Free Parking jackpot from mortgages
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="CREDITOPOLY_",
    )

    # Information hiding for snapshots handed to other players
    hide_opponent_wealth: bool = Field(default=False, description="Mask other players' cash in viewer snapshots.")
    hide_opponent_properties: bool = Field(
        default=False, description="Mask other players' holdings in viewer snapshots."
    )

    enable_housing_scarcity: bool = Field(default=True, description="Enforce the 32 house / 12 hotel supply.")

    enable_bank_loans: bool = Field(default=True, description="Allow players to borrow from the bank.")
    loan_interest_rate: float = Field(default=0.10, ge=0, le=1, description="Per-turn loan interest.")
    max_loan_percent: float = Field(default=0.5, gt=0, le=1, description="Borrowable share of net worth.")
    min_loan_amount: int = Field(default=50, gt=0, description="Smallest loan the bank will issue.")

    enable_economic_events: bool = Field(default=True, description="Roll economic events on Free Parking.")

    enable_rent_negotiation: bool = Field(default=True, description="Offer negotiation when rent is unaffordable.")
    iou_interest_rate: float = Field(default=0.05, ge=0, le=1, description="IOU interest per turn of the debtor.")

    enable_property_insurance: bool = Field(default=True, description="Allow insuring properties.")
    insurance_cost_percent: float = Field(default=0.05, gt=0, le=1, description="Premium as share of price.")
    insurance_duration_rounds: int = Field(default=5, gt=0, description="Rounds of cover per premium.")
    insurance_covers_repairs: bool = Field(
        default=True, description="Insured properties are exempt from card repair charges."
    )

    enable_property_value_fluctuation: bool = Field(
        default=False, description="Let building activity move property values."
    )
    appreciation_rate: float = Field(default=0.05, ge=0, le=1, description="Group appreciation per build.")

    enable_bankruptcy_restructuring: bool = Field(default=True, description="Offer Chapter 11 before bankruptcy.")
    chapter11_turns: int = Field(default=5, gt=0, description="Turns allowed to meet the Chapter 11 target.")

    enable_inflation: bool = Field(default=True, description="Raise the GO salary as rounds complete.")
    enable_progressive_tax: bool = Field(default=True, description="Offer 10% of net worth as income tax.")

    enable_jackpot: bool = Field(default=False, description="Fund a Free Parking jackpot from mortgages.")
    jackpot_mortgage_share: float = Field(default=0.15, ge=0, le=1, description="Mortgage share paid into the jackpot.")
    jackpot_win_chance: float = Field(default=0.3, ge=0, le=1, description="Chance Free Parking pays the jackpot.")

    mortgage_breaks_monopoly: bool = Field(
        default=False, description="Treat a mortgaged group member as breaking the monopoly."
    )

    @field_validator(
        "loan_interest_rate",
        "max_loan_percent",
        "iou_interest_rate",
        "insurance_cost_percent",
        "appreciation_rate",
        mode="before",
    )
    @classmethod
    def percent_to_fraction(cls, value):
        """
        Accept rates written as whole percentages.

        `CREDITOPOLY_LOAN_INTEREST_RATE=10` is read as 0.10.
        """
        if isinstance(value, str):
            value = float(value.strip().rstrip("%"))
        if isinstance(value, (int, float)) and value > 1:
            return value / 100
        return value


@lru_cache
def get_engine_settings() -> EngineSettings:
    """Return cached engine settings loaded from the environment."""
    return EngineSettings()
