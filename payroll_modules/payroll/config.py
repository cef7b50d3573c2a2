"""
Payroll Configuration Schema.

Operational settings for the entry builder, batch processor and bank file.
Statutory rates are NOT here; they come from ``payroll_config``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from payroll_engines.pay_rates import RateTableKind
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.config")


@dataclass
class BankFileSettings:
    """Fixed fields of the bank payment batch file."""
    bank_code: str = "12"
    branch_code: str = "3456"
    sequence: str = "01"
    description_prefix: str = "KIWIHR PAY"
    particulars: str = "WAGES"
    payee_name_length: int = 12

    def __post_init__(self):
        if not self.bank_code.isdigit():
            raise ValueError(f"bank_code must be numeric, got '{self.bank_code}'")
        if not self.branch_code.isdigit():
            raise ValueError(f"branch_code must be numeric, got '{self.branch_code}'")
        if self.payee_name_length <= 0:
            raise ValueError("payee_name_length must be positive")
        for name in ("description_prefix", "particulars"):
            if "," in getattr(self, name):
                raise ValueError(f"{name} cannot contain a comma")


@dataclass
class PayrollConfig:
    """
    Configuration schema for the payroll module.

    Override at instantiation:

        config = PayrollConfig(
            weekly_hours_cap=Decimal("45"),
            holiday_rate_table=RateTableKind.GENERIC,
        )
    """

    # Time splitting
    standard_daily_hours: Decimal = Decimal("8")
    first_tier_overtime_hours: Decimal = Decimal("3")
    max_entry_hours: Decimal = Decimal("24")

    # Compliance
    weekly_hours_cap: Decimal = Decimal("50")

    # Public holiday multiplier table (2.5x overtime path vs 2.0x generic)
    holiday_rate_table: RateTableKind = RateTableKind.OVERTIME

    # Batch
    continue_on_error: bool = True

    bank_file: BankFileSettings = field(default_factory=BankFileSettings)

    def __post_init__(self):
        self.holiday_rate_table = RateTableKind(self.holiday_rate_table)

        if self.standard_daily_hours <= 0:
            raise ValueError("standard_daily_hours must be positive")
        if self.first_tier_overtime_hours < 0:
            raise ValueError("first_tier_overtime_hours cannot be negative")
        if self.max_entry_hours <= 0:
            raise ValueError("max_entry_hours must be positive")
        if self.weekly_hours_cap <= 0:
            raise ValueError("weekly_hours_cap must be positive")

        logger.info(
            "payroll_config_initialized",
            extra={
                "standard_daily_hours": str(self.standard_daily_hours),
                "first_tier_overtime_hours": str(self.first_tier_overtime_hours),
                "weekly_hours_cap": str(self.weekly_hours_cap),
                "holiday_rate_table": self.holiday_rate_table.value,
                "continue_on_error": self.continue_on_error,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        logger.info("payroll_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary (e.g. a loaded settings file)."""
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        for key in (
            "standard_daily_hours",
            "first_tier_overtime_hours",
            "max_entry_hours",
            "weekly_hours_cap",
        ):
            if key in data:
                data[key] = Decimal(str(data[key]))
        if isinstance(data.get("bank_file"), dict):
            data["bank_file"] = BankFileSettings(**data["bank_file"])
        return cls(**data)
