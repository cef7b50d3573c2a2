"""
Tests for the statutory compliance validators.

Covers:
- IRD number mod-11 checksum (8 and 9 digit forms, separators)
- Bank account format
- Tax code and contribution rate membership
- Minimum wage (equal passes, one cent below fails)
- Weekly hours cap (warning only)
"""

from decimal import Decimal

import pytest

from payroll_engines.compliance import (
    VALID_TAX_CODES,
    Severity,
    check_contribution_rate,
    check_hours_per_week,
    check_minimum_wage,
    check_weekly_hours,
    is_valid_bank_account,
    is_valid_contribution_rate,
    is_valid_ird_number,
    is_valid_tax_code,
    weekly_hours,
)


class TestIrdNumber:

    @pytest.mark.parametrize(
        "raw",
        ["49-091-850", "49091850", "049091850", "49 091 850", "123456785", "123-456-785"],
    )
    def test_valid(self, raw):
        assert is_valid_ird_number(raw)

    @pytest.mark.parametrize(
        "raw",
        [
            "123456789",   # wrong check digit
            "12345678",    # padded, wrong check digit
            "1234567",     # too short
            "1234567890",  # too long
            "12345678a",
            "",
            None,
        ],
    )
    def test_invalid(self, raw):
        assert not is_valid_ird_number(raw)

    def test_check_digit_ten_is_never_valid(self):
        """Weighted sum 89 leaves remainder 1, so no single digit can match."""
        for last in range(10):
            assert not is_valid_ird_number(f"13641013{last}")


class TestBankAccount:

    @pytest.mark.parametrize("raw", ["12-3456-7890123-00", "01-0902-0068389-001"])
    def test_valid(self, raw):
        assert is_valid_bank_account(raw)

    @pytest.mark.parametrize(
        "raw",
        ["12-3456-789", "123456789012300", "12-3456-7890123-0", "AB-3456-7890123-00", "", None],
    )
    def test_invalid(self, raw):
        assert not is_valid_bank_account(raw)


class TestTaxCode:

    @pytest.mark.parametrize("code", VALID_TAX_CODES)
    def test_recognised_codes(self, code):
        assert is_valid_tax_code(code)

    @pytest.mark.parametrize("code", ["X", "m", "M  SL", "SL", "", None])
    def test_unrecognised_codes(self, code):
        assert not is_valid_tax_code(code)

    def test_custom_allowed_set(self):
        assert is_valid_tax_code("ND", allowed=("ND",))
        assert not is_valid_tax_code("M", allowed=("ND",))


class TestContributionRate:

    @pytest.mark.parametrize("rate", ["3", "4", "6", "8", "10", "3.0"])
    def test_allowed(self, rate):
        assert is_valid_contribution_rate(Decimal(rate))

    @pytest.mark.parametrize("rate", ["0", "2", "5", "3.5"])
    def test_not_allowed(self, rate):
        assert not is_valid_contribution_rate(Decimal(rate))

    def test_missing_rate_is_invalid(self):
        violation = check_contribution_rate(None)
        assert violation is not None
        assert violation.code == "INVALID_CONTRIBUTION_RATE"
        assert violation.is_error
        assert "3, 4, 6, 8, 10" in violation.message

    def test_allowed_rate_has_no_violation(self):
        assert check_contribution_rate(Decimal("4")) is None


class TestMinimumWage:

    def test_equal_to_minimum_passes(self):
        assert check_minimum_wage(Decimal("22.70"), Decimal("22.70")) is None

    def test_above_minimum_passes(self):
        assert check_minimum_wage(Decimal("30"), Decimal("22.70")) is None

    def test_one_cent_below_fails(self):
        violation = check_minimum_wage(Decimal("22.69"), Decimal("22.70"))
        assert violation is not None
        assert violation.code == "BELOW_MINIMUM_WAGE"
        assert violation.severity == Severity.ERROR
        assert "22.69" in violation.message
        assert "22.70" in violation.message

    def test_category_named_in_message(self):
        violation = check_minimum_wage(Decimal("18"), Decimal("18.16"), "training")
        assert "training" in violation.message


class TestWeeklyHours:

    def test_weekly_average(self):
        assert weekly_hours(Decimal("100"), 14) == Decimal("50")

    def test_at_cap_passes(self):
        assert check_weekly_hours(Decimal("100"), 14) is None

    def test_over_cap_is_warning(self):
        violation = check_weekly_hours(Decimal("101"), 14)
        assert violation is not None
        assert violation.code == "WEEKLY_HOURS_EXCEEDED"
        assert violation.severity == Severity.WARNING
        assert not violation.is_error

    def test_custom_cap(self):
        assert check_weekly_hours(Decimal("90"), 14, cap=Decimal("40")) is not None


class TestHoursPerWeek:

    def test_one_long_week_is_flagged(self):
        week_hours = {
            (2024, 27): Decimal("40"),
            (2024, 28): Decimal("70"),
            (2024, 29): Decimal("50"),
        }
        violations = check_hours_per_week(week_hours)
        assert [v.message for v in violations] == [
            "Week 2024-W28 has 70.00 hours, more than the 50 hour cap",
        ]
        assert violations[0].code == "WEEKLY_HOURS_EXCEEDED"
        assert violations[0].severity == Severity.WARNING

    def test_every_long_week_reported_in_order(self):
        violations = check_hours_per_week(
            {(2025, 1): Decimal("41"), (2024, 52): Decimal("45")}, cap=Decimal("40"),
        )
        assert [v.message[:13] for v in violations] == ["Week 2024-W52", "Week 2025-W01"]

    def test_no_weeks(self):
        assert check_hours_per_week({}) == []
