"""
Rate Table Loader (``payroll_config.loader``).

Responsibility
--------------
Loads a statutory rate YAML file and parses it into the frozen
``payroll_config.schema`` dataclasses.  Runtime callers go through
``payroll_config.get_active_rates()``; this module is the parsing step
behind it and is also used directly by tests that load an alternate set.

Invariants enforced
-------------------
* Every number is parsed through ``Decimal(str(value))`` so YAML floats
  never leak binary rounding into money.
* No silent defaults for required keys.
* ``compute_checksum`` is deterministic for identical content.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required key  -> ``KeyError`` propagates.
* Non-numeric value or bad date  -> ``ValueError``.
* Structurally invalid table  -> ``RateTableError`` from the schema.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    BonusRates,
    GenderExemption,
    GratuityRates,
    IncomeTaxRates,
    LabourWelfareFundRule,
    OvertimeRates,
    ProfessionalTaxJurisdiction,
    ProfessionalTaxSlab,
    ProvidentFundRates,
    StateInsuranceRates,
    StatutoryRateTables,
    StructureDefaults,
    TaxRegimeRates,
    TaxSlab,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any) -> Decimal:
    """Parse a YAML scalar into an exact ``Decimal``."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Cannot parse decimal from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Cannot parse decimal from {value!r}") from None


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else parse_decimal(value)


def parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_provident_fund(data: dict[str, Any]) -> ProvidentFundRates:
    return ProvidentFundRates(
        wage_ceiling=parse_decimal(data["wage_ceiling"]),
        employee_rate=parse_decimal(data["employee_rate"]),
        fund_rate=parse_decimal(data["fund_rate"]),
        pension_rate=parse_decimal(data["pension_rate"]),
        pension_cap=parse_decimal(data["pension_cap"]),
        insurance_rate=parse_decimal(data["insurance_rate"]),
        insurance_admin_rate=parse_decimal(data["insurance_admin_rate"]),
        fund_admin_rate=parse_decimal(data["fund_admin_rate"]),
    )


def parse_state_insurance(data: dict[str, Any]) -> StateInsuranceRates:
    return StateInsuranceRates(
        wage_limit=parse_decimal(data["wage_limit"]),
        disability_wage_limit=parse_decimal(data["disability_wage_limit"]),
        employee_rate=parse_decimal(data["employee_rate"]),
        employer_rate=parse_decimal(data["employer_rate"]),
        min_daily_wage=parse_decimal(data["min_daily_wage"]),
        cycle_start_months=tuple(int(m) for m in data.get("cycle_start_months", (4, 10))),
    )


def parse_pt_slab(data: dict[str, Any]) -> ProfessionalTaxSlab:
    month = data.get("exception_month")
    return ProfessionalTaxSlab(
        min=parse_decimal(data["min"]),
        max=_optional_decimal(data["max"]),
        amount=parse_decimal(data["amount"]),
        exception_month=None if month is None else int(month),
        exception_amount=_optional_decimal(data.get("exception_amount")),
    )


def parse_pt_jurisdiction(code: str, data: dict[str, Any]) -> ProfessionalTaxJurisdiction:
    exemption = data.get("gender_exemption")
    return ProfessionalTaxJurisdiction(
        code=code,
        name=data.get("name", code),
        slabs=tuple(parse_pt_slab(s) for s in data["slabs"]),
        gender_exemption=(
            GenderExemption(
                gender=str(exemption["gender"]).lower(),
                max_wage=parse_decimal(exemption["max_wage"]),
            )
            if exemption
            else None
        ),
    )


def parse_tax_regime(code: str, data: dict[str, Any]) -> TaxRegimeRates:
    return TaxRegimeRates(
        code=code,
        slabs=tuple(
            TaxSlab(
                upper_bound=_optional_decimal(s["upper_bound"]),
                rate=parse_decimal(s["rate"]),
            )
            for s in data["slabs"]
        ),
        standard_deduction=parse_decimal(data["standard_deduction"]),
        rebate_ceiling=parse_decimal(data["rebate_ceiling"]),
    )


def parse_income_tax(data: dict[str, Any]) -> IncomeTaxRates:
    return IncomeTaxRates(
        periods_per_year=int(data["periods_per_year"]),
        cess_rate=parse_decimal(data["cess_rate"]),
        regimes={
            code: parse_tax_regime(code, regime)
            for code, regime in data["regimes"].items()
        },
    )


def parse_labour_welfare(code: str, data: dict[str, Any]) -> LabourWelfareFundRule:
    return LabourWelfareFundRule(
        code=code,
        name=data.get("name", code),
        employee_amount=parse_decimal(data["employee_amount"]),
        employer_amount=parse_decimal(data["employer_amount"]),
        deduction_months=tuple(int(m) for m in data["deduction_months"]),
        wage_ceiling=_optional_decimal(data.get("wage_ceiling")),
        min_wage=_optional_decimal(data.get("min_wage")),
    )


def _parse_fields(cls: type, data: dict[str, Any]) -> Any:
    """Build a flat all-Decimal dataclass from same-named keys."""
    return cls(**{name: parse_decimal(data[name]) for name in cls.__dataclass_fields__})


def parse_rate_tables(data: dict[str, Any], checksum: str = "") -> StatutoryRateTables:
    """Parse a whole rate set dict into a ``StatutoryRateTables`` snapshot."""
    return StatutoryRateTables(
        version=str(data["version"]),
        effective_from=parse_date(data["effective_from"]),
        provident_fund=parse_provident_fund(data["provident_fund"]),
        state_insurance=parse_state_insurance(data["state_insurance"]),
        professional_tax={
            str(code).upper(): parse_pt_jurisdiction(str(code).upper(), jurisdiction)
            for code, jurisdiction in data["professional_tax"].items()
        },
        income_tax=parse_income_tax(data["income_tax"]),
        gratuity=_parse_fields(GratuityRates, data["gratuity"]),
        bonus=_parse_fields(BonusRates, data["bonus"]),
        overtime=_parse_fields(OvertimeRates, data["overtime"]),
        labour_welfare={
            str(code).upper(): parse_labour_welfare(str(code).upper(), rule)
            for code, rule in data.get("labour_welfare", {}).items()
        },
        structure_defaults=_parse_fields(StructureDefaults, data["structure_defaults"]),
        checksum=checksum,
    )


def load_rate_tables(path: Path) -> StatutoryRateTables:
    """Load and parse a rate set file, stamping it with its checksum."""
    data = load_yaml_file(path)
    return parse_rate_tables(data, checksum=compute_checksum(data))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
