from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LoadAccount:
    normal_cap_units: float
    overload_cap_units: float
    current_assigned_units: float

    def __post_init__(self) -> None:
        if self.current_assigned_units < 0:
            raise ValueError("current_assigned_units cannot be negative")
        if self.normal_cap_units < 0 or self.overload_cap_units < 0:
            raise ValueError("Load caps cannot be negative")

    @property
    def total_cap_units(self) -> float:
        return self.normal_cap_units + self.overload_cap_units


@dataclass(frozen=True)
class LoadAssessment:
    normal_cap_units: float
    total_cap_units: float
    current_assigned_units: float
    new_units: float
    potential_total_units: float
    exceeded: bool
    overload_applied: bool

    @property
    def overload_units_used(self) -> float:
        if not self.overload_applied:
            return 0.0
        return max(0.0, self.potential_total_units - self.normal_cap_units)

    @property
    def remaining_units(self) -> float:
        return max(0.0, self.total_cap_units - self.potential_total_units)


def assess_load(account: LoadAccount, new_units: float) -> LoadAssessment:
    """Project the faculty's load after adding `new_units`.

    `exceeded` blocks submission; `overload_applied` is only a warning.
    A total cap of zero means "no cap configured" and disables `exceeded`;
    a normal cap of zero disables `overload_applied` only.
    """
    if new_units < 0:
        raise ValueError("new_units cannot be negative")
    total_cap = account.total_cap_units
    potential_total = account.current_assigned_units + new_units
    exceeded = total_cap > 0 and potential_total > total_cap
    overload_applied = account.normal_cap_units > 0 and potential_total > account.normal_cap_units and not exceeded
    return LoadAssessment(
        normal_cap_units=account.normal_cap_units,
        total_cap_units=total_cap,
        current_assigned_units=account.current_assigned_units,
        new_units=new_units,
        potential_total_units=potential_total,
        exceeded=exceeded,
        overload_applied=overload_applied,
    )


def account_with_defaults(
    current_assigned_units: float,
    normal_cap_units: float | None,
    overload_cap_units: float | None,
    *,
    default_normal_cap_units: float,
    default_overload_cap_units: float,
) -> LoadAccount:
    return LoadAccount(
        normal_cap_units=default_normal_cap_units if normal_cap_units is None else normal_cap_units,
        overload_cap_units=default_overload_cap_units if overload_cap_units is None else overload_cap_units,
        current_assigned_units=current_assigned_units,
    )
