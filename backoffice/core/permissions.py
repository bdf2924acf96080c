"""
Roles and the default role → permission matrix.

The session gate only cares about *whether* someone is signed in; this
module answers *what* they may open once they are.
"""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    CASHIER = "cashier"
    DESIGNER = "designer"
    OPERATOR = "operator"
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    OWNER = "owner"
    ME = "me"
    CEO = "ceo"


VALID_ROLES = {r.value for r in Role}

PERMISSIONS = (
    "products_view", "products_create", "products_edit", "products_delete",
    "materials_view", "materials_create", "materials_edit", "materials_delete",
    "pos_access",
    "transactions_view", "transactions_create", "transactions_edit", "transactions_delete",
    "quotations_view", "quotations_create", "quotations_edit",
    "customers_view", "customers_create", "customers_edit", "customers_delete",
    "employees_view", "employees_create", "employees_edit", "employees_delete",
    "accounts_view", "accounts_create", "accounts_edit",
    "receivables_view",
    "expenses_view", "expenses_create",
    "advances_view", "advances_create",
    "financial_reports", "stock_reports", "transaction_reports", "attendance_reports",
    "settings_access", "role_management", "attendance_access",
)


def _grant(*names: str) -> dict[str, bool]:
    granted = set(names)
    unknown = granted.difference(PERMISSIONS)
    if unknown:
        raise ValueError(f"Unknown permissions: {sorted(unknown)}")
    return {p: p in granted for p in PERMISSIONS}


def _all_except(*names: str) -> dict[str, bool]:
    return _grant(*(p for p in PERMISSIONS if p not in names))


_OWNER = _grant(*PERMISSIONS)

DEFAULT_PERMISSIONS: dict[str, dict[str, bool]] = {
    Role.OWNER.value: _OWNER,
    Role.CEO.value: _OWNER,
    Role.ME.value: _OWNER,
    Role.ADMIN.value: _all_except("role_management"),
    Role.SUPERVISOR.value: _all_except(
        "products_delete", "materials_delete", "transactions_delete", "customers_delete",
        "employees_create", "employees_edit", "employees_delete",
        "accounts_create", "accounts_edit",
        "settings_access", "role_management",
    ),
    Role.CASHIER.value: _grant(
        "products_view", "products_create", "products_edit",
        "materials_view",
        "pos_access",
        "transactions_view", "transactions_create", "transactions_edit",
        "quotations_view", "quotations_create", "quotations_edit",
        "customers_view", "customers_create", "customers_edit",
        "receivables_view",
        "attendance_access",
    ),
    Role.DESIGNER.value: _grant(
        "products_view", "products_create", "products_edit",
        "materials_view",
        "transactions_view",
        "quotations_view", "quotations_create", "quotations_edit",
        "customers_view",
        "stock_reports",
        "attendance_access",
    ),
    Role.OPERATOR.value: _grant("attendance_access"),
}


def role_permissions(role: str | None) -> dict[str, bool]:
    """Return a copy of the permission map for *role* (empty when unknown)."""
    return dict(DEFAULT_PERMISSIONS.get(role or "", {}))


def has_permission(role: str | None, permission: str) -> bool:
    return DEFAULT_PERMISSIONS.get(role or "", {}).get(permission, False)
