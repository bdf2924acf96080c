"""
Page route tables for the desktop and mobile layouts.

The mobile layout only exposes the counter-side pages (POS, attendance,
transactions); everything else is desktop-only and falls through to
``not_found`` on a phone.
"""

from __future__ import annotations

from dataclasses import dataclass, field

NOT_FOUND_PAGE = "not_found"


@dataclass(frozen=True)
class PageRoute:
    pattern: str
    page: str
    permission: str | None = None
    entity: str | None = None  # for parameterised detail pages

    @property
    def segments(self) -> list[str]:
        return _split(self.pattern)

    def match(self, segments: list[str]) -> dict[str, str] | None:
        own = self.segments
        if len(own) != len(segments):
            return None
        params: dict[str, str] = {}
        for expected, actual in zip(own, segments):
            if expected.startswith(":"):
                params[expected[1:]] = actual
            elif expected != actual:
                return None
        return params


@dataclass(frozen=True)
class RouteMatch:
    page: str
    params: dict[str, str] = field(default_factory=dict)
    permission: str | None = None
    message: str | None = None

    @property
    def found(self) -> bool:
        return self.page != NOT_FOUND_PAGE


DESKTOP_ROUTES: tuple[PageRoute, ...] = (
    PageRoute("/", "dashboard"),
    PageRoute("/pos", "pos", "pos_access"),
    PageRoute("/transactions", "transaction_list", "transactions_view"),
    PageRoute("/transactions/:id", "transaction_detail", "transactions_view", "Transaction"),
    PageRoute("/quotations", "quotation_list", "quotations_view"),
    PageRoute("/quotations/new", "new_quotation", "quotations_create"),
    PageRoute("/quotations/:id", "quotation_detail", "quotations_view", "Quotation"),
    PageRoute("/products", "products", "products_view"),
    PageRoute("/materials", "materials", "materials_view"),
    PageRoute("/materials/:materialId", "material_detail", "materials_view", "Material"),
    PageRoute("/customers", "customers", "customers_view"),
    PageRoute("/customers/:id", "customer_detail", "customers_view", "Customer"),
    PageRoute("/employees", "employees", "employees_view"),
    PageRoute("/purchase-orders", "purchase_orders", "materials_view"),
    PageRoute("/accounts", "accounting", "accounts_view"),
    PageRoute("/accounts/:id", "account_detail", "accounts_view", "Account"),
    PageRoute("/receivables", "receivables", "receivables_view"),
    PageRoute("/expenses", "expenses", "expenses_view"),
    PageRoute("/advances", "employee_advances", "advances_view"),
    PageRoute("/settings", "settings", "settings_access"),
    PageRoute("/account-settings", "account_settings"),
    PageRoute("/attendance", "attendance", "attendance_access"),
    PageRoute("/attendance/report", "attendance_report", "attendance_reports"),
    PageRoute("/stock-report", "stock_report", "stock_reports"),
    PageRoute("/transaction-items-report", "transaction_items_report", "transaction_reports"),
    PageRoute("/role-permissions", "role_permissions", "role_management"),
    PageRoute("/debug/product-analytics", "product_analytics_debug", "products_view"),
    PageRoute("/material-movements", "material_movement_report", "stock_reports"),
    PageRoute("/service-material-report", "service_material_report", "stock_reports"),
    PageRoute("/cash-flow", "cash_flow", "financial_reports"),
)

MOBILE_ROUTES: tuple[PageRoute, ...] = (
    PageRoute("/", "pos", "pos_access"),
    PageRoute("/pos", "pos", "pos_access"),
    PageRoute("/attendance", "attendance", "attendance_access"),
    PageRoute("/transactions", "transaction_list", "transactions_view"),
    PageRoute("/transactions/:id", "transaction_detail", "transactions_view", "Transaction"),
)


def _split(path: str) -> list[str]:
    trimmed = path.split("?", 1)[0].strip("/")
    if not trimmed:
        return []
    # Paths arrive already percent-decoded by the router.
    return [s.strip() for s in trimmed.split("/")]


def resolve(path: str, mobile: bool) -> RouteMatch:
    """Find the page for *path* in the mobile or desktop table.

    A detail route hit with a blank identifier resolves to ``not_found``
    with a readable message instead of failing downstream.
    """
    segments = _split(path)
    for route in MOBILE_ROUTES if mobile else DESKTOP_ROUTES:
        params = route.match(segments)
        if params is None:
            continue
        if any(not value for value in params.values()):
            return RouteMatch(NOT_FOUND_PAGE, message=f"{route.entity or 'Page'} not found")
        return RouteMatch(route.page, params, route.permission)
    return RouteMatch(NOT_FOUND_PAGE, message="Page not found")
