"""Commission categories and their keys in the admin options store."""

from __future__ import annotations

CATEGORY_PROJECTS_MERCHANTS = "projects-merchants"

COMMISSION_OPTION_KEYS: dict[str, str] = {
    "products": "commission_products",
    CATEGORY_PROJECTS_MERCHANTS: "commission_projects_merchants",
    "services-technicians": "commission_services_technicians",
    "rentals-merchants": "commission_rentals_merchants",
}

# Applied whenever a rate is missing, unparseable, out of range or unreachable
FALLBACK_PERCENT = 0.0

MAX_PERCENT = 100.0
