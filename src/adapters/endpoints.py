"""Backend route table.

Only the hierarchical list routes the CLI renders live here; auth routes are
configured through `AppSettings`. Routes with `:name` placeholders are filled
with `replace_url_params`.
"""

from __future__ import annotations

from urllib.parse import quote

CHART_OF_ACCOUNTS = "/chart-of-accounts"
ITEM_CATEGORIES = "/item-categories"

# Lists whose entities reference a parent and render as trees.
HIERARCHICAL_LISTS = {
    "accounts": CHART_OF_ACCOUNTS,
    "categories": ITEM_CATEGORIES,
}


def replace_url_params(path: str, params: dict[str, str]) -> str:
    """Fill `:name` placeholders, e.g. `/users/:id` with `{"id": "42"}`."""

    result = path
    for key, value in params.items():
        result = result.replace(f":{key}", quote(str(value), safe=""))
    return result
