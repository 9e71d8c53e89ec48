"""Vocabulary of activity action identifiers and their display labels."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType

from sqlalchemy import distinct, select
from sqlalchemy.orm import Session

from inventory.core.config import settings
from inventory.models import ActivityLog

KNOWN_ACTIONS: frozenset[str] = frozenset(
    {
        "USER_LOGIN",
        "USER_LOGOUT",
        "USER_REGISTERED",
        "USER_CREATED",
        "USER_UPDATED",
        "USER_ACTIVATED",
        "USER_DEACTIVATED",
        "USER_DELETED",
        "PASSWORD_CHANGED",
        "CATEGORY_CREATED",
        "CATEGORY_UPDATED",
        "CATEGORY_DELETED",
        "PRODUCT_CREATED",
        "PRODUCT_UPDATED",
        "PRODUCT_DELETED",
        "STOCK_UPDATED",
        "STOCK_RECEIVED",
        "STOCK_ADJUSTED",
        "SUPPLIER_CREATED",
        "SUPPLIER_UPDATED",
        "SUPPLIER_DELETED",
        "SUPPLIER_BALANCE_UPDATED",
        "SALE_CREATED",
        "LOYALTY_REDEEMED",
        "CUSTOMER_CREATED",
        "CUSTOMER_UPDATED",
        "CUSTOMER_DELETED",
        "TAX_RATE_CREATED",
        "TAX_RATE_UPDATED",
        "TAX_RATE_DELETED",
        "PURCHASE_ORDER_CREATED",
        "PURCHASE_ORDER_UPDATED",
        "PURCHASE_CANCELED",
        "PURCHASE_PAYMENT_RECORDED",
        "SETTING_UPDATED",
        "DISCOUNT_RULE_CREATED",
        "DISCOUNT_RULE_UPDATED",
        "DISCOUNT_RULE_DELETED",
        "BACKUP_CREATED",
        "BACKUP_FAILED",
        "BACKUP_LIST_FAILED",
        "MPESA_INITIATED",
        "MPESA_INITIATE_FAILED",
        "MPESA_STATUS_CHECK",
        "MPESA_STATUS_CHECK_FAILED",
        "MPESA_PAID",
        "MPESA_FAILED",
        "MPESA_DB_UPDATE_FAILED",
    }
)

CUSTOM_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "MPESA_INITIATED": "m-pesa payment initiated",
        "MPESA_PAID": "m-pesa payment confirmed",
        "MPESA_INITIATE_FAILED": "m-pesa payment initiation failed",
        "MPESA_STATUS_CHECK": "m-pesa status check",
        "MPESA_STATUS_CHECK_FAILED": "m-pesa status check failed",
        "MPESA_FAILED": "m-pesa payment failed",
        "MPESA_DB_UPDATE_FAILED": "m-pesa sale update failed",
    }
)

_SEPARATORS = re.compile(r"[_\-.:/]+")


def default_label(action: str) -> str:
    """Derive a label by turning separators into spaces and lower-casing."""
    return _SEPARATORS.sub(" ", action).strip().lower()


@dataclass(frozen=True)
class ActionTaxonomy:
    """Immutable set of action identifiers with optional custom labels."""

    known: frozenset[str]
    labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def label(self, action: str) -> str:
        return self.labels.get(action) or default_label(action)

    def merged_with(self, observed: Iterable[str | None]) -> ActionTaxonomy:
        """Return a taxonomy that also contains every non-empty observed action."""
        extra = {action for action in observed if action}
        if extra <= self.known:
            return self
        return ActionTaxonomy(known=self.known | extra, labels=self.labels)

    def sorted_actions(self) -> list[str]:
        return sorted(self.known)


def build_taxonomy(extra_actions: Iterable[str] = ()) -> ActionTaxonomy:
    return ActionTaxonomy(known=KNOWN_ACTIONS | {a for a in extra_actions if a}, labels=CUSTOM_LABELS)


@lru_cache(maxsize=1)
def default_taxonomy() -> ActionTaxonomy:
    """Return the process-wide taxonomy, built once from the fixed list and settings."""
    return build_taxonomy(settings.activity_extra_actions)


def list_known_actions(db: Session, taxonomy: ActionTaxonomy | None = None) -> list[str]:
    """Return the fixed actions plus every action present in the log, sorted."""
    base = taxonomy or default_taxonomy()
    observed = db.scalars(select(distinct(ActivityLog.action))).all()
    return base.merged_with(observed).sorted_actions()
