"""
tradeflow_authz.authz.models

Authorization domain types.

Responsibilities:
- Closed enumerations for roles, modules and actions.
- Immutable capability sets, category scopes and the cached authorization view.
- Pure decision predicates over those values (no I/O).
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from tradeflow_authz.auth.models import Identity

T = TypeVar("T")


class Role(enum.StrEnum):
    admin = "admin"
    sales_staff = "sales_staff"
    inventory_staff = "inventory_staff"
    accountant = "accountant"
    none = "none"

    @classmethod
    def parse(cls, raw: object) -> Role:
        """
        Map a remote role value onto the enumeration.

        Absent, malformed and unknown values (the server enum may carry roles this
        client does not know) all become `Role.none`.
        """

        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                return cls.none
        return cls.none


class Module(enum.StrEnum):
    customers = "customers"
    suppliers = "suppliers"
    inventory = "inventory"
    categories = "categories"
    quotations = "quotations"
    purchase_orders = "purchase_orders"
    sales_invoices = "sales_invoices"
    delivery_notes = "delivery_notes"
    image_gallery = "image_gallery"
    reports = "reports"
    settings = "settings"


class Action(enum.StrEnum):
    view = "view"
    create = "create"
    edit = "edit"
    delete = "delete"


class ResolutionState(enum.StrEnum):
    unresolved = "UNRESOLVED"
    resolving = "RESOLVING"
    ready = "READY"


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    # A resolver result plus whether it is the safe default standing in for a failed fetch.
    value: T
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class Capability:
    module: Module
    action: Action

    def __str__(self) -> str:
        return f"{self.module}:{self.action}"


@dataclass(frozen=True, slots=True)
class CapabilitySet:
    """
    Set of granted (module, action) pairs.

    No implication between actions: `edit` does not grant `view`.
    """

    items: frozenset[Capability] = frozenset()

    @classmethod
    def of(cls, pairs: Iterable[tuple[Module | str, Action | str]]) -> CapabilitySet:
        return cls(frozenset(Capability(Module(m), Action(a)) for m, a in pairs))

    @classmethod
    def empty(cls) -> CapabilitySet:
        return cls()

    def __contains__(self, capability: object) -> bool:
        return capability in self.items

    def __iter__(self) -> Iterator[Capability]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def has_permission(self, module: Module | str, action: Action | str) -> bool:
        return Capability(Module(module), Action(action)) in self.items

    def can_view(self, module: Module | str) -> bool:
        return self.has_permission(module, Action.view)

    def can_create(self, module: Module | str) -> bool:
        return self.has_permission(module, Action.create)

    def can_edit(self, module: Module | str) -> bool:
        return self.has_permission(module, Action.edit)

    def can_delete(self, module: Module | str) -> bool:
        return self.has_permission(module, Action.delete)


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class EffectiveScope:
    """
    Resolved, role-aware category visibility.

    `degraded` marks the fail-closed fallback used when the universe or the grants
    could not be fetched; it is distinct from an account that simply has no grants.
    """

    restricted: bool
    allowed_category_ids: frozenset[str]
    universe: tuple[Category, ...] = ()
    degraded: bool = False

    @classmethod
    def unrestricted(cls, universe: Iterable[Category]) -> EffectiveScope:
        cats = tuple(universe)
        return cls(restricted=False, allowed_category_ids=frozenset(c.id for c in cats), universe=cats)

    @classmethod
    def locked_down(cls) -> EffectiveScope:
        return cls(restricted=True, allowed_category_ids=frozenset(), degraded=True)

    @property
    def allowed_categories(self) -> tuple[Category, ...]:
        # Universe order (by name) is kept for display.
        return tuple(c for c in self.universe if c.id in self.allowed_category_ids)

    def can_access_category(self, category_id: str) -> bool:
        if self.degraded:
            return False
        if not self.restricted:
            return True
        return category_id in self.allowed_category_ids

    def filter_ids_for_query(self) -> frozenset[str] | None:
        """
        None means "no category clause needed"; a (possibly empty) set must be applied
        as an `IN` restriction.
        """

        if not self.restricted:
            return None
        return self.allowed_category_ids


@dataclass(frozen=True, slots=True)
class AuthorizationView:
    """
    One mutually consistent snapshot of role, capabilities and scope for an identity.
    """

    identity: Identity
    role: Role
    capabilities: CapabilitySet
    scope: EffectiveScope
    # Names of resolvers that fell back to their safe default ("role", "permissions", "scope").
    degraded: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin

    @property
    def is_sales(self) -> bool:
        return self.role is Role.sales_staff

    @property
    def is_inventory(self) -> bool:
        # Admins are allowed through inventory-only screens.
        return self.role in (Role.inventory_staff, Role.admin)

    @property
    def is_accountant(self) -> bool:
        return self.role is Role.accountant

    @property
    def has_restrictions(self) -> bool:
        return self.scope.restricted

    def can_view(self, module: Module | str) -> bool:
        return self.capabilities.can_view(module)

    def can_create(self, module: Module | str) -> bool:
        return self.capabilities.can_create(module)

    def can_edit(self, module: Module | str) -> bool:
        return self.capabilities.can_edit(module)

    def can_delete(self, module: Module | str) -> bool:
        return self.capabilities.can_delete(module)

    def can_access_category(self, category_id: str) -> bool:
        if self.scope.degraded:
            return False
        if self.is_admin:
            return True
        return self.scope.can_access_category(category_id)

    def filter_ids_for_query(self) -> frozenset[str] | None:
        return self.scope.filter_ids_for_query()

    def as_dict(self) -> dict[str, object]:
        return {
            "subject": self.identity.subject,
            "email": self.identity.email,
            "role": str(self.role),
            "capabilities": sorted(str(c) for c in self.capabilities),
            "restricted": self.scope.restricted,
            "allowed_categories": [
                {"id": c.id, "name": c.name} for c in self.scope.allowed_categories
            ],
            "degraded": sorted(self.degraded),
        }


# --- Module Notes -----------------------------------------------------------
# Everything here is immutable; the facade swaps whole views instead of mutating them.
