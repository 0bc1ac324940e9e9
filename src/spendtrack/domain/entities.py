"""Domain model entities for spendtrack.

These are pure data classes representing business concepts, independent of
database schema. The engine operates on these value copies; only the
persistence layer owns the stored rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class RuleKind(str, Enum):
    """Which dimension a classification rule assigns."""

    UNIT = "unit"
    CATEGORY = "category"


class SourceType(str, Enum):
    """Kind of import channel a transaction came from."""

    BANK = "bank"
    CREDIT_CARD = "credit_card"
    MANUAL = "manual"


# Fields a rule of each kind may match against.
UNIT_RULE_TYPES = ("source", "description")
CATEGORY_RULE_TYPES = ("source_category", "description")


@dataclass(frozen=True)
class Source:
    """Owning account / import channel of a transaction."""

    id: int
    name: str
    type: str
    created_at: datetime


@dataclass(frozen=True)
class Unit:
    """Flat organizational label (e.g. business vs. personal)."""

    id: int
    name: str
    color: str
    active: bool
    created_at: datetime
    description: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True)
class Category:
    """Category domain entity with hierarchical structure."""

    id: int
    name: str
    color: str
    parent_id: Optional[int]
    created_at: datetime
    icon: Optional[str] = None
    monthly_budget: Optional[Decimal] = None


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: int
    source_id: int
    date: date
    description: str
    amount: Decimal
    created_at: datetime
    unit_id: Optional[int] = None
    category_id: Optional[int] = None
    source_category: Optional[str] = None
    fingerprint: Optional[str] = None
    ignore: bool = False
    notes: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassificationRule:
    """User-authored pattern rule assigning a unit or category.

    ``target_id`` is a unit ID for unit rules and a category ID for
    category rules.
    """

    id: int
    kind: RuleKind
    rule_type: str
    match_type: str
    pattern: str
    target_id: int
    priority: int
    active: bool = True


@dataclass(frozen=True)
class ImportLog:
    """Record of one committed import batch."""

    id: int
    source_id: int
    import_date: datetime
    transactions_added: int
    transactions_skipped: int
    status: str
    file_name: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class CategoryNode:
    """A category with its resolved children, as produced by build_hierarchy."""

    category: Category
    children: list["CategoryNode"] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.category.id

    @property
    def name(self) -> str:
        return self.category.name


@dataclass(frozen=True)
class TransactionPage:
    """One page of a transaction listing plus the unpaginated total."""

    rows: tuple[Transaction, ...]
    total: int
