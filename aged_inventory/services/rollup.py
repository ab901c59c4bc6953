"""
Rollup of SKU/size-level inventory rows into style+color aggregates.

How each aggregate field is merged is declared once in ROLLUP_POLICY and
applied by a single fold over the rows, in input order.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from aged_inventory.schemas.aged_inventory import RawInventoryRow
from aged_inventory.services.image_resolver import resolve_image_url
from aged_inventory.services.normalizers import parse_int, parse_number, resolve_sizes, round_half_up

logger = logging.getLogger(__name__)


class MergeRule(str, Enum):
    SUM = "sum"
    MEAN = "mean"
    APPEND = "append"
    FIRST_NON_BLANK = "first_non_blank"
    LAST_NON_BLANK = "last_non_blank"
    MAX_WITH_LINKED = "max_with_linked"


@dataclass(frozen=True)
class FieldRule:
    """
    Merge rule for one aggregate field.

    Attributes:
        rule: How values from successive rows combine
        source: RawInventoryRow attribute the value is read from
        linked: (aggregate field, source attribute) pairs that move together
            with a MAX_WITH_LINKED field, always from the same row
        places: Decimal places the resolved number is rounded to
    """
    rule: MergeRule
    source: str
    linked: Tuple[Tuple[str, str], ...] = ()
    places: Optional[int] = None


ROLLUP_POLICY: Dict[str, FieldRule] = {
    "commodity": FieldRule(MergeRule.FIRST_NON_BLANK, "commodity"),
    "sizes": FieldRule(MergeRule.APPEND, "size"),
    "total_remaining": FieldRule(MergeRule.SUM, "remaining_stock"),
    "total_value": FieldRule(MergeRule.SUM, "remaining_asset_value", places=2),
    "total_current": FieldRule(MergeRule.SUM, "current_stock"),
    "total_committed": FieldRule(MergeRule.SUM, "committed_stock"),
    "unit_cost_avg": FieldRule(MergeRule.MEAN, "unit_cost", places=4),
    "age_days": FieldRule(
        MergeRule.MAX_WITH_LINKED,
        "age_in_days",
        linked=(("age_bracket", "age_bracket"), ("last_stock_in_date", "last_stock_in_date")),
    ),
    "purchase_order_no": FieldRule(MergeRule.LAST_NON_BLANK, "purchase_order_no"),
}


@dataclass
class RolledInventoryRecord:
    """A style+color aggregate, ready to persist"""
    style: str
    color: str
    commodity: str = ""
    sizes: List[str] = field(default_factory=list)
    total_remaining: float = 0.0
    total_value: float = 0.0
    total_current: float = 0.0
    total_committed: float = 0.0
    unit_cost_avg: float = 0.0
    age_days: int = 0
    age_bracket: str = ""
    last_stock_in_date: str = ""
    purchase_order_no: str = ""
    image_url: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.style, self.color)

    def to_columns(self) -> Dict[str, Any]:
        """Column values for the aged_inventory table"""
        return {
            "style": self.style,
            "color": self.color,
            "commodity": self.commodity,
            "sizes": ", ".join(self.sizes),
            "total_remaining": self.total_remaining,
            "total_value": self.total_value,
            "total_current": self.total_current,
            "total_committed": self.total_committed,
            "unit_cost_avg": self.unit_cost_avg,
            "age_days": self.age_days,
            "age_bracket": self.age_bracket,
            "trsc_date": self.last_stock_in_date,
            "po_no": self.purchase_order_no,
            "image_url": self.image_url,
        }


@dataclass
class RollupResult:
    records: Dict[Tuple[str, str], RolledInventoryRecord]
    row_count: int

    @property
    def group_count(self) -> int:
        return len(self.records)


class _GroupState:
    """Running fold state for one style+color group"""

    def __init__(self, style: str, color: str, policy: Mapping[str, FieldRule]):
        self.style = style
        self.color = color
        self.rows: List[RawInventoryRow] = []
        self.values: Dict[str, Any] = {}
        self.counts: Dict[str, int] = {}

        for name, rule in policy.items():
            if rule.rule in (MergeRule.SUM, MergeRule.MEAN):
                self.values[name] = 0.0
                self.counts[name] = 0
            elif rule.rule is MergeRule.APPEND:
                self.values[name] = []
            elif rule.rule is MergeRule.MAX_WITH_LINKED:
                self.values[name] = 0
                for linked_name, _ in rule.linked:
                    self.values[linked_name] = ""
            else:
                self.values[name] = ""

    def fold(self, row: RawInventoryRow, policy: Mapping[str, FieldRule]) -> None:
        self.rows.append(row)

        for name, rule in policy.items():
            raw = getattr(row, rule.source).strip()

            if rule.rule is MergeRule.SUM:
                self.values[name] += parse_number(raw)
            elif rule.rule is MergeRule.MEAN:
                self.values[name] += parse_number(raw)
                self.counts[name] += 1
            elif rule.rule is MergeRule.APPEND:
                self.values[name].append(raw)
            elif rule.rule is MergeRule.FIRST_NON_BLANK:
                if raw and not self.values[name]:
                    self.values[name] = raw
            elif rule.rule is MergeRule.LAST_NON_BLANK:
                if raw:
                    self.values[name] = raw
            elif rule.rule is MergeRule.MAX_WITH_LINKED:
                # Strictly greater: on ties the earliest row keeps the whole trio
                candidate = parse_int(raw)
                if candidate > self.values[name]:
                    self.values[name] = candidate
                    for linked_name, linked_source in rule.linked:
                        self.values[linked_name] = getattr(row, linked_source).strip()

    def resolve(self, policy: Mapping[str, FieldRule], catalog_images: Mapping[str, str]) -> RolledInventoryRecord:
        resolved: Dict[str, Any] = dict(self.values)

        for name, rule in policy.items():
            if rule.rule is MergeRule.MEAN:
                count = self.counts[name]
                resolved[name] = resolved[name] / count if count else 0.0
            elif rule.rule is MergeRule.APPEND and name == "sizes":
                resolved[name] = resolve_sizes(resolved[name])

            if rule.places is not None:
                resolved[name] = round_half_up(resolved[name], rule.places)

        return RolledInventoryRecord(
            style=self.style,
            color=self.color,
            image_url=resolve_image_url(self.rows, self.style, catalog_images),
            **resolved,
        )


def roll_up(
    rows: Iterable[RawInventoryRow],
    catalog_images: Optional[Mapping[str, str]] = None,
    policy: Mapping[str, FieldRule] = ROLLUP_POLICY,
) -> RollupResult:
    """
    Fold raw report rows into style+color aggregates.

    Rows with a blank style are dropped. Style and color are trimmed before
    keying. catalog_images is a style -> image URL snapshot used when the
    report carries no CAD link for a group.
    """
    catalog_images = catalog_images or {}
    groups: Dict[Tuple[str, str], _GroupState] = {}
    row_count = 0

    for row in rows:
        row_count += 1
        style = row.style.strip()
        color = row.color.strip()
        if not style:
            continue

        key = (style, color)
        state = groups.get(key)
        if state is None:
            state = groups[key] = _GroupState(style, color, policy)
        state.fold(row, policy)

    records = {key: state.resolve(policy, catalog_images) for key, state in groups.items()}
    logger.debug(f"Rolled up {row_count} rows into {len(records)} style/color records")
    return RollupResult(records=records, row_count=row_count)
