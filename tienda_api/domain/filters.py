"""Filter compiler for the ``/filtrar`` endpoints.

Each entity declares, once, which query parameters it understands and how
each one is executed:

* equality and range parameters become native store predicates,
* ``ordenar`` keys are either native (store order-by) or client-side
  fallbacks for orderings the store cannot express,
* text parameters (``nombre``) are applied client-side after the fetch,
  because the store has no accent-insensitive substring search,
* ``limite`` becomes a native result cap.

``FilterConfig.compile`` turns raw string parameters into a ``FilterPlan``;
``FilterPlan.apply`` runs the residual client-side steps on fetched records.

Parsing is permissive on purpose: a numeric parameter that is empty, not a
number, or not finite is ignored rather than rejected. Callers get results
filtered by the parameters that did parse; ``FilterPlan.applied`` says which.
Integer parameters (``stock_min``, ``stock_max``, ``limite``) accept whole
numbers only: ``5.5`` is dropped, not truncated to 5.

Ties in either ordering keep the order the store returned them in, which is
unspecified. Results with equal sort keys may come back in a different
order on each call.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from tienda_api.infrastructure.store import OrderBy, Predicate, Record
from tienda_api.utils.text import contains_normalized, normalize_text

ACTIVE_PREDICATE = Predicate("activo", "==", True)


class FilterKind(str, Enum):
    EQUALITY = "equality"
    RANGE = "range"
    TEXT = "text"


def parse_int(raw: str) -> Optional[int]:
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return None


def parse_float(raw: str) -> Optional[float]:
    try:
        value = float(raw.strip())
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def parse_str(raw: str) -> Optional[str]:
    return raw if raw else None


@dataclass(frozen=True)
class FilterField:
    """One recognised query parameter."""
    param: str
    field: str
    kind: FilterKind
    op: str = "=="
    parse: Callable[[str], Any] = parse_str

    @property
    def store_native(self) -> bool:
        return self.kind is not FilterKind.TEXT


@dataclass(frozen=True)
class SortOption:
    """One accepted value of ``ordenar``."""
    key: str
    field: str
    descending: bool = False
    store_native: bool = True


@dataclass
class FilterPlan:
    """Compiled form of one request's filter parameters."""
    predicates: List[Predicate]
    order_by: Optional[OrderBy] = None
    limit: Optional[int] = None
    text_filters: List[Tuple[str, str]] = field(default_factory=list)
    client_sort: Optional[SortOption] = None
    applied: Dict[str, Any] = field(default_factory=dict)

    def apply(self, records: List[Record]) -> List[Record]:
        """Run the client-side text filters and fallback sort."""
        for field_name, needle in self.text_filters:
            records = [r for r in records if contains_normalized(r.get(field_name), needle)]

        if self.client_sort is not None:
            records = sort_records(records, self.client_sort.field, self.client_sort.descending)

        return records


def sort_records(records: List[Record], field_name: str, descending: bool = False) -> List[Record]:
    """Stable client-side sort; records missing the field go last.

    Strings compare folded (accent and case insensitive).
    """
    present = [r for r in records if r.get(field_name) is not None]
    missing = [r for r in records if r.get(field_name) is None]

    def key(record: Record):
        value = record[field_name]
        return normalize_text(value) if isinstance(value, str) else value

    return sorted(present, key=key, reverse=descending) + missing


class FilterConfig:
    """Per-entity filter vocabulary, built once at import time."""

    sort_param = "ordenar"
    limit_param = "limite"

    def __init__(self, fields: Sequence[FilterField], sorts: Sequence[SortOption]):
        self.fields = tuple(fields)
        self.sorts = {option.key: option for option in sorts}

    def compile(self, params: Mapping[str, str]) -> FilterPlan:
        """Translate raw query parameters into a ``FilterPlan``.

        Unknown parameters are ignored, as are unknown ``ordenar`` keys.
        """
        plan = FilterPlan(predicates=[ACTIVE_PREDICATE])

        for fld in self.fields:
            raw = params.get(fld.param)
            if raw is None or raw == "":
                continue
            value = fld.parse(raw)
            if value is None:
                continue
            plan.applied[fld.param] = value
            if fld.store_native:
                plan.predicates.append(Predicate(fld.field, fld.op, value))
            else:
                plan.text_filters.append((fld.field, normalize_text(value)))

        sort_key = (params.get(self.sort_param) or "").strip().lower()
        option = self.sorts.get(sort_key)
        if option is not None:
            plan.applied[self.sort_param] = option.key
            if option.store_native:
                plan.order_by = OrderBy(option.field, option.descending)
            else:
                plan.client_sort = option

        limit = parse_int(params.get(self.limit_param) or "")
        if limit is not None and limit > 0:
            plan.limit = limit
            plan.applied[self.limit_param] = limit

        return plan


# Shared fallback orderings the store has no native form for
_CLIENT_SORTS = (
    SortOption("nombre_desc", "nombre", descending=True, store_native=False),
    SortOption("fecha_asc", "fechaCreacion", descending=False, store_native=False),
)

PRODUCT_FILTERS = FilterConfig(
    fields=(
        FilterField("categoria", "categoria", FilterKind.EQUALITY),
        FilterField("stock_min", "stock", FilterKind.RANGE, ">=", parse_int),
        FilterField("stock_max", "stock", FilterKind.RANGE, "<=", parse_int),
        FilterField("precio_min", "precio", FilterKind.RANGE, ">=", parse_float),
        FilterField("precio_max", "precio", FilterKind.RANGE, "<=", parse_float),
        FilterField("nombre", "nombre", FilterKind.TEXT),
    ),
    sorts=(
        SortOption("precio_asc", "precio"),
        SortOption("precio_desc", "precio", descending=True),
        SortOption("nombre", "nombre"),
        SortOption("fecha_desc", "fechaCreacion", descending=True),
    ) + _CLIENT_SORTS,
)

USER_FILTERS = FilterConfig(
    fields=(
        FilterField("categoria", "categoria", FilterKind.EQUALITY),
        FilterField("edad_min", "edad", FilterKind.RANGE, ">=", parse_float),
        FilterField("edad_max", "edad", FilterKind.RANGE, "<=", parse_float),
        FilterField("nombre", "nombre", FilterKind.TEXT),
    ),
    sorts=(
        SortOption("edad_asc", "edad"),
        SortOption("edad_desc", "edad", descending=True),
        SortOption("nombre", "nombre"),
        SortOption("fecha_desc", "fechaCreacion", descending=True),
    ) + _CLIENT_SORTS,
)
