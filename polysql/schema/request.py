"""Pydantic models for polysql requests.

A request is the JSON-shaped description of one statement.  The field
names follow the wire format (``orderBy``, ``groupBy``, ``tableName``,
``case_field``); snake_case names are accepted as well so Python callers
can build requests directly::

    QueryParams.model_validate({
        "select": ["t.id", "t.name"],
        "where": [{"key": "status", "value": 1}],  # or {"status": 1}
        "orderBy": {"id": "DESC"},
        "limit": [0, 20],
        "configs": {"tableName": "users"},
    })

Models only check shape.  Identifier safety, operator resolution and the
empty-value skip rule are applied by the compilers, because they depend on
which conditions survive.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from polysql.errors import InvalidRequestError
from polysql.schema.operators import NULL_SENTINEL
from polysql.schema.where import Condition, parse_simple_where


class TableConfigs(BaseModel):
    """Per-request table configuration.

    Attributes:
        table_name: Target table (``tableName`` on the wire).  May be
            schema-qualified (``app.users``).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    table_name: str = Field(alias="tableName")


class FilteredRequest(BaseModel):
    """Common base for requests carrying a condition list.

    ``keyword`` and ``where`` are synonyms; ``keyword`` wins when both are
    given.  Either may be a condition list or a simple-object mapping
    (``{"status": 1, "age": {"$gte": 18}}``), see
    :func:`~polysql.schema.where.parse_simple_where`.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    keyword: list[Condition] | None = None
    where: list[Condition] | None = None
    configs: TableConfigs

    @field_validator("keyword", "where", mode="before")
    @classmethod
    def _parse_simple_where(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return parse_simple_where(v)
        return v

    @property
    def conditions(self) -> list[Condition]:
        """Return the effective condition list."""
        if self.keyword is not None:
            return self.keyword
        return self.where or []

    @property
    def effective_conditions(self) -> list[Condition]:
        """Return the conditions that survive the empty-value skip rule."""
        return [c for c in self.conditions if not c.is_skipped]

    @property
    def table_name(self) -> str:
        """Shortcut for ``configs.table_name``."""
        return self.configs.table_name


class QueryParams(FilteredRequest):
    """A SELECT / COUNT request.

    Attributes:
        select: Column list; empty means ``t.*``.
        order_by: Column -> ``"ASC"`` / ``"DESC"`` (``orderBy``).  Insertion
            order is preserved; other directions are ignored.
        group_by: GROUP BY columns (``groupBy``).
        limit: ``[offset, count]`` pagination pair.
    """

    select: list[str] = Field(default_factory=list)
    order_by: dict[str, str] = Field(default_factory=dict, alias="orderBy")
    group_by: list[str] = Field(default_factory=list, alias="groupBy")
    limit: list[int] | None = None

    @field_validator("limit")
    @classmethod
    def _check_limit(cls, v: list[int] | None) -> list[int] | None:
        if v is not None and any(n < 0 for n in v[:2]):
            raise ValueError("limit offset and count must be non-negative")
        return v

    @property
    def pagination(self) -> tuple[int, int] | None:
        """Return ``(offset, count)`` or ``None`` when no usable limit is set."""
        if self.limit is None or len(self.limit) < 2:
            return None
        return self.limit[0], self.limit[1]

    @staticmethod
    def builder(table_name: str) -> "QueryBuilder":
        """Return a fluent :class:`QueryBuilder` for ``table_name``."""
        return QueryBuilder(table_name)


_MISSING: Any = object()


class QueryBuilder:
    """Fluent builder for :class:`QueryParams`.

    Example::

        params = (
            QueryParams.builder("users")
            .select("t.id", "t.name")
            .where("status", 1)
            .where("age", ">=", 18)
            .or_where({"role": "admin"})
            .order_by_desc("id")
            .page(2, 20)
            .build()
        )

    ``where`` accepts a condition, a condition list, a simple-object
    mapping, ``(key, value)`` for equality or ``(key, operator, value)``.
    ``and_where`` / ``or_where`` take the same arguments and force the
    connective of the first condition they add.
    """

    def __init__(self, table_name: str) -> None:
        self._table_name = table_name
        self.reset()

    def reset(self) -> "QueryBuilder":
        """Clear everything except the table name."""
        self._select: list[str] = []
        self._conditions: list[Condition] = []
        self._order_by: dict[str, str] = {}
        self._group_by: list[str] = []
        self._limit: list[int] | None = None
        return self

    def clone(self) -> "QueryBuilder":
        """Return an independent copy of this builder."""
        other = QueryBuilder(self._table_name)
        other._select = list(self._select)
        other._conditions = list(self._conditions)
        other._order_by = dict(self._order_by)
        other._group_by = list(self._group_by)
        other._limit = list(self._limit) if self._limit is not None else None
        return other

    def select(self, *fields: str | list[str]) -> "QueryBuilder":
        for f in fields:
            if isinstance(f, str):
                self._select.append(f)
            else:
                self._select.extend(f)
        return self

    def where(self, target: Any, operator: Any = _MISSING, value: Any = _MISSING) -> "QueryBuilder":
        self._conditions.extend(_conditions_from(target, operator, value, None))
        return self

    def and_where(self, target: Any, operator: Any = _MISSING, value: Any = _MISSING) -> "QueryBuilder":
        self._conditions.extend(_conditions_from(target, operator, value, "and"))
        return self

    def or_where(self, target: Any, operator: Any = _MISSING, value: Any = _MISSING) -> "QueryBuilder":
        self._conditions.extend(_conditions_from(target, operator, value, "or"))
        return self

    def where_in(self, key: str, values: list[Any]) -> "QueryBuilder":
        return self.where(key, "in", list(values))

    def where_not_in(self, key: str, values: list[Any]) -> "QueryBuilder":
        return self.where(key, "not in", list(values))

    def where_between(self, key: str, low: Any, high: Any) -> "QueryBuilder":
        return self.where(key, "between", [low, high])

    def where_like(self, key: str, value: str) -> "QueryBuilder":
        """Add ``key LIKE '%value%'``."""
        return self.where(key, "%%", value)

    def where_null(self, key: str) -> "QueryBuilder":
        return self.where(key, "is", NULL_SENTINEL)

    def where_not_null(self, key: str) -> "QueryBuilder":
        return self.where(key, "is not", NULL_SENTINEL)

    def order_by(self, field: str | Mapping[str, str], direction: str = "ASC") -> "QueryBuilder":
        """Add ORDER BY columns; a mapping adds several at once."""
        if isinstance(field, Mapping):
            for name, dir_ in field.items():
                self._order_by[name] = dir_.upper()
        else:
            self._order_by[field] = direction.upper()
        return self

    def order_by_asc(self, field: str) -> "QueryBuilder":
        return self.order_by(field, "ASC")

    def order_by_desc(self, field: str) -> "QueryBuilder":
        return self.order_by(field, "DESC")

    def group_by(self, *fields: str) -> "QueryBuilder":
        self._group_by.extend(fields)
        return self

    def limit(self, offset_or_count: int, count: int | None = None) -> "QueryBuilder":
        """``limit(n)`` is ``[0, n]``; ``limit(offset, n)`` is ``[offset, n]``."""
        if count is None:
            self._limit = [0, offset_or_count]
        else:
            self._limit = [offset_or_count, count]
        return self

    def page(self, page: int, page_size: int) -> "QueryBuilder":
        """Select 1-based page ``page`` of ``page_size`` rows."""
        self._limit = [(max(page, 1) - 1) * page_size, page_size]
        return self

    def build(self) -> QueryParams:
        """Return the configured :class:`QueryParams`.

        Raises:
            InvalidRequestError: If the collected values do not validate
                (a negative limit, for instance).
        """
        return parse_request(
            QueryParams,
            {
                "select": list(self._select),
                "where": list(self._conditions),
                "orderBy": dict(self._order_by),
                "groupBy": list(self._group_by),
                "limit": list(self._limit) if self._limit is not None else None,
                "configs": {"tableName": self._table_name},
            },
        )


def _conditions_from(target: Any, operator: Any, value: Any, logic: str | None) -> list[Condition]:
    if operator is not _MISSING:
        if value is _MISSING:
            operator, value = "=", operator
        conditions = [Condition(key=target, operator=operator, value=value)]
    elif isinstance(target, Condition):
        conditions = [target]
    elif isinstance(target, Mapping):
        conditions = parse_simple_where(target)
    elif isinstance(target, (list, tuple)):
        conditions = [_as_condition(item) for item in target]
    else:
        raise InvalidRequestError(
            f"Cannot build a condition from {type(target).__name__}; "
            "pass a condition, a list, a mapping or (key, [operator,] value)."
        )
    if logic is not None and conditions:
        conditions[0] = conditions[0].model_copy(update={"logic": logic})
    return conditions


def _as_condition(item: Any) -> Condition:
    if isinstance(item, Condition):
        return item
    try:
        return Condition.model_validate(item)
    except ValidationError as exc:
        raise InvalidRequestError(
            f"Condition structure is invalid: {exc}", details={"condition": item}
        ) from exc


class AggregateItem(BaseModel):
    """One aggregate expression: ``FUNCTION(field) AS name``.

    Attributes:
        function: Aggregate name, matched case-insensitively against the
            whitelist in :data:`~polysql.schema.operators.AGGREGATE_FUNCTIONS`.
        field: Column (or ``*``) to aggregate.
        name: Result alias.
    """

    model_config = ConfigDict(extra="forbid")

    function: str
    field: str
    name: str


class AggregateParams(QueryParams):
    """A SELECT request whose column list is made of aggregates."""

    aggregate: list[AggregateItem] = Field(default_factory=list)


class UpdateFieldItem(BaseModel):
    """A plain SET assignment.

    Attributes:
        key: Column to assign.
        value: New value (``replace``) or delta (``plus`` / ``reduce``).
            An absent ``value`` or ``""`` skips the item; an explicit
            ``None``, ``0`` and ``False`` are kept.
        operator: ``replace`` (default), ``plus`` or ``reduce``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    value: Any = None
    operator: str = "replace"


class UpdateCaseItem(BaseModel):
    """One WHEN branch of a CASE update.

    Attributes:
        case_value: Value of ``case_field`` that selects this branch.
        value: Result value (or delta for ``plus`` / ``reduce``).
        operator: ``replace`` (default), ``plus`` or ``reduce``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    case_value: Any
    value: Any
    operator: str = "replace"


class UpdateCaseField(BaseModel):
    """A conditional assignment compiled to ``CASE case_field WHEN ...``.

    Attributes:
        key: Column to assign.
        case_field: Discriminant column.
        case_item: Branches; an empty list skips the whole item.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    case_field: str
    case_item: list[UpdateCaseItem] = Field(default_factory=list)


#: CASE items are tried first so a plain item never swallows a ``case_field``.
UpdateItem = Annotated[UpdateCaseField | UpdateFieldItem, Field(union_mode="left_to_right")]


class UpdateParams(FilteredRequest):
    """An UPDATE request."""

    update: list[UpdateItem] = Field(default_factory=list)


class DeleteParams(FilteredRequest):
    """A DELETE request."""


RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_request(model_cls: type[RequestT], params: Any) -> RequestT:
    """Return ``params`` as a ``model_cls`` instance.

    Instances pass through untouched; mappings are validated.

    Raises:
        InvalidRequestError: If ``params`` is neither, or fails validation.
            The pydantic error is chained.
    """
    if isinstance(params, model_cls):
        return params
    if not isinstance(params, Mapping):
        raise InvalidRequestError(
            f"Expected {model_cls.__name__} or a mapping, got {type(params).__name__}."
        )
    try:
        return model_cls.model_validate(params)
    except ValidationError as exc:
        raise InvalidRequestError(
            f"{model_cls.__name__} structure is invalid: {exc}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc
