"""Fluent query builder exposing the Eloquent query vocabulary over SQLAlchemy ``select()``.

Table configurations name query methods in camelCase (``whereIn``,
``orWhereHas``, ``with``); `QueryBuilder.apply` maps those names onto the
snake_case methods below, and every method records state that
`to_statement` turns into a single `Select`.
"""
from __future__ import annotations

import copy
import itertools
import logging
import re
from typing import Any, Callable, Iterable, Mapping, Optional

from sqlalchemy import Select, and_, asc, desc, extract, func, literal_column, not_, or_, select, text, true
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.elements import ClauseElement, Label

from serverside_datatable.exceptions import ConfigurationError, UnsupportedMethodError
from serverside_datatable.query import relations
from serverside_datatable.query.columns import ColumnResolver, split_alias
from serverside_datatable.query.operators import compare

logger = logging.getLogger(__name__)

_MISSING = object()
_raw_bind_names = itertools.count()


def is_callback(value) -> bool:
    """True for plain callables, False for SQL expressions and mapped attributes."""
    return (
        callable(value)
        and not isinstance(value, (type, ClauseElement))
        and not hasattr(value, "__clause_element__")
    )


def raw_clause(sql: str, bindings=None):
    """Turn ``?`` placeholders into uniquely named bound parameters."""
    if bindings is None:
        values = []
    elif isinstance(bindings, (list, tuple)):
        values = list(bindings)
    else:
        values = [bindings]
    params = {}

    def _bind(_match):
        if len(params) >= len(values):
            raise ConfigurationError(f"Not enough bindings for raw expression {sql!r}")
        name = f"raw_{next(_raw_bind_names)}"
        params[name] = values[len(params)]
        return f":{name}"

    converted = re.sub(r"\?", _bind, sql)
    if len(params) != len(values):
        raise ConfigurationError(f"Too many bindings for raw expression {sql!r}")
    return text(converted).bindparams(**params) if params else text(converted)


def check_boolean(boolean) -> str:
    if boolean not in ("and", "or"):
        raise ConfigurationError(f"Boolean must be 'and' or 'or', got {boolean!r}")
    return boolean


def fold_conditions(conditions: Iterable[tuple[str, Any]]):
    """Combine ``(boolean, clause)`` pairs with SQL precedence: AND binds tighter than OR."""
    groups: list[list] = []
    current: list = []
    for boolean, clause in conditions:
        if boolean == "or" and current:
            groups.append(current)
            current = []
        current.append(clause)
    if current:
        groups.append(current)
    if not groups:
        return None
    parts = [and_(*group) if len(group) > 1 else group[0] for group in groups]
    return or_(*parts) if len(parts) > 1 else parts[0]


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _flatten(items) -> list:
    flat = []
    for item in items:
        if isinstance(item, (list, tuple)):
            flat.extend(_flatten(item))
        else:
            flat.append(item)
    return flat


class QueryBuilder:
    """Record Eloquent-style calls against one query source and compile them to a `Select`."""

    # Public methods a configuration may reach through `apply`.
    DISPATCHABLE = frozenset({
        "where", "or_where", "where_expression", "or_where_expression",
        "where_in", "or_where_in", "where_not_in", "or_where_not_in",
        "where_null", "or_where_null", "where_not_null", "or_where_not_null",
        "where_between", "or_where_between", "where_not_between", "or_where_not_between",
        "where_column", "or_where_column", "where_raw", "or_where_raw",
        "where_date", "where_year", "where_month", "where_day",
        "where_has", "or_where_has", "where_doesnt_have", "or_where_doesnt_have",
        "where_relation", "or_where_relation",
        "when", "unless", "tap",
        "select", "add_select", "select_raw", "distinct",
        "join", "left_join", "right_join", "cross_join", "join_relation",
        "order_by", "order_by_desc", "order_by_raw", "latest", "oldest", "reorder",
        "group_by", "having", "having_raw",
        "with_", "with_count",
        "limit", "offset", "for_page",
    })

    RELATION_METHODS = frozenset({"where_has", "or_where_has", "where_doesnt_have", "or_where_doesnt_have"})

    ALIASES = {
        "with": "with_",
        "take": "limit",
        "skip": "offset",
        "filter": "where_expression",
    }

    def __init__(self, source, session: Optional[Session] = None, *, metadata=None, bind=None,
                 resolver: Optional[ColumnResolver] = None):
        self.session = session
        if resolver is None:
            resolver = ColumnResolver(source, metadata=metadata, bind=bind if bind is not None else session)
        self.resolver = resolver
        self.source = resolver.source
        self._root = self.source
        self._wheres: list[tuple[str, Any]] = []
        self._columns: list = []
        self._appends: list = []
        self._joins: list[tuple[Any, Any, bool]] = []
        self._joined: set[str] = set()
        self._orders: list = []
        self._groups: list = []
        self._havings: list[tuple[str, Any]] = []
        self._eager: list = []
        self._distinct = False
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def new_query(self, source=None) -> "QueryBuilder":
        """Builder for a nested group (same source) or a relation callback (related source)."""
        resolver = self.resolver if source is None else self.resolver.for_source(source)
        return QueryBuilder(resolver.source, self.session, resolver=resolver)

    def clone(self) -> "QueryBuilder":
        twin = copy.copy(self)
        for attr in ("_wheres", "_columns", "_appends", "_joins", "_orders", "_groups", "_havings", "_eager"):
            setattr(twin, attr, list(getattr(self, attr)))
        twin._joined = set(self._joined)
        return twin

    def column(self, ref):
        return self.resolver.resolve(ref)

    @classmethod
    def method_name(cls, method) -> str:
        """Map a configuration name (``whereIn``, ``where_in``, ``with``) to a builder method name."""
        if not isinstance(method, str) or not method:
            raise UnsupportedMethodError(repr(method))
        name = cls.ALIASES.get(method, method)
        name = cls.ALIASES.get(_snake(name), _snake(name))
        if name not in cls.DISPATCHABLE:
            raise UnsupportedMethodError(method)
        return name

    @classmethod
    def is_relation_method(cls, method) -> bool:
        return cls.method_name(method) in cls.RELATION_METHODS

    def apply(self, method: str, *args, **kwargs):
        """Invoke a builder method by its configuration name (``whereIn`` or ``where_in``)."""
        name = self.method_name(method)
        logger.debug("Dispatching %s -> %s%r", method, name, args)
        return getattr(self, name)(*args, **kwargs)

    def where_clause(self):
        return fold_conditions(self._wheres)

    def _add_where(self, clause, boolean: str) -> "QueryBuilder":
        check_boolean(boolean)
        if clause is not None:
            self._wheres.append((boolean, clause))
        return self

    def _nested_clause(self, callback: Callable, source=None):
        child = self.new_query(source)
        callback(child)
        return child.where_clause()

    def selected_label(self, name):
        if isinstance(name, str):
            for col in self._columns + self._appends:
                if isinstance(col, Label) and col.name == name:
                    return col
        return None

    def _resolve_expression(self, ref):
        label = self.selected_label(ref)
        return label if label is not None else self.column(ref)

    # ------------------------------------------------------------------
    # where family
    # ------------------------------------------------------------------

    def where(self, column, operator=_MISSING, value=_MISSING, boolean: str = "and") -> "QueryBuilder":
        """``where(col, value)``, ``where(col, op, value)``, ``where(callback)``,
        ``where([[col, value], [col, op, value]])`` or ``where({col: value})``."""
        check_boolean(boolean)
        if is_callback(column):
            return self._add_where(self._nested_clause(column), boolean)
        if isinstance(column, Mapping):
            clauses = [compare(self.column(key), "=", val) for key, val in column.items()]
            return self._add_where(and_(*clauses) if clauses else None, boolean)
        if isinstance(column, (list, tuple)):
            return self._add_where(self._array_clause(column), boolean)
        if operator is _MISSING:
            raise ConfigurationError(f"where({column!r}) needs a value")
        if value is _MISSING:
            operator, value = "=", operator
        return self._add_where(compare(self.column(column), operator, value), boolean)

    def or_where(self, column, operator=_MISSING, value=_MISSING) -> "QueryBuilder":
        return self.where(column, operator, value, boolean="or")

    def _array_clause(self, conditions):
        if conditions and isinstance(conditions[0], str):
            conditions = [conditions]
        clauses = []
        for condition in conditions:
            if isinstance(condition, Mapping):
                clauses.extend(compare(self.column(k), "=", v) for k, v in condition.items())
            elif len(condition) == 2:
                clauses.append(compare(self.column(condition[0]), "=", condition[1]))
            elif len(condition) == 3:
                clauses.append(compare(self.column(condition[0]), condition[1], condition[2]))
            else:
                raise ConfigurationError(f"Cannot read where condition {condition!r}")
        return and_(*clauses) if clauses else None

    def where_expression(self, clause, boolean: str = "and") -> "QueryBuilder":
        """Add a prebuilt SQLAlchemy boolean clause."""
        return self._add_where(clause, boolean)

    def or_where_expression(self, clause) -> "QueryBuilder":
        return self._add_where(clause, "or")

    def where_in(self, column, values, boolean: str = "and", negate: bool = False) -> "QueryBuilder":
        col = self.column(column)
        if isinstance(values, QueryBuilder):
            values = values.to_statement()
        elif not isinstance(values, (list, tuple, ClauseElement)):
            values = list(values)
        return self._add_where(col.not_in(values) if negate else col.in_(values), boolean)

    def or_where_in(self, column, values) -> "QueryBuilder":
        return self.where_in(column, values, boolean="or")

    def where_not_in(self, column, values, boolean: str = "and") -> "QueryBuilder":
        return self.where_in(column, values, boolean=boolean, negate=True)

    def or_where_not_in(self, column, values) -> "QueryBuilder":
        return self.where_in(column, values, boolean="or", negate=True)

    def where_null(self, column, boolean: str = "and", negate: bool = False) -> "QueryBuilder":
        for ref in column if isinstance(column, (list, tuple)) else [column]:
            col = self.column(ref)
            self._add_where(col.is_not(None) if negate else col.is_(None), boolean)
        return self

    def or_where_null(self, column) -> "QueryBuilder":
        return self.where_null(column, boolean="or")

    def where_not_null(self, column, boolean: str = "and") -> "QueryBuilder":
        return self.where_null(column, boolean=boolean, negate=True)

    def or_where_not_null(self, column) -> "QueryBuilder":
        return self.where_null(column, boolean="or", negate=True)

    def where_between(self, column, values, boolean: str = "and", negate: bool = False) -> "QueryBuilder":
        low, high = values
        clause = self.column(column).between(low, high)
        return self._add_where(not_(clause) if negate else clause, boolean)

    def or_where_between(self, column, values) -> "QueryBuilder":
        return self.where_between(column, values, boolean="or")

    def where_not_between(self, column, values, boolean: str = "and") -> "QueryBuilder":
        return self.where_between(column, values, boolean=boolean, negate=True)

    def or_where_not_between(self, column, values) -> "QueryBuilder":
        return self.where_between(column, values, boolean="or", negate=True)

    def where_column(self, first, operator, second=_MISSING, boolean: str = "and") -> "QueryBuilder":
        if second is _MISSING:
            operator, second = "=", operator
        return self._add_where(compare(self.column(first), operator, self.column(second)), boolean)

    def or_where_column(self, first, operator, second=_MISSING) -> "QueryBuilder":
        return self.where_column(first, operator, second, boolean="or")

    def where_raw(self, sql: str, bindings=None, boolean: str = "and") -> "QueryBuilder":
        return self._add_where(raw_clause(sql, bindings), boolean)

    def or_where_raw(self, sql: str, bindings=None) -> "QueryBuilder":
        return self.where_raw(sql, bindings, boolean="or")

    def _where_part(self, expression, operator, value, boolean):
        if value is _MISSING:
            operator, value = "=", operator
        return self._add_where(compare(expression, operator, value), boolean)

    def where_date(self, column, operator, value=_MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._where_part(func.date(self.column(column)), operator, value, boolean)

    def where_year(self, column, operator, value=_MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._where_part(extract("year", self.column(column)), operator, value, boolean)

    def where_month(self, column, operator, value=_MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._where_part(extract("month", self.column(column)), operator, value, boolean)

    def where_day(self, column, operator, value=_MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._where_part(extract("day", self.column(column)), operator, value, boolean)

    # ------------------------------------------------------------------
    # relation family
    # ------------------------------------------------------------------

    def where_has(self, relation: str, callback: Optional[Callable] = None, boolean: str = "and",
                  negate: bool = False) -> "QueryBuilder":
        criterion = None
        if callback is not None:
            criterion = self._nested_clause(callback, relations.target_class(self.source, relation))
        clause = relations.exists_clause(self.source, relation, criterion)
        return self._add_where(~clause if negate else clause, boolean)

    def or_where_has(self, relation: str, callback: Optional[Callable] = None) -> "QueryBuilder":
        return self.where_has(relation, callback, boolean="or")

    def where_doesnt_have(self, relation: str, callback: Optional[Callable] = None,
                          boolean: str = "and") -> "QueryBuilder":
        return self.where_has(relation, callback, boolean=boolean, negate=True)

    def or_where_doesnt_have(self, relation: str, callback: Optional[Callable] = None) -> "QueryBuilder":
        return self.where_has(relation, callback, boolean="or", negate=True)

    def where_relation(self, relation: str, column, operator=_MISSING, value=_MISSING,
                       boolean: str = "and") -> "QueryBuilder":
        return self.where_has(relation, lambda q: q.where(column, operator, value), boolean=boolean)

    def or_where_relation(self, relation: str, column, operator=_MISSING, value=_MISSING) -> "QueryBuilder":
        return self.where_relation(relation, column, operator, value, boolean="or")

    # ------------------------------------------------------------------
    # conditional helpers
    # ------------------------------------------------------------------

    def when(self, value, callback: Callable, default: Optional[Callable] = None) -> "QueryBuilder":
        """Run ``callback(builder, value)`` when `value` is truthy, else ``default(builder, value)``."""
        if value:
            callback(self, value)
        elif default is not None:
            default(self, value)
        return self

    def unless(self, value, callback: Callable, default: Optional[Callable] = None) -> "QueryBuilder":
        if not value:
            callback(self, value)
        elif default is not None:
            default(self, value)
        return self

    def tap(self, callback: Callable) -> "QueryBuilder":
        callback(self)
        return self

    # ------------------------------------------------------------------
    # select family
    # ------------------------------------------------------------------

    def select(self, *columns) -> "QueryBuilder":
        self._columns = []
        return self.add_select(*columns)

    def add_select(self, *columns) -> "QueryBuilder":
        for item in _flatten(columns):
            if isinstance(item, Mapping):
                for alias, subquery in item.items():
                    if isinstance(subquery, QueryBuilder):
                        subquery = subquery.to_statement()
                    self._columns.append(subquery.scalar_subquery().label(alias))
            elif isinstance(item, str):
                self._columns.extend(self._select_item(item))
            else:
                self._columns.append(item)
        return self

    def _select_item(self, ref: str) -> list:
        expression, alias = split_alias(ref)
        prefix, _, name = expression.rpartition(".")
        if name == "*":
            return self.resolver.all_columns(prefix or None)
        col = self.column(expression)
        return [col.label(alias) if alias else col]

    def select_raw(self, expression: str) -> "QueryBuilder":
        self._columns.append(literal_column(expression))
        return self

    def distinct(self) -> "QueryBuilder":
        self._distinct = True
        return self

    # ------------------------------------------------------------------
    # joins
    # ------------------------------------------------------------------

    def is_joined(self, name: str) -> bool:
        return name in self._joined

    def join(self, table, first=None, operator="=", second=None, isouter: bool = False) -> "QueryBuilder":
        """``join("customers", "orders.customer_id", "=", "customers.id")``; without ON
        columns the condition is inferred from foreign keys."""
        target = self.resolver.table(table) if isinstance(table, str) else table
        onclause = None
        if first is not None:
            if second is None:
                operator, second = "=", operator
            onclause = compare(self.column(first), operator, self.column(second))
        self._joins.append((target, onclause, isouter))
        self._joined.add(getattr(target, "name", str(table)))
        return self

    def left_join(self, table, first=None, operator="=", second=None) -> "QueryBuilder":
        return self.join(table, first, operator, second, isouter=True)

    def right_join(self, table, first=None, operator="=", second=None) -> "QueryBuilder":
        """Keep every row of `table`: it becomes the FROM table and the current source is LEFT joined.

        Only available on table sources and before any other join.
        """
        if self.resolver.mapper is not None:
            raise UnsupportedMethodError("right_join", "is only available on table sources")
        if self._joins:
            raise UnsupportedMethodError("right_join", "must come before any other join")
        target = self.resolver.table(table) if isinstance(table, str) else table
        if second is None:
            operator, second = "=", operator
        onclause = compare(self.column(first), operator, self.column(second))
        self._joins.append((self._root, onclause, True))
        self._joined.add(getattr(target, "name", str(table)))
        self._root = target
        return self

    def cross_join(self, table) -> "QueryBuilder":
        target = self.resolver.table(table) if isinstance(table, str) else table
        self._joins.append((target, true(), False))
        self._joined.add(getattr(target, "name", str(table)))
        return self

    def join_relation(self, path: str, isouter: bool = False) -> "QueryBuilder":
        """Join every hop of a relation path once; repeated calls are no-ops."""
        walked = []
        for owner, prop in relations.resolve_path(self.source, path):
            walked.append(prop.key)
            key = ".".join(walked)
            table_name = prop.mapper.local_table.name
            if key in self._joined or table_name in self._joined:
                continue
            self._joins.append((getattr(owner, prop.key), None, isouter))
            self._joined.update({key, table_name})
        return self

    # ------------------------------------------------------------------
    # ordering and grouping
    # ------------------------------------------------------------------

    def order_by(self, column, direction: str = "asc") -> "QueryBuilder":
        if not isinstance(direction, str) or direction.strip().lower() not in ("asc", "desc"):
            raise ConfigurationError(f"Order direction must be 'asc' or 'desc', got {direction!r}")
        expression = self._resolve_expression(column)
        self._orders.append(desc(expression) if direction.strip().lower() == "desc" else asc(expression))
        return self

    def order_by_desc(self, column) -> "QueryBuilder":
        return self.order_by(column, "desc")

    def order_by_raw(self, sql: str, bindings=None) -> "QueryBuilder":
        self._orders.append(raw_clause(sql, bindings))
        return self

    def latest(self, column="created_at") -> "QueryBuilder":
        return self.order_by(column, "desc")

    def oldest(self, column="created_at") -> "QueryBuilder":
        return self.order_by(column, "asc")

    def reorder(self, column=None, direction: str = "asc") -> "QueryBuilder":
        self._orders = []
        if column is not None:
            self.order_by(column, direction)
        return self

    def group_by(self, *columns) -> "QueryBuilder":
        for ref in _flatten(columns):
            self._groups.append(self._resolve_expression(ref))
        return self

    def having(self, column, operator=_MISSING, value=_MISSING, boolean: str = "and") -> "QueryBuilder":
        if value is _MISSING:
            operator, value = "=", operator
        self._havings.append((check_boolean(boolean), compare(self._resolve_expression(column), operator, value)))
        return self

    def having_raw(self, sql: str, bindings=None, boolean: str = "and") -> "QueryBuilder":
        self._havings.append((check_boolean(boolean), raw_clause(sql, bindings)))
        return self

    # ------------------------------------------------------------------
    # eager loading
    # ------------------------------------------------------------------

    def with_(self, *relations_) -> "QueryBuilder":
        """Eager-load relations: ``"orders"``, ``"orders.items"``, ``"region:id,name"``
        or ``{"orders": callback}``; the callback's wheres constrain the loaded rows."""
        for item in _flatten(relations_):
            if isinstance(item, Mapping):
                for path, callback in item.items():
                    self._eager.append(self._loader(path, callback))
            else:
                self._eager.append(self._loader(item, None))
        return self

    def _loader(self, spec: str, callback: Optional[Callable]):
        path, _, only = spec.partition(":")
        hops = relations.resolve_path(self.source, path.strip())
        loader = None
        for index, (owner, prop) in enumerate(hops):
            attr = getattr(owner, prop.key)
            last = index == len(hops) - 1
            child = None
            if last and callback is not None:
                child = self.new_query(prop.mapper.class_)
                callback(child)
                criteria = child.where_clause()
                if criteria is not None:
                    attr = attr.and_(criteria)
            loader = loader.selectinload(attr) if loader is not None else selectinload(attr)
            if not last:
                continue
            target = prop.mapper.class_
            columns = [getattr(target, name.strip()) for name in only.split(",") if name.strip()]
            if child is not None:
                columns.extend(col for col in child._columns if hasattr(col, "property"))
                if child._orders:
                    logger.debug("Ignoring ordering inside eager load of %s", spec)
            if columns:
                loader = loader.load_only(*columns)
            if child is not None and child._eager:
                loader = loader.options(*child._eager)
        return loader

    def with_count(self, *relations_) -> "QueryBuilder":
        for item in _flatten(relations_):
            name, alias = split_alias(item)
            label = alias or f"{name}_count"
            self._appends.append(relations.count_subquery(self.source, name).label(label))
        return self

    # ------------------------------------------------------------------
    # pagination
    # ------------------------------------------------------------------

    def limit(self, value: Optional[int]) -> "QueryBuilder":
        self._limit = None if value is None or int(value) < 0 else int(value)
        return self

    def offset(self, value: Optional[int]) -> "QueryBuilder":
        self._offset = None if value is None else max(int(value), 0)
        return self

    def for_page(self, page: int, per_page: int = 15) -> "QueryBuilder":
        return self.offset((max(int(page), 1) - 1) * per_page).limit(per_page)

    # ------------------------------------------------------------------
    # compilation and execution
    # ------------------------------------------------------------------

    def _selects_entity(self) -> bool:
        return self.resolver.mapper is not None and (not self._columns or bool(self._eager))

    def _base_statement(self) -> Select:
        columns = self._columns + self._appends
        if self._selects_entity():
            stmt = select(self.source, *columns)
        elif columns:
            stmt = select(*columns).select_from(self._root)
        else:
            stmt = select(self.source).select_from(self._root)
        stmt = self._filtered(stmt)
        if self._groups:
            stmt = stmt.group_by(*self._groups)
        having = fold_conditions(self._havings)
        if having is not None:
            stmt = stmt.having(having)
        if self._distinct:
            stmt = stmt.distinct()
        return stmt

    def _filtered(self, stmt: Select) -> Select:
        for target, onclause, isouter in self._joins:
            if onclause is None:
                stmt = stmt.join(target, isouter=isouter)
            else:
                stmt = stmt.join(target, onclause, isouter=isouter)
        where = self.where_clause()
        if where is not None:
            stmt = stmt.where(where)
        return stmt

    def to_statement(self) -> Select:
        stmt = self._base_statement()
        if self._eager and self._selects_entity():
            stmt = stmt.options(*self._eager)
        if self._orders:
            stmt = stmt.order_by(*self._orders)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        if self._offset is not None:
            stmt = stmt.offset(self._offset)
        return stmt

    def count_statement(self) -> Select:
        """Count the rows the statement yields, ignoring order, eager loads and paging."""
        if self._groups or self._havings or self._distinct:
            return select(func.count()).select_from(self._base_statement().subquery())
        return self._filtered(select(func.count()).select_from(self._root))

    def _session_for(self, session: Optional[Session]) -> Session:
        session = session or self.session
        if session is None:
            raise ConfigurationError("QueryBuilder needs a session to execute")
        return session

    def get(self, session: Optional[Session] = None) -> list:
        """Execute and return mapped instances when the source entity alone is selected, rows otherwise."""
        result = self._session_for(session).execute(self.to_statement())
        if self._selects_entity() and not self._columns and not self._appends:
            return list(result.scalars().all())
        return list(result.all())

    def first(self, session: Optional[Session] = None):
        rows = self.clone().limit(1).get(session)
        return rows[0] if rows else None

    def count(self, session: Optional[Session] = None) -> int:
        return self._session_for(session).execute(self.count_statement()).scalar_one()

    def to_sql(self, dialect=None) -> str:
        stmt = self.to_statement()
        if dialect is None and self.session is not None:
            dialect = self.session.get_bind().dialect
        return str(stmt.compile(dialect=dialect))

    def get_bindings(self) -> dict:
        return dict(self.to_statement().compile().params)
