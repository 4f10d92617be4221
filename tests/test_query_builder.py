import pytest
from sqlalchemy import func, inspect

from serverside_datatable.exceptions import (
    ConfigurationError,
    UnknownColumnError,
    UnknownTableError,
    UnsupportedMethodError,
)
from serverside_datatable.query import QueryBuilder, raw_clause
from shop_models import Customer, Order, Region


def _ids(rows):
    return sorted(r.id for r in rows)


def test_where_two_argument_form_means_equality(session):
    rows = QueryBuilder(Customer, session).where("status", "active").get()
    assert _ids(rows) == [1, 2, 4]


def test_where_with_operator(session):
    rows = QueryBuilder(Customer, session).where("id", ">", 2).get()
    assert _ids(rows) == [3, 4]


def test_where_none_becomes_is_null(session):
    rows = QueryBuilder(Customer, session).where("region_id", None).get()
    assert _ids(rows) == [4]


def test_and_binds_tighter_than_or(session):
    rows = (
        QueryBuilder(Customer, session)
        .where("status", "active")
        .where("region_id", 1)
        .or_where("id", 3)
        .get()
    )
    assert _ids(rows) == [1, 3]


def test_callback_groups_are_parenthesised(session):
    rows = (
        QueryBuilder(Customer, session)
        .where("status", "active")
        .where(lambda q: q.where("region_id", 2).or_where("region_id", None))
        .get()
    )
    assert _ids(rows) == [2, 4]


def test_mapping_and_array_forms(session):
    by_mapping = QueryBuilder(Customer, session).where({"status": "active", "region_id": 1}).get()
    by_array = QueryBuilder(Customer, session).where([["status", "active"], ["id", "<", 3]]).get()
    assert _ids(by_mapping) == [1]
    assert _ids(by_array) == [1, 2]


def test_where_in_and_not_in(session):
    assert _ids(QueryBuilder(Customer, session).where_in("id", [1, 3]).get()) == [1, 3]
    assert _ids(QueryBuilder(Customer, session).where_not_in("id", [1, 3]).get()) == [2, 4]


def test_where_in_accepts_a_subquery_builder(session):
    completed = QueryBuilder(Order, session).select("customer_id").where("status", "completed")
    rows = QueryBuilder(Customer, session).where_in("id", completed).get()
    assert _ids(rows) == [1, 2, 4]


def test_where_null_and_not_null(session):
    assert _ids(QueryBuilder(Customer, session).where_null("region_id").get()) == [4]
    assert _ids(QueryBuilder(Customer, session).where_not_null("region_id").get()) == [1, 2, 3]


def test_where_between(session):
    rows = QueryBuilder(Order, session).where_between("amount", [100, 250]).get()
    assert _ids(rows) == [1, 5]


def test_where_column_compares_two_columns(session):
    rows = QueryBuilder(Order, session).where_column("amount", ">", "cost").get()
    assert _ids(rows) == [1, 3, 5]


def test_where_raw_binds_question_marks(session):
    rows = QueryBuilder(Order, session).where_raw("amount > ?", [150]).get()
    assert _ids(rows) == [3, 5]


def test_raw_clause_rejects_binding_count_mismatch():
    with pytest.raises(ConfigurationError):
        raw_clause("a = ? AND b = ?", [1])
    with pytest.raises(ConfigurationError):
        raw_clause("a = ?", [1, 2])


def test_where_year(session):
    rows = QueryBuilder(Order, session).where_year("placed_at", 2024).get()
    assert _ids(rows) == [1, 2, 4]


def test_where_has_and_doesnt_have(session):
    with_completed = QueryBuilder(Customer, session).where_has("orders", lambda q: q.where("status", "completed")).get()
    without_region = QueryBuilder(Customer, session).where_doesnt_have("region").get()
    assert _ids(with_completed) == [1, 2, 4]
    assert _ids(without_region) == [4]


def test_where_has_follows_dotted_paths(session):
    rows = QueryBuilder(Region, session).where_has("customers.orders", lambda q: q.where("amount", ">", 250)).get()
    assert _ids(rows) == [2]


def test_where_relation(session):
    rows = QueryBuilder(Order, session).where_relation("customer", "status", "inactive").get()
    assert _ids(rows) == [4]


def test_or_where_has(session):
    rows = (
        QueryBuilder(Customer, session)
        .where("status", "inactive")
        .or_where_has("orders", lambda q: q.where("amount", ">=", 300))
        .get()
    )
    assert _ids(rows) == [2, 3]


def test_select_with_relation_column_and_alias(session):
    rows = (
        QueryBuilder(Order, session)
        .join_relation("customer")
        .select("reference", "customer.name as customer_name")
        .where("customer.status", "inactive")
        .get()
    )
    assert [(r.reference, r.customer_name) for r in rows] == [("ORD-004", "Carol White")]


def test_join_by_table_name(session):
    rows = (
        QueryBuilder(Order, session)
        .join("customers", "orders.customer_id", "=", "customers.id")
        .select("orders.reference", "customers.email")
        .where("customers.email", "like", "%.org")
        .order_by("orders.reference")
        .get()
    )
    assert [r.reference for r in rows] == ["ORD-004", "ORD-005"]


def test_left_join_keeps_unmatched_rows(session):
    rows = (
        QueryBuilder(Customer, session)
        .left_join("regions", "customers.region_id", "=", "regions.id")
        .select("customers.name", "regions.name as region_name")
        .order_by("customers.id")
        .get()
    )
    assert [r.region_name for r in rows] == ["North", "South", "North", None]


def test_right_join_is_unsupported_on_mapped_sources(session):
    with pytest.raises(UnsupportedMethodError):
        QueryBuilder(Order, session).right_join("customers", "orders.customer_id", "=", "customers.id")


def test_right_join_on_table_sources_starts_from_the_joined_table(session):
    rows = (
        QueryBuilder("regions", session, metadata=None)
        .right_join("customers", "regions.id", "customers.region_id")
        .select("customers.name", "regions.name as region_name")
        .order_by("customers.id")
        .get()
    )
    assert [r.region_name for r in rows] == ["North", "South", "North", None]


def test_right_join_after_another_join_is_unsupported(session):
    builder = QueryBuilder("orders", session, metadata=None).join("customers", "orders.customer_id", "customers.id")
    with pytest.raises(UnsupportedMethodError):
        builder.right_join("regions", "customers.region_id", "regions.id")


@pytest.mark.parametrize("call", [
    lambda b: b.where("status", "=", "active", boolean="xor"),
    lambda b: b.where_in("status", ["active"], boolean="="),
])
def test_unknown_boolean_is_a_configuration_error(session, call):
    with pytest.raises(ConfigurationError):
        call(QueryBuilder(Customer, session))


def test_join_relation_joins_once(session):
    builder = QueryBuilder(Order, session).join_relation("customer").join_relation("customer")
    assert str(builder.to_statement()).count("JOIN") == 1


def test_order_by_and_invalid_direction(session):
    rows = QueryBuilder(Customer, session).order_by("name", "desc").get()
    assert [r.name for r in rows][0] == "Dave Brown"
    with pytest.raises(ConfigurationError):
        QueryBuilder(Customer, session).order_by("name", "sideways")


def test_order_by_select_alias(session):
    rows = QueryBuilder(Order, session).select("reference", "amount as total").order_by("total", "desc").get()
    assert rows[0].reference == "ORD-003"


def test_group_by_and_having_on_alias(session):
    rows = (
        QueryBuilder(Order, session)
        .select("customer_id")
        .add_select(func.count().label("order_count"))
        .group_by("customer_id")
        .having("order_count", ">", 1)
        .get()
    )
    assert [(r.customer_id, r.order_count) for r in rows] == [(1, 2)]


def test_with_eager_loads_nested_relations(session):
    customer = QueryBuilder(Customer, session).where("id", 1).with_("orders.items").first()
    assert "orders" not in inspect(customer).unloaded
    assert "items" not in inspect(customer.orders[0]).unloaded
    assert [i.product for i in customer.orders[0].items] == ["Widget", "Gadget"]


def test_with_column_list_loads_only_those_columns(session):
    customer = QueryBuilder(Customer, session).where("id", 2).with_("region:id").first()
    assert customer.region.id == 2
    assert "name" in inspect(customer.region).unloaded


def test_with_callback_constrains_loaded_rows(session):
    customer = (
        QueryBuilder(Customer, session)
        .where("id", 1)
        .with_({"orders": lambda q: q.where("status", "completed")})
        .first()
    )
    assert [o.reference for o in customer.orders] == ["ORD-001"]


def test_with_count_adds_relation_counts(session):
    rows = QueryBuilder(Customer, session).with_count("orders").order_by("id").get()
    assert [(r.Customer.id, r.orders_count) for r in rows] == [(1, 2), (2, 1), (3, 1), (4, 1)]


def test_when_unless_and_tap(session):
    builder = QueryBuilder(Customer, session)
    builder.when("inactive", lambda q, value: q.where("status", value))
    builder.unless(True, lambda q, _value: q.where("id", 99))
    seen = []
    builder.tap(seen.append)
    assert _ids(builder.get()) == [3]
    assert seen == [builder]


def test_apply_maps_configuration_names(session):
    builder = QueryBuilder(Customer, session)
    builder.apply("whereIn", "id", [1, 2, 3]).apply("whereDoesntHave", "region")
    assert _ids(builder.get()) == []
    builder = QueryBuilder(Customer, session).apply("with", "orders").apply("take", 1).apply("orderByDesc", "id")
    assert _ids(builder.get()) == [4]


@pytest.mark.parametrize("method", ["delete", "update", "__init__", "bogusMethod", ""])
def test_apply_rejects_unknown_methods(session, method):
    with pytest.raises(UnsupportedMethodError):
        QueryBuilder(Customer, session).apply(method, "id")


def test_clone_is_independent(session):
    base = QueryBuilder(Customer, session).where("status", "active")
    narrowed = base.clone().where("region_id", 1)
    assert _ids(base.get()) == [1, 2, 4]
    assert _ids(narrowed.get()) == [1]


def test_count_ignores_paging_and_respects_distinct(session):
    builder = QueryBuilder(Customer, session).join_relation("orders").limit(1)
    assert builder.count() == 5
    assert builder.distinct().count() == 4


def test_for_page(session):
    rows = QueryBuilder(Customer, session).order_by("id").for_page(2, 2).get()
    assert _ids(rows) == [3, 4]


def test_to_sql_and_bindings(session):
    builder = QueryBuilder(Customer, session).where("status", "active")
    assert "WHERE customers.status" in builder.to_sql()
    assert "active" in builder.get_bindings().values()


def test_table_name_source_is_reflected(session):
    builder = QueryBuilder("customers", session, metadata=None).where("status", "active")
    assert builder.count() == 3
    assert sorted(r.name for r in builder.get()) == ["Alice Smith", "Bob Jones", "Dave Brown"]


def test_select_star_and_relation_star(session):
    rows = QueryBuilder(Order, session).join_relation("customer").select("reference", "customer.*").where("id", 1).get()
    assert rows[0].reference == "ORD-001"
    assert rows[0].email == "alice@example.com"


def test_unknown_names_raise(session):
    with pytest.raises(UnknownColumnError):
        QueryBuilder(Customer, session).where("nickname", "x")
    with pytest.raises(UnknownTableError):
        QueryBuilder(Customer, session).where("nowhere.col", "x")
