import pytest

from serverside_datatable.domain import ColumnRequest, DataTableRequest, OrderRequest
from serverside_datatable.helpers import FlexibleDataTable
from shop_models import Order


def _table(session_factory, request=None, **options):
    return (
        FlexibleDataTable.of(Order, session_factory, request, **options)
        .searchable(["reference", "status"])
        .searchable_relation("customer", ["name"])
        .orderable(["reference", "amount", "placed_at"])
        .where("status", "!=", "cancelled")
    )


def _refs(rows):
    return [row["reference"] for row in rows]


def test_make_defaults_to_first_page_ordered_by_first_column(session_factory):
    response = _table(session_factory).make()
    assert response.draw == 1
    assert response.records_total == 5
    assert response.records_filtered == 4
    assert _refs(response.data) == ["ORD-001", "ORD-002", "ORD-003", "ORD-005"]


def test_global_search_is_case_insensitive_and_covers_relations(session_factory):
    response = _table(session_factory, DataTableRequest(search_value="ALICE")).make()
    assert _refs(response.data) == ["ORD-001", "ORD-002"]
    assert response.records_filtered == 2
    by_status = _table(session_factory, DataTableRequest(search_value="pend")).make()
    assert _refs(by_status.data) == ["ORD-002"]


def test_requested_order_and_length(session_factory):
    request = DataTableRequest(start=0, length=2, order=(OrderRequest(column=1, dir="desc"),))
    assert _refs(_table(session_factory, request).make().data) == ["ORD-003", "ORD-005"]


def test_default_length_applies_without_paging_parameters(session_factory):
    assert len(_table(session_factory, default_length=3).make().data) == 3


def test_max_length_caps_show_all(session_factory):
    request = DataTableRequest(start=0, length=-1)
    assert len(_table(session_factory, request).make().data) == 4
    assert len(_table(session_factory, request, max_length=2).make().data) == 2


def test_column_search_uses_orderable_columns(session_factory):
    request = DataTableRequest(columns=(ColumnRequest(search_value="ord-003"), ColumnRequest()))
    response = _table(session_factory, request).make()
    assert _refs(response.data) == ["ORD-003"]
    assert response.records_filtered == 1


def test_relation_columns_order_through_a_join(session_factory):
    request = DataTableRequest(order=(OrderRequest(column=1, dir="desc"),))
    table = _table(session_factory, request).orderable(["reference", "customer.name"])
    refs = _refs(table.make().data)
    assert refs[:2] == ["ORD-005", "ORD-003"]
    assert sorted(refs[2:]) == ["ORD-001", "ORD-002"]


def test_column_search_on_relation_column(session_factory):
    request = DataTableRequest(columns=(ColumnRequest(), ColumnRequest(search_value="bob")))
    response = _table(session_factory, request).orderable(["reference", "customer.name"]).make()
    assert _refs(response.data) == ["ORD-003"]
    assert response.records_filtered == 1


def test_global_search_on_relation_column(session_factory):
    table = _table(session_factory, DataTableRequest(search_value="example.org")).searchable(["customer.email"])
    assert _refs(table.make().data) == ["ORD-005"]


def test_numeric_columns_are_searchable(session_factory):
    request = DataTableRequest(search_value="120")
    table = _table(session_factory, request).searchable(["amount"]).numeric_columns(["amount"])
    assert _refs(table.make().data) == ["ORD-001"]


@pytest.mark.parametrize("value, expected", [
    ("profit", ["ORD-001", "ORD-003", "ORD-005"]),
    ("loss", ["ORD-002"]),
    (None, ["ORD-001", "ORD-002", "ORD-003", "ORD-005"]),
])
def test_profit_loss(session_factory, value, expected):
    table = _table(session_factory).profit_loss("amount", "cost", value)
    assert _refs(table.get()) == expected


def test_filter_by_year(session_factory):
    assert _refs(_table(session_factory).filter_by_year("placed_at", 2024).get()) == ["ORD-001", "ORD-002"]
    financial = _table(session_factory, financial_year=2023).filter_by_year("placed_at")
    assert _refs(financial.get()) == ["ORD-003"]


def test_builder_methods_chain_on_the_table(session_factory):
    table = _table(session_factory)
    assert table.with_("customer") is table
    assert table.apply("whereIn", "reference", ["ORD-003"]) is table
    rows = table.get()
    assert rows[0]["customer"]["name"] == "Bob Jones"


def test_unknown_attributes_raise(session_factory):
    with pytest.raises(AttributeError):
        _table(session_factory).to_statement()


def test_make_leaves_the_configured_query_untouched(session_factory):
    table = _table(session_factory, DataTableRequest(search_value="alice", start=0, length=1))
    first = table.make()
    second = table.make()
    assert first.to_dict() == second.to_dict()
    assert "LIKE" not in str(table.query.to_statement())


def test_get_query_applies_search_without_paging(session_factory, session):
    builder = _table(session_factory, DataTableRequest(search_value="alice", start=0, length=1)).get_query()
    assert [o.reference for o in builder.get(session)] == ["ORD-001", "ORD-002"]


def test_debug(session_factory):
    request = DataTableRequest(search_value="alice", params={"search": {"value": "alice"}})
    info = _table(session_factory, request).text_columns(["reference"]).debug()
    assert info["database_driver"] == "sqlite"
    assert info["request_data"] == {"search": {"value": "alice"}}
    assert info["text_columns"] == ["reference"]
    assert info["searchable_relations"] == {"customer": ["name"]}
    assert "LIKE" in info["query"]
    assert "%alice%" in info["bindings"].values()
