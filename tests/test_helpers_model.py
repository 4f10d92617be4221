from serverside_datatable.domain import DataTableRequest, OrderRequest
from serverside_datatable.helpers import ModelDataTableHelper
from shop_models import Customer, Order

CONFIG = {
    "select": [["reference"], ["amount"], ["customer.name", "customer_name"]],
    "order": [["reference"], ["amount"], ["customer.name"]],
    "where": [{"column": "status", "operator": "!=", "value": "cancelled"}],
    "orderBy": [{"column": "id", "direction": "asc"}],
    "search": [
        {"isColumn": True, "condition": "profit", "column": "amount", "operator": ">", "value": "cost"},
        {"isColumn": True, "condition": "loss", "column": "amount", "operator": "<", "value": "cost"},
    ],
}


def _refs(rows):
    return [row["reference"] for row in rows]


def _with_where(*wheres):
    return {**CONFIG, "where": list(wheres)}


def test_relation_columns_join_the_related_table(session_factory):
    rows = ModelDataTableHelper(session_factory).get_data_with_join_tables(Order, CONFIG)
    assert _refs(rows) == ["ORD-001", "ORD-002", "ORD-003", "ORD-005"]
    assert rows[0]["customer_name"] == "Alice Smith"
    assert set(rows[0]) == {"reference", "amount", "customer_name"}


def test_column_comparison_keywords(session_factory):
    helper = ModelDataTableHelper(session_factory)
    profit = DataTableRequest(search_value="Profit")
    assert _refs(helper.get_server_side_data_table(Order, CONFIG, profit)) == ["ORD-001", "ORD-003", "ORD-005"]
    assert helper.count_filtered_server_side_data_table(Order, CONFIG, profit) == 3
    loss = DataTableRequest(search_value="loss")
    assert _refs(helper.get_server_side_data_table(Order, CONFIG, loss)) == ["ORD-002"]


def test_search_covers_relation_columns(session_factory):
    request = DataTableRequest(search_value="smith")
    rows = ModelDataTableHelper(session_factory).get_server_side_data_table(Order, CONFIG, request)
    assert _refs(rows) == ["ORD-001", "ORD-002"]


def test_ordering_by_relation_column(session_factory):
    request = DataTableRequest(order=(OrderRequest(column=2, dir="desc"),))
    rows = ModelDataTableHelper(session_factory).get_server_side_data_table(Order, CONFIG, request)
    assert [row["customer_name"] for row in rows] == ["Dave Brown", "Bob Jones", "Alice Smith", "Alice Smith"]


def test_where_on_relation_column_uses_exists(session_factory):
    config = _with_where({"column": "customer.status", "operator": "=", "value": "inactive"})
    rows = ModelDataTableHelper(session_factory).get_data_with_join_tables(Order, config)
    assert _refs(rows) == ["ORD-004"]


def test_where_array_and_raw_forms(session_factory):
    helper = ModelDataTableHelper(session_factory)
    in_list = _with_where({"column": "status", "isArray": True, "value": ["pending", "cancelled"]})
    assert _refs(helper.get_data_with_join_tables(Order, in_list)) == ["ORD-002", "ORD-004"]
    raw = _with_where({"column": "amount > ?", "isRaw": True, "value": 150})
    assert _refs(helper.get_data_with_join_tables(Order, raw)) == ["ORD-003", "ORD-005"]


def test_encrypted_where_compares_the_md5_digest(session):
    helper = ModelDataTableHelper(lambda: session)
    config = {"where": [{"column": "id", "operator": "=", "value": "c4ca4238a0b923820dcc509a6f75849b", "encrypted": True}]}
    builder = helper.build_query(session, Order, config, DataTableRequest(), search=False)
    assert "md5(orders.id)" in str(builder.to_statement())


def test_with_loads_nested_relations_with_selected_columns(session_factory):
    config = {
        "where": [{"column": "id", "operator": "=", "value": 1}],
        "with": [{
            "relation": "orders",
            "selectColumn": ["id", "reference", "customer_id"],
            "nested": {"relation": "items"},
        }],
    }
    rows = ModelDataTableHelper(session_factory).get_data_with_join_tables(Customer, config)
    assert len(rows) == 1
    orders = rows[0]["orders"]
    assert [o["reference"] for o in orders] == ["ORD-001", "ORD-002"]
    assert "amount" not in orders[0]
    assert [i["product"] for i in orders[0]["items"]] == ["Widget", "Gadget"]


def test_make(session_factory):
    helper = ModelDataTableHelper(session_factory)
    request = DataTableRequest(draw=3, start=0, length=1, search_value="smith")
    response = helper.make(Order, CONFIG, request)
    assert response.draw == 3
    assert response.records_total == 5
    assert response.records_filtered == 2
    assert _refs(response.data) == ["ORD-001"]
