from serverside_datatable.services.table_definition_parser import TableDefinitionParser


def test_parse_full_definition():
    data = {
        "model": "shop_models:Order",
        "searchable": ["reference", "status"],
        "searchable_relations": {"customer": ["name", "email"], "items": "product"},
        "orderable": ["reference", "amount"],
        "text_columns": "reference",
        "numeric_columns": ["amount"],
        "with": ["customer:id,name"],
        "conditions": [{"method": "where", "args": ["status", "!=", "cancelled"]}],
        "default_length": "25",
    }
    definition = TableDefinitionParser().parse(name="orders", data=data)

    assert definition.name == "orders"
    assert definition.model == "shop_models:Order"
    assert definition.searchable_relations == {"customer": ["name", "email"], "items": ["product"]}
    assert definition.text_columns == ["reference"]
    assert definition.with_relations == ["customer:id,name"]
    assert definition.conditions[0]["method"] == "where"
    assert definition.default_length == 25


def test_parse_minimal_definition_uses_defaults():
    definition = TableDefinitionParser().parse(name="customers", data={"model": "shop_models:Customer"})
    assert definition.searchable == []
    assert definition.conditions == []
    assert definition.default_length is None


def test_model_must_be_an_import_path():
    assert TableDefinitionParser().parse(name="x", data={"model": "Order"}) is None
    assert TableDefinitionParser().parse(name="x", data={}) is None


def test_searchable_relations_must_be_a_mapping():
    data = {"model": "shop_models:Order", "searchable_relations": ["customer"]}
    assert TableDefinitionParser().parse(name="x", data=data) is None


def test_conditions_need_a_method():
    data = {"model": "shop_models:Order", "conditions": [{"args": ["status", "pending"]}]}
    assert TableDefinitionParser().parse(name="x", data=data) is None
