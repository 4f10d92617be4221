import importlib

MODULES = [
    'serverside_datatable',
    'serverside_datatable.db.engine',
    'serverside_datatable.query.builder',
    'serverside_datatable.helpers.table',
    'serverside_datatable.helpers.model',
    'serverside_datatable.helpers.eloquent',
    'serverside_datatable.helpers.dynamic',
    'serverside_datatable.helpers.flexible',
    'serverside_datatable.services.table_service',
    'serverside_datatable.api.server',
]

def test_imports():
    for m in MODULES:
        importlib.import_module(m)
