import importlib
from dataclasses import replace
import logging
from typing import Optional

from serverside_datatable.domain import DataTableRequest, DataTableResponse, TableDefinition
from serverside_datatable.exceptions import ConfigurationError, TableDefinitionNotFoundError
from serverside_datatable.helpers.dynamic import apply_condition
from serverside_datatable.helpers.flexible import DEFAULT_LENGTH, FlexibleDataTable
from serverside_datatable.services.table_definition_parser import TableDefinitionParser
from serverside_datatable.services.table_definition_store import TableDefinitionStore

logger = logging.getLogger(__name__)


def import_model(path: str):
    """Import ``"package.module:ClassName"``."""
    module_name, _, attr = path.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import model module {module_name!r}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigurationError(f"Module {module_name!r} has no model {attr!r}") from None


class TableService:
    """Serve DataTables responses for tables declared in YAML definition files."""

    def __init__(
        self,
        *,
        store: TableDefinitionStore,
        parser: TableDefinitionParser,
        session_factory,
        default_length: int = DEFAULT_LENGTH,
        max_length: Optional[int] = None,
        financial_year: Optional[int] = None,
    ):
        self.store = store
        self.parser = parser
        self.session_factory = session_factory
        self.default_length = default_length
        self.max_length = max_length
        self.financial_year = financial_year

    def list_tables(self) -> list[TableDefinition]:
        definitions = []
        for name in self.store.list_names():
            try:
                definitions.append(self.get_definition(name))
            except TableDefinitionNotFoundError as e:
                logger.warning("Skipping table definition: %s", e)
        return definitions

    def get_definition(self, name: str) -> TableDefinition:
        filename = self.store.find_file(name)
        if filename is None:
            raise TableDefinitionNotFoundError(name)
        data = self.store.load_yaml_dict(filename)
        if data is None:
            raise TableDefinitionNotFoundError(name, "could not be read")
        definition = self.parser.parse(name=name, data=data)
        if definition is None:
            raise TableDefinitionNotFoundError(name, "is invalid")
        return definition

    def build_table(self, definition: TableDefinition, request: DataTableRequest) -> FlexibleDataTable:
        table = FlexibleDataTable.of(
            import_model(definition.model),
            self.session_factory,
            request,
            default_length=definition.default_length or self.default_length,
            max_length=self.max_length,
            financial_year=self.financial_year,
        )
        table.searchable(definition.searchable).orderable(definition.orderable)
        table.text_columns(definition.text_columns).numeric_columns(definition.numeric_columns)
        for relation, columns in definition.searchable_relations.items():
            table.searchable_relation(relation, columns)
        if definition.with_relations:
            table.with_(*definition.with_relations)
        keyword_matched = False
        for condition in definition.conditions:
            keyword_matched = apply_condition(table.query, condition, request) or keyword_matched
        if keyword_matched:
            table.request = replace(request, search_value=None)
        return table

    def render(self, name: str, request: DataTableRequest) -> DataTableResponse:
        definition = self.get_definition(name)
        logger.debug("Rendering table %s (draw=%s)", name, request.draw)
        return self.build_table(definition, request).make()
