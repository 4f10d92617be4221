"""Custom exceptions for serverside_datatable."""


class DataTableError(Exception):
    """Base class for every error raised by this library."""


class ConfigurationError(DataTableError):
    """Raised when a table configuration cannot be translated into a query."""


class UnknownColumnError(ConfigurationError):
    """Raised when a configured column name does not resolve to a column."""

    def __init__(self, column: str, source: str):
        self.column = column
        self.source = source
        super().__init__(f"Column '{column}' not found on {source}")


class UnknownTableError(ConfigurationError):
    """Raised when a table name is neither mapped nor reflectable."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Table '{table}' not found")


class UnknownRelationError(ConfigurationError):
    """Raised when a relation path does not exist on a mapped model."""

    def __init__(self, relation: str, model: str):
        self.relation = relation
        self.model = model
        super().__init__(f"Relation '{relation}' not defined on {model}")


class UnsupportedOperatorError(ConfigurationError):
    def __init__(self, operator):
        self.operator = operator
        super().__init__(f"Unsupported comparison operator {operator!r}")


class UnsupportedMethodError(ConfigurationError):
    """Raised when a configuration names a query method the builder does not expose."""

    def __init__(self, method: str, reason: str = "is not a supported query method"):
        self.method = method
        self.reason = reason
        super().__init__(f"'{method}' {reason}")


class TableDefinitionNotFoundError(DataTableError):
    """Raised when a requested table definition cannot be found on disk."""

    def __init__(self, name: str, reason: str = "not found"):
        self.name = name
        self.reason = reason
        super().__init__(f"Table definition '{name}' {reason}")
