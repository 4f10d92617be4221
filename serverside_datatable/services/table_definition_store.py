import logging
import os
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


class TableDefinitionStore:
    """Filesystem/YAML IO for table definition files.

    Responsibility: locate, read, and parse YAML files on disk.
    It does NOT know about models or the database.
    """

    def __init__(self, *, tables_dir: str):
        self.tables_dir = tables_dir

    def list_definition_files(self) -> list[str]:
        if not os.path.isdir(self.tables_dir):
            return []
        return sorted(
            fname
            for fname in os.listdir(self.tables_dir)
            if fname.endswith(".yml") or fname.endswith(".yaml")
        )

    def list_names(self) -> list[str]:
        return [os.path.splitext(fname)[0] for fname in self.list_definition_files()]

    def find_file(self, name: str) -> Optional[str]:
        """Return the definition filename for table `name`, or None."""
        if os.path.basename(name) != name:
            return None
        for ext in (".yml", ".yaml"):
            if os.path.isfile(os.path.join(self.tables_dir, name + ext)):
                return name + ext
        return None

    def load_yaml_dict(self, filename: str) -> Optional[dict]:
        """Return parsed YAML dict for `filename`, or None if missing/invalid."""
        full_path = os.path.join(self.tables_dir, filename)
        if not os.path.isfile(full_path):
            return None
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            logger.warning("Could not read table definition %s", full_path, exc_info=True)
            return None
        return data if isinstance(data, dict) else None
