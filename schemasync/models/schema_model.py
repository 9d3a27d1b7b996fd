# ============================================================================
# SCHEMA MODEL
# ============================================================================
# STATUS: Core model - Complete schema (tables + enum types)
# PURPOSE: The structure the parser builds and the generator renders
# CREATED: 19 OCT 2026
# EXPORTS: TableState, EnumMap, SchemaModel
# DEPENDENCIES: pydantic
# ============================================================================
"""
Schema Model

Two maps:
    tables      table key -> Table
    enum_types  enum key  -> EnumTypeDefinition

Foreign keys (column `fk` strings and ForeignKeyReference) should point at
an existing table key and column title. Unresolvable references are kept as
opaque text and never repaired; see services.relationship_service for
diagnostics.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from schemasync.models.column import Column
from schemasync.models.enum_type import EnumTypeDefinition
from schemasync.models.table import Table

TableState = Dict[str, Table]
EnumMap = Dict[str, EnumTypeDefinition]

# Fields that only affect the canvas, not the DDL
LAYOUT_FIELDS = {"position", "color"}


class SchemaModel(BaseModel):
    """Tables plus named enum types."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tables: Dict[str, Table] = Field(default_factory=dict)
    enum_types: Dict[str, EnumTypeDefinition] = Field(default_factory=dict, alias="enumTypes")

    def deep_copy(self) -> "SchemaModel":
        return self.model_copy(deep=True)

    def resolve_enum_values(self, column: Column) -> list:
        return column.resolve_enum_values(self.enum_types)

    def to_json_dict(self) -> Dict[str, Any]:
        """Persisted / wire form (camelCase keys, no nulls)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def structure(self) -> Dict[str, Any]:
        """
        Comparable form of everything SQL can express.

        Layout fields are dropped and constraints/indexes are sorted, so two
        models that render to the same DDL compare equal.
        """
        tables = {}
        for key, table in self.tables.items():
            data = table.model_dump(mode="json", exclude=LAYOUT_FIELDS)
            data["constraints"] = sorted(
                data["constraints"],
                key=lambda c: (c["type"], c.get("name") or "", [x.lower() for x in c["columns"]]),
            )
            data["indexes"] = sorted(data["indexes"], key=lambda i: i["name"])
            tables[key] = data
        enums = {key: e.model_dump(mode="json") for key, e in self.enum_types.items()}
        return {"tables": tables, "enum_types": enums}


__all__ = ["TableState", "EnumMap", "SchemaModel", "LAYOUT_FIELDS"]
