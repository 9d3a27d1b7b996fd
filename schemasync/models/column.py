# ============================================================================
# COLUMN MODEL
# ============================================================================
# STATUS: Core model - Column definition within a table
# PURPOSE: Column identity, type token, flags, fk and enum references
# CREATED: 19 OCT 2026
# EXPORTS: Column
# DEPENDENCIES: pydantic
# ============================================================================
"""
Column Model

A column is identified by its title, unique within its table. `format` holds
the raw lower-case type token (`uuid`, `varchar(255)`, `int4[]`) and `type`
the coarse category the UI groups by.

Invariants:
    - pk implies required (coerced on construction)
    - a column is enum-typed iff format == "enum" or enum_type_name is set
    - when enum_type_name is set the named enum is authoritative and
      enum_values is only a cached copy
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from schemasync.contracts import ColumnCategory

if TYPE_CHECKING:
    from schemasync.models.enum_type import EnumTypeDefinition


class Column(BaseModel):
    """
    Single column definition.

    Maps to: one entry of Table.columns (order is display/DDL order)
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., description="Column name, unique within its table")
    format: str = Field(default="text", description="Raw type token, lower-case")
    type: str = Field(
        default=ColumnCategory.STRING.value,
        description="Coarse category: string/number/boolean/object/array",
    )
    default: Optional[str] = Field(default=None, description="Raw DEFAULT expression text")
    required: bool = Field(default=False, description="NOT NULL")
    pk: bool = False
    unique: bool = False
    fk: Optional[str] = Field(default=None, description="[schema.]table.column reference")
    enum_type_name: Optional[str] = Field(default=None, alias="enumTypeName")
    enum_values: Optional[List[str]] = Field(default=None, alias="enumValues")
    comment: Optional[str] = None

    @field_validator("default", mode="before")
    @classmethod
    def coerce_default(cls, v: Any) -> Optional[str]:
        """Persisted defaults may arrive as JSON numbers or booleans."""
        if v is None:
            return None
        if isinstance(v, bool):
            return "true" if v else "false"
        text = str(v)
        return text if text.strip() else None

    @field_validator("fk", "enum_type_name", "comment", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def primary_key_is_required(self) -> "Column":
        if self.pk and not self.required:
            self.required = True
        return self

    # =========================================================================
    # ENUM HELPERS
    # =========================================================================

    @property
    def is_enum(self) -> bool:
        return self.format == "enum" or bool(self.enum_type_name)

    def resolve_enum_values(
        self, enum_types: Dict[str, "EnumTypeDefinition"]
    ) -> List[str]:
        """
        Values this column accepts.

        A named enum found in enum_types wins; otherwise the inline values.
        """
        if self.enum_type_name and self.enum_type_name in enum_types:
            return list(enum_types[self.enum_type_name].values)
        return list(self.enum_values or [])


__all__ = ["Column"]
