# ============================================================================
# ENUM TYPE MODEL
# ============================================================================
# STATUS: Core model - Named enum type (CREATE TYPE ... AS ENUM)
# PURPOSE: Ordered, case-insensitively distinct enum values
# CREATED: 19 OCT 2026
# EXPORTS: EnumTypeDefinition
# DEPENDENCIES: pydantic
# ============================================================================

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemasync.identifiers import table_key


class EnumTypeDefinition(BaseModel):
    """
    Enum type definition, keyed in SchemaModel.enum_types by `key`.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    schema_name: Optional[str] = Field(default=None, alias="schema")
    values: List[str] = Field(default_factory=list)

    @field_validator("values")
    @classmethod
    def values_distinct(cls, v: List[str]) -> List[str]:
        """Duplicate values are rejected case-insensitively."""
        seen = set()
        for value in v:
            folded = value.lower()
            if folded in seen:
                raise ValueError(f"Duplicate enum value: '{value}'")
            seen.add(folded)
        return v

    @property
    def key(self) -> str:
        return table_key(self.schema_name, self.name)


__all__ = ["EnumTypeDefinition"]
