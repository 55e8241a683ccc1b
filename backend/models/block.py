"""Block models: stored component records, requests, and dropdown options."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from engine.preview.types import PreviewRecord

# Dropdown options offered by the block editor
BUSINESS_TYPES = [
    "Services",
    "Portfolio",
    "Personal Website",
    "Consulting",
    "Professional Services",
    "Educational",
    "E-commerce",
]

STYLE_TYPES = [
    "Modern & Professional",
    "Minimal & Elegant",
    "Clean & Simple",
    "Sophisticated & Refined",
    "Bold & Creative",
]

FEATURE_TYPES = [
    "Contact Form",
    "Booking System",
    "Newsletter Integration",
    "Blog functionality",
    "Authentication",
    "E-commerce Features",
]

# Checked in this order; the first missing one is reported
REQUIRED_FIELDS = ("name", "description", "componentType", "sourceCode", "importStatement")

ComponentType = Literal["base", "composite"]

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class PropsContract(BaseModel):
    """Which props a block takes and a name → type-hint mapping."""

    model_config = {**_CAMEL}

    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)
    types: dict[str, Any] = Field(default_factory=dict)


class BlockExample(BaseModel):
    model_config = {**_CAMEL}

    description: str = ""
    code: str = ""


class Block(BaseModel):
    """A stored component record. Represents a row in the blocks table."""

    model_config = {**_CAMEL}

    id: str
    use_case: str
    name: str
    description: str = ""
    component_type: ComponentType = "base"
    business_type: list[str] = Field(default_factory=list)
    style: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    props: PropsContract = Field(default_factory=PropsContract)
    examples: list[BlockExample] = Field(default_factory=list)
    source_code: str = ""
    import_statement: str = ""
    default_props: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    def to_preview_record(self) -> PreviewRecord:
        """The slice of this record the preview pipeline reads."""
        return PreviewRecord(
            id=self.id,
            name=self.name,
            import_statement=self.import_statement,
            source_code=self.source_code,
            default_props=dict(self.default_props),
        )


class CreateBlockRequest(BaseModel):
    """
    What the client sends to create a block.

    Required fields are checked by the route so a missing one is reported
    as `Missing required field: <name>` rather than a validation dump.
    """

    model_config = {**_CAMEL, "extra": "forbid"}

    name: str = Field(default="", max_length=200)
    description: str = ""
    component_type: ComponentType | None = None
    business_type: list[str] = Field(default_factory=list)
    style: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    props: PropsContract = Field(default_factory=PropsContract)
    examples: list[BlockExample] = Field(default_factory=list)
    source_code: str = ""
    import_statement: str = ""
    default_props: dict[str, Any] | None = None

    def missing_field(self) -> str | None:
        data = self.model_dump(by_alias=True)
        for field in REQUIRED_FIELDS:
            if not data.get(field):
                return field
        return None


class UpdateBlockRequest(BaseModel):
    """What the client sends to update a block. All fields optional; sent fields replace stored ones."""

    model_config = {**_CAMEL, "extra": "forbid"}

    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    component_type: ComponentType | None = None
    business_type: list[str] | None = None
    style: list[str] | None = None
    features: list[str] | None = None
    props: PropsContract | None = None
    examples: list[BlockExample] | None = None
    source_code: str | None = None
    import_statement: str | None = None
    default_props: dict[str, Any] | None = None


class BlockFilters(BaseModel):
    """List filters. Empty lists and None mean "don't filter"."""

    component_type: ComponentType | None = None
    business_type: list[str] = Field(default_factory=list)
    style: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    search: str | None = None


class BlockOptions(BaseModel):
    """Dropdown options for the block editor."""

    model_config = {**_CAMEL}

    business_types: list[str] = Field(default_factory=lambda: list(BUSINESS_TYPES))
    styles: list[str] = Field(default_factory=lambda: list(STYLE_TYPES))
    features: list[str] = Field(default_factory=lambda: list(FEATURE_TYPES))


class RenderRequest(BaseModel):
    """Override props for a one-off server render."""

    model_config = {"extra": "forbid"}

    props: dict[str, Any] = Field(default_factory=dict)
