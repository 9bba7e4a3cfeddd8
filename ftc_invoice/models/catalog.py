from typing import Literal
from pydantic import BaseModel, ConfigDict, Field

Manufacturer = Literal["GoBILDA", "REV", "Other"]


class PartVariant(BaseModel):
    """One purchasable SKU within a part family"""
    model_config = ConfigDict(frozen=True)

    sku: str
    price: float
    rpm: str | None = None
    torque: str | None = None
    gear_ratio: str | None = None
    shaft_type: str | None = None
    shaft_length: str | None = None
    voltage: str | None = None
    current: str | None = None
    weight: str | None = None
    dimensions: str | None = None


class SpecificationOptions(BaseModel):
    """Selectable spec axes shown in the UI; never used for matching"""
    model_config = ConfigDict(frozen=True)

    shaft_lengths: tuple[str, ...] | None = None
    rpms: tuple[str, ...] | None = None
    gear_ratios: tuple[str, ...] | None = None
    shaft_types: tuple[str, ...] | None = None
    voltages: tuple[str, ...] | None = None
    sizes: tuple[str, ...] | None = None


class PartFamily(BaseModel):
    """A catalog part grouping (e.g. one motor series) and its variants"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    manufacturer: Manufacturer
    category: str
    series: str
    datasheet_url: str | None = None
    image_url: str | None = None
    variants: tuple[PartVariant, ...] = Field(min_length=1)
    specification_options: SpecificationOptions = SpecificationOptions()

    def find_variant(self, sku: str) -> PartVariant | None:
        for variant in self.variants:
            if variant.sku == sku:
                return variant
        return None


class CatalogFile(BaseModel):
    """On-disk catalog document"""
    version: int = 1
    families: list[PartFamily]
