"""
Pydantic schema definitions for the catalog module.

The ``Livre`` model is a single book record as stored in the catalogue
file. Attribute names are English, but the model is serialised under
the French keys used by existing ``bibliotheque.json`` files
(``titre``, ``auteur``, ``isbn``, ``annee_publication``). Those keys
are part of the file format and must not change.
"""

from pydantic import BaseModel, ConfigDict, Field

# Largest year the file format accepts (u32)
YEAR_MAX = 2**32 - 1


class Livre(BaseModel):
    """A single book entry.

    The ISBN is kept as an opaque string: no checksum or format
    validation is performed. Two records may be identical, there is
    no identity beyond the position in the catalogue. The publication
    year is an unsigned 32-bit integer.

    Fields are validated strictly (no "1965" or 1965.0 for a year) and
    records are immutable: the catalogue only changes through the store.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = Field(alias="titre", strict=True)
    author: str = Field(alias="auteur", strict=True)
    isbn: str = Field(strict=True)
    publication_year: int = Field(alias="annee_publication", strict=True, ge=0, le=YEAR_MAX)

    def to_record(self) -> dict:
        """Return the record as stored on disk (French keys, fixed order)."""
        return self.model_dump(by_alias=True)
