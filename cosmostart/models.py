"""
Family Document Models.

Pydantic models for the sample family documents, serialized with the JSON
property names stored in the container.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Base class for records stored as JSON documents.

    Store system properties (``_rid``, ``_ts``, ``_self``, ``_attachments``)
    are dropped on load. ``str()`` renders compact JSON with the stored
    property names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the JSON document body sent to the store."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        """Build an instance from a stored document."""
        return cls.model_validate(document)

    def __str__(self) -> str:
        return self.model_dump_json(by_alias=True)


class Address(Document):
    """Postal address of a family."""

    state: Optional[str] = Field(default=None, alias="State")
    county: Optional[str] = Field(default=None, alias="County")
    city: Optional[str] = Field(default=None, alias="City")


class Pet(Document):
    """A child's pet."""

    given_name: Optional[str] = Field(default=None, alias="GivenName")


class Parent(Document):
    """A parent in a family."""

    family_name: Optional[str] = Field(default=None, alias="FamilyName")
    first_name: Optional[str] = Field(default=None, alias="FirstName")


class Child(Document):
    """A child in a family.

    Attributes:
        family_name: Child's family name, when it differs from the family's
        first_name: Child's first name
        gender: Gender
        grade: School grade
        pets: Pets, or None when the child has none
    """

    family_name: Optional[str] = Field(default=None, alias="FamilyName")
    first_name: Optional[str] = Field(default=None, alias="FirstName")
    gender: Optional[str] = Field(default=None, alias="Gender")
    grade: int = Field(default=0, alias="Grade")
    pets: Optional[List[Pet]] = Field(default=None, alias="Pets")


class Family(Document):
    """A family document.

    ``id`` identifies the document within its partition and ``LastName``
    is the partition key. ``etag`` holds the ``_etag`` of the stored version
    the instance was loaded from; it is never written back as content.
    """

    id: str
    last_name: str = Field(alias="LastName")
    parents: Optional[List[Parent]] = Field(default=None, alias="Parents")
    children: Optional[List[Child]] = Field(default=None, alias="Children")
    address: Optional[Address] = Field(default=None, alias="Address")
    is_registered: bool = Field(default=False, alias="IsRegistered")
    etag: Optional[str] = Field(default=None, alias="_etag", exclude=True)
