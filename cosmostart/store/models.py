"""
Document Store Resource Models.

Pydantic models for databases and containers held by the in-memory store,
matching the resource properties Azure Cosmos DB returns.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


MIN_THROUGHPUT = 400
THROUGHPUT_STEP = 100


class PartitionKeyDefinition(BaseModel):
    """Partition key definition for container.

    Attributes:
        paths: List of partition key paths (e.g., ["/LastName"])
        kind: Partition key kind
        version: Partition key version
    """

    paths: List[str]
    kind: str = "Hash"
    version: int = Field(default=2, alias="Version")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("paths", mode="before")
    @classmethod
    def validate_paths(cls, v: List[str]) -> List[str]:
        """Validate partition key paths.

        Args:
            v: Partition key paths

        Returns:
            Validated paths

        Raises:
            ValueError: If paths are invalid
        """
        if not v:
            raise ValueError("Partition key paths cannot be empty")

        for path in v:
            if not path.startswith("/") or len(path) < 2:
                raise ValueError(f"Partition key path must start with '/': {path}")
            if "/" in path[1:]:
                raise ValueError(f"Nested partition key paths are not supported: {path}")

        return v

    @property
    def field_name(self) -> str:
        """Top-level document field named by the first path."""
        return self.paths[0].lstrip("/")


class Database(BaseModel):
    """Cosmos DB database.

    Attributes:
        id: Database identifier
        _rid: Resource ID (internal)
        _ts: Timestamp
        _self: Self link
        _etag: ETag
    """

    id: str
    rid: str = Field(default="", alias="_rid")
    ts: int = Field(default=0, alias="_ts")
    self_link: str = Field(default="", alias="_self")
    etag: str = Field(default="", alias="_etag")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("Database ID cannot be empty")

        if len(v) > 255:
            raise ValueError("Database ID must be 255 characters or less")

        # Azure Cosmos DB allows alphanumeric, underscore, and hyphen
        if not all(c.isalnum() or c in ['_', '-'] for c in v):
            raise ValueError("Database ID can only contain alphanumeric characters, underscores, and hyphens")

        return v


class Container(BaseModel):
    """Cosmos DB container.

    ``throughput`` is the manual RU/s provisioned on the container. A
    container with autoscale or without dedicated throughput has none.

    Attributes:
        id: Container identifier
        partition_key: Partition key definition
        throughput: Manual throughput in RU/s
        autoscale_max_throughput: Autoscale ceiling in RU/s
        _rid: Resource ID (internal)
        _ts: Timestamp
        _self: Self link
        _etag: ETag
    """

    id: str
    partition_key: PartitionKeyDefinition = Field(alias="partitionKey")
    throughput: Optional[int] = None
    autoscale_max_throughput: Optional[int] = Field(default=None, alias="autoscaleMaxThroughput")
    rid: str = Field(default="", alias="_rid")
    ts: int = Field(default=0, alias="_ts")
    self_link: str = Field(default="", alias="_self")
    etag: str = Field(default="", alias="_etag")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("Container ID cannot be empty")

        if len(v) > 255:
            raise ValueError("Container ID must be 255 characters or less")

        return v


def validate_throughput(value: int) -> None:
    """
    Check a manual throughput value against Cosmos DB limits.

    Raises:
        ValueError: If below the minimum or not a multiple of the step
    """
    if value < MIN_THROUGHPUT:
        raise ValueError(f"Throughput must be at least {MIN_THROUGHPUT} RU/s, got {value}")
    if value % THROUGHPUT_STEP != 0:
        raise ValueError(f"Throughput must be a multiple of {THROUGHPUT_STEP} RU/s, got {value}")
