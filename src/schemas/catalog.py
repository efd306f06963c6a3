"""Vault catalog schemas.

The vault catalog is the service of record for archival identifiers,
depositors and the version numbers assigned to each dataset.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    """Base model accepting both camelCase wire names and snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class CatalogDeposit(CatalogModel):
    """A dataset as known to the vault catalog.

    Attributes:
        nbn: Archival identifier (URN:NBN) of the dataset
        data_supplier: Depositor account that owns the dataset
        sword_token: Token under which later versions refer to the dataset
        object_version: Highest version registered so far
    """

    nbn: str
    data_supplier: str | None = None
    sword_token: str | None = None
    object_version: int | None = None


class DepositRegistration(CatalogModel):
    """Request body for registering a new dataset version."""

    bag_id: str
    nbn: str
    deposit_id: str
    sword_token: str | None = None
    data_supplier: str | None = None
    title: str | None = None
    depositor: str | None = None


class RegisteredDeposit(CatalogModel):
    """Catalog response for a registered dataset version.

    Attributes:
        nbn: Archival identifier the version was registered under
        object_version: Version number assigned to this deposit
    """

    nbn: str
    object_version: int
