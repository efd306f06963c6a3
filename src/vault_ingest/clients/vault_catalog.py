"""Client for the vault catalog service."""

import logging
from typing import TYPE_CHECKING
from urllib.parse import quote

from schemas.catalog import CatalogDeposit, DepositRegistration, RegisteredDeposit

from .client import Client

if TYPE_CHECKING:
    from vault_ingest.deposit.deposit import Deposit

logger = logging.getLogger(__name__)


class VaultCatalogClient(Client):
    """Look up and register dataset versions in the vault catalog.

    Example:
        with VaultCatalogClient({"base_url": "http://localhost:20305"}) as catalog:
            existing = catalog.find_deposit("sword:123e4567")
    """

    API_PATH = "/datasets"

    def find_deposit(self, sword_token: str) -> CatalogDeposit | None:
        """Find the dataset a new version refers to.

        Args:
            sword_token: Token identifying the earlier dataset

        Returns:
            The catalog's record of the dataset, or None if it is unknown

        Raises:
            ConnectionError: If the catalog cannot be reached
            APIError: For any non-2xx response other than 404
        """
        found = self.get_model(
            f"{self.API_PATH}/sword-token/{quote(sword_token, safe='')}",
            CatalogDeposit,
            missing_ok=True,
        )
        if found is None:
            logger.debug(f"No dataset with sword token {sword_token} in vault catalog")
        return found

    def register_deposit(self, deposit: "Deposit") -> RegisteredDeposit:
        """Register a deposit as the next version of its dataset.

        The catalog assigns the version number; it must be known before the
        RDA bag is written because the bag's filename contains it.

        Args:
            deposit: Deposit with its NBN already set

        Returns:
            The registration, carrying the assigned object version

        Raises:
            ValueError: If the deposit has no NBN
            ConnectionError: If the catalog cannot be reached
            APIError: If the catalog refuses the registration
        """
        if not deposit.nbn:
            raise ValueError(f"deposit {deposit.id} has no NBN; cannot register it")

        registration = DepositRegistration(
            bag_id=deposit.bag_id,
            nbn=deposit.nbn,
            deposit_id=deposit.id,
            sword_token=deposit.sword_token,
            data_supplier=deposit.data_supplier,
            title=deposit.title,
            depositor=deposit.depositor_id,
        )

        registered = self.post_model(
            f"{self.API_PATH}/{quote(deposit.nbn, safe='')}/versions",
            registration,
            RegisteredDeposit,
        )
        logger.info(
            f"Registered deposit {deposit.id} as version {registered.object_version} "
            f"of {registered.nbn}"
        )
        return registered
