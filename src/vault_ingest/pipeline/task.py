"""Conversion of one deposit into an RDA bag.

``ConvertToRdaBagTask`` takes a deposit directory from the inbox through
validation, loading, identifier assignment, catalog registration and bag
writing, and always ends by moving the directory to the outbox bucket
that matches the outcome:

- ACCEPTED: the RDA bag was written
- REJECTED: the deposit's content or provenance is not acceptable
- FAILED: anything else went wrong

A catalog registration is not undone when writing the bag fails
afterwards; the FAILED deposit keeps the NBN and version it was
registered with in its properties, so the two can be reconciled.
"""

import logging
from pathlib import Path
from typing import Callable

from schemas.deposit import State
from vault_ingest.clients.bag_validator import BagValidator
from vault_ingest.clients.vault_catalog import VaultCatalogClient
from vault_ingest.deposit.deposit import Deposit
from vault_ingest.deposit.loader import DepositLoader, find_bag_dir
from vault_ingest.deposit.outbox import DepositOutbox
from vault_ingest.exceptions import IngestError, InvalidDepositError, OutboxError
from vault_ingest.identifiers import IdMinter, strip_namespace
from vault_ingest.rdabag.output import BagOutputWriter, ZipBagOutputWriter
from vault_ingest.rdabag.writer import RdaBagWriterFactory

logger = logging.getLogger(__name__)

STAGE = "convert-to-rda-bag"


def output_filename(bag_id: str, object_version: int, prefix: str = "", extension: str = "zip") -> str:
    """Filename of the RDA bag for a dataset version.

    >>> output_filename("urn:uuid:AB12-CD", 3, prefix="vaas-")
    'vaas-ab12-cd-v3.zip'
    """
    if not bag_id:
        raise ValueError("bag id is required")
    if object_version is None:
        raise ValueError("object version is required")

    name = f"{prefix}{strip_namespace(bag_id)}-v{object_version}"
    return f"{name}.{extension}" if extension else name


class ConvertToRdaBagTask:
    """Convert a single deposit directory into an RDA bag.

    Attributes:
        path: Deposit directory in the inbox
        outbox: Outbox receiving the deposit directory afterwards
        output_dir: Directory receiving the RDA bag
        filename_prefix: Prefix of the RDA bag filename
    """

    def __init__(
        self,
        path: Path,
        outbox: DepositOutbox,
        deposit_loader: DepositLoader,
        rda_bag_writer_factory: RdaBagWriterFactory,
        vault_catalog_client: VaultCatalogClient,
        bag_validator: BagValidator,
        id_minter: IdMinter,
        output_dir: Path,
        filename_prefix: str = "vaas-",
        output_writer_factory: Callable[[Path], BagOutputWriter] = ZipBagOutputWriter,
        output_extension: str = "zip",
    ):
        self.path = path
        self.outbox = outbox
        self.deposit_loader = deposit_loader
        self.rda_bag_writer_factory = rda_bag_writer_factory
        self.vault_catalog_client = vault_catalog_client
        self.bag_validator = bag_validator
        self.id_minter = id_minter
        self.output_dir = output_dir
        self.filename_prefix = filename_prefix
        self.output_writer_factory = output_writer_factory
        self.output_extension = output_extension

    def __repr__(self) -> str:
        return f"ConvertToRdaBagTask('{self.path}')"

    def run(self) -> State:
        """Process the deposit and move it to the outbox.

        Returns:
            The terminal state the deposit ended in

        Raises:
            OutboxError: If the deposit could not be moved to the outbox at
                         all; it is then left in the inbox
        """
        logger.info(f"Processing deposit on path {self.path}")
        deposit: Deposit | None = None

        try:
            bag_dir = find_bag_dir(self.path)

            logger.debug(f"Validating deposit on path {bag_dir}")
            self.bag_validator.validate(bag_dir)

            logger.debug(f"Loading deposit on path {self.path}")
            deposit = self.deposit_loader.load(self.path)
            self.process_deposit(deposit)

            logger.debug(f"Deposit {deposit.id} processed successfully")
            self.deposit_loader.save_properties(deposit)

            logger.debug("Moving deposit to outbox")
            self.outbox.move_deposit(deposit)
            return State.ACCEPTED

        except InvalidDepositError as e:
            return self._handle_failed_deposit(deposit, State.REJECTED, e)
        except Exception as e:
            return self._handle_failed_deposit(deposit, State.FAILED, e)

    def process_deposit(self, deposit: Deposit) -> Path:
        """Assign identifiers, register the deposit and write its RDA bag.

        Returns:
            Path of the RDA bag

        Raises:
            InvalidDepositError: If an update refers to an unknown dataset or
                                 to a dataset of another data supplier
        """
        if deposit.is_update:
            self._assign_existing_nbn(deposit)
        else:
            deposit.nbn = self.id_minter.mint_urn_nbn()
            logger.info(f"Minted {deposit.nbn} for new dataset in deposit {deposit.id}")

        registered = self.vault_catalog_client.register_deposit(deposit)
        deposit.object_version = registered.object_version

        target = self.output_dir / output_filename(
            deposit.bag_id,
            registered.object_version,
            prefix=self.filename_prefix,
            extension=self.output_extension,
        )

        try:
            writer = self.rda_bag_writer_factory.create_rda_bag_writer(deposit)
            with self.output_writer_factory(target) as output:
                writer.write(deposit, output)
        except Exception as e:
            raise IngestError(f"Error writing bag: {e}") from e

        message = (
            f"Deposit accepted as version {deposit.object_version} of {deposit.nbn}; "
            f"RDA bag written to {target.name}"
        )
        deposit.set_state(State.ACCEPTED, message)
        deposit.write_log(message, "INFO", STAGE)
        return target

    def _assign_existing_nbn(self, deposit: Deposit) -> None:
        sword_token = deposit.sword_token
        if not sword_token:
            raise InvalidDepositError(
                f"Deposit {deposit.id} is an update but does not say which dataset it is a version of"
            )

        catalog_deposit = self.vault_catalog_client.find_deposit(sword_token)
        if catalog_deposit is None:
            raise InvalidDepositError(
                f"Deposit with sword token {sword_token} not found in vault catalog"
            )

        if deposit.data_supplier != catalog_deposit.data_supplier:
            raise InvalidDepositError(
                f"Data supplier in deposit {deposit.data_supplier} does not match "
                f"the data supplier {catalog_deposit.data_supplier} in the vault catalog"
            )

        deposit.nbn = catalog_deposit.nbn
        logger.info(f"Deposit {deposit.id} is a new version of {deposit.nbn}")

    def _handle_failed_deposit(self, deposit: Deposit | None, state: State, error: Exception) -> State:
        message = str(error)
        if state is State.FAILED:
            logger.error(f"Deposit on path {self.path} failed with state {state.value}: {message}", exc_info=error)
        else:
            logger.error(f"Deposit on path {self.path} failed with state {state.value}: {message}")

        try:
            if deposit is not None:
                deposit.set_state(state, message)
                deposit.write_log(message, "ERROR", STAGE)
                self.deposit_loader.save_properties(deposit)
            else:
                self.deposit_loader.update_state(self.path, state, message)

            logger.info(f"Moving deposit to outbox: {self.path}")
            self.outbox.move(self.path, state)
            return state

        except Exception as e:
            logger.error(f"Failed to update deposit state and move deposit to outbox: {e}")

            try:
                logger.info(f"Just moving deposit to outbox: {self.path}")
                self.outbox.move(self.path, State.FAILED)
                return State.FAILED
            except Exception as move_error:
                logger.error(f"Failed to move deposit {self.path} to outbox, nothing left to do: {move_error}")
                raise OutboxError(
                    f"Deposit {self.path.name} could not be moved to the outbox and was left in place"
                ) from move_error
