"""Wiring of the ingest flow from its configuration."""

import logging
from pathlib import Path

from schemas.config import IngestFlowConfig
from schemas.deposit import State
from vault_ingest.clients.bag_validator import BagValidator
from vault_ingest.clients.vault_catalog import VaultCatalogClient
from vault_ingest.deposit.deposit import UPDATE_DETECTORS
from vault_ingest.deposit.loader import DepositLoader
from vault_ingest.deposit.outbox import DepositOutbox
from vault_ingest.identifiers import IdMinter
from vault_ingest.rdabag.writer import RdaBagWriterFactory

from .ingest_area import IngestArea
from .task import ConvertToRdaBagTask

logger = logging.getLogger(__name__)


class IngestFlow:
    """The ingest flow: inbox, conversion tasks, outbox and their services.

    Creates the outbox buckets and the RDA bag output directory, and builds
    one ``ConvertToRdaBagTask`` per deposit directory. The service clients
    and the identifier minter are shared by all tasks.

    Attributes:
        config: Validated configuration
        outbox: Outbox with processed/rejected/failed buckets
        deposit_loader: Loader configured with data suppliers and update detection
        bag_validator: Client for the bag validator service
        vault_catalog_client: Client for the vault catalog service
        id_minter: Minter for new URN:NBNs
    """

    def __init__(
        self,
        config: IngestFlowConfig,
        bag_validator: BagValidator | None = None,
        vault_catalog_client: VaultCatalogClient | None = None,
        id_minter: IdMinter | None = None,
    ):
        self.config = config

        self.outbox = DepositOutbox(config.outbox)
        self.outbox.create_buckets()
        config.rda_bag_output_dir.mkdir(parents=True, exist_ok=True)

        self.deposit_loader = DepositLoader(
            data_suppliers=config.data_suppliers,
            update_detector=UPDATE_DETECTORS[config.update_detection],
        )
        self.rda_bag_writer_factory = RdaBagWriterFactory(publisher=config.publisher)
        self.bag_validator = bag_validator or BagValidator(config.validate_dans_bag)
        self.vault_catalog_client = vault_catalog_client or VaultCatalogClient(config.vault_catalog)
        self.id_minter = id_minter or IdMinter()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        self.bag_validator.close()
        self.vault_catalog_client.close()

    def create_task(self, path: Path) -> ConvertToRdaBagTask:
        return ConvertToRdaBagTask(
            path=path,
            outbox=self.outbox,
            deposit_loader=self.deposit_loader,
            rda_bag_writer_factory=self.rda_bag_writer_factory,
            vault_catalog_client=self.vault_catalog_client,
            bag_validator=self.bag_validator,
            id_minter=self.id_minter,
            output_dir=self.config.rda_bag_output_dir,
            filename_prefix=self.config.output_filename_prefix,
        )

    def ingest_area(self) -> IngestArea:
        return IngestArea(
            inbox=self.config.inbox,
            outbox=self.outbox,
            task_factory=self.create_task,
            deposit_loader=self.deposit_loader,
            max_workers=self.config.task_queue.max_workers,
            poll_interval=self.config.task_queue.poll_interval,
        )

    def convert(self, path: Path) -> State:
        """Convert a single deposit directory.

        Args:
            path: Deposit directory, normally inside the inbox

        Returns:
            The terminal state of the deposit
        """
        logger.info(f"Converting single deposit {path}")
        return self.create_task(path).run()
