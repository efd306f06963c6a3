"""Client for the DANS bag validator service."""

import logging
from pathlib import Path

from schemas.validation import ValidateCommand, ValidateResult
from vault_ingest.exceptions import InvalidDepositError

from .client import Client

logger = logging.getLogger(__name__)


class BagValidator(Client):
    """Validate deposit bags against the DANS bag rules.

    The validator reads the bag from a location on a shared filesystem, so
    only the absolute path is sent.

    Config keys (in addition to those of ``Client``):
        validate_path: Path of the validate endpoint (default: /validate)
        package_type: Package type sent with each command (default: DEPOSIT)

    Example:
        with BagValidator({"base_url": "http://localhost:20330"}) as validator:
            validator.validate(Path("/inbox/deposit-1/bag"))
    """

    @property
    def validate_path(self) -> str:
        return str(self._config.get("validate_path", "/validate"))

    @property
    def package_type(self) -> str:
        return str(self._config.get("package_type", "DEPOSIT"))

    def validate(self, bag_dir: Path) -> ValidateResult:
        """Validate a bag directory.

        Args:
            bag_dir: Path to the bag inside the deposit directory

        Returns:
            The validator's result, always compliant

        Raises:
            InvalidDepositError: If the bag does not comply with the rules
            ConnectionError: If the validator cannot be reached
            APIError: If the validator returns a non-2xx response
            ResponseValidationError: If the answer is not a validation result
        """
        command = ValidateCommand(
            bag_location=str(bag_dir.resolve()),
            package_type=self.package_type,
        )
        logger.debug(f"Validating bag {bag_dir} as {command.package_type}")

        result = self.post_model(self.validate_path, command, ValidateResult)

        if not result.is_compliant:
            violations = [f"{v.rule}: {v.violation}" for v in result.rule_violations]
            raise InvalidDepositError(
                f"Bag {bag_dir.name} is not compliant: " + "; ".join(violations),
                violations=violations,
            )

        logger.debug(f"Bag {bag_dir} is compliant")
        return result
