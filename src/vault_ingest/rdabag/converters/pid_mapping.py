"""PID mapping converter for ``metadata/pid-mapping.txt``."""

from typing import TYPE_CHECKING

from ..manifests import PAYLOAD_ROOT

if TYPE_CHECKING:
    from vault_ingest.deposit.deposit import Deposit
    from vault_ingest.deposit.payload import PayloadFile


def file_uri(payload_file: "PayloadFile") -> str:
    """Identifier of a payload file that has no persistent identifier of its own."""
    return f"file:///{payload_file.bag_path}"


class PidMappingConverter:
    """Map persistent identifiers to paths inside the RDA bag.

    The first line maps the dataset's identifier to ``data/``; every payload
    file follows in bag order.
    """

    def convert(self, deposit: "Deposit") -> list[tuple[str, str]]:
        mappings = []
        dataset_pid = deposit.doi or deposit.nbn
        if dataset_pid:
            mappings.append((dataset_pid, f"{PAYLOAD_ROOT}/"))

        for payload_file in deposit.payload_files:
            pid = payload_file.pid or file_uri(payload_file)
            mappings.append((pid, str(payload_file.bag_path)))

        return mappings

    def serialize(self, deposit: "Deposit") -> bytes:
        lines = [f"{pid}  {path}\n" for pid, path in self.convert(deposit)]
        return "".join(lines).encode("utf-8")
