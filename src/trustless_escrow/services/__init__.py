"""Application services — use case orchestration."""

from trustless_escrow.services.escrow_service import EscrowService
from trustless_escrow.services.query_service import QueryService
from trustless_escrow.services.registry_service import RegistryService
from trustless_escrow.services.transfer_service import LedgerTransferService

__all__ = ["EscrowService", "LedgerTransferService", "QueryService", "RegistryService"]
