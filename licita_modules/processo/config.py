"""
Processo Configuration Schema.

Defines the structure and defaults for bid lifecycle settings.
Actual values are loaded from company configuration at runtime
(see ``licita_config.loader``).
"""

from dataclasses import dataclass, field
from typing import Self

from licita_kernel.logging_config import get_logger
from licita_modules.processo.models import ItemStatus

logger = get_logger("modules.processo.config")


DEFAULT_PENDING_FULFILLMENT_STATUSES: tuple[ItemStatus, ...] = (
    ItemStatus.ACEITO,
    ItemStatus.ACEITO_HABILITADO,
    ItemStatus.AGUARDANDO_ENTREGA,
    ItemStatus.EXECUCAO,
)


@dataclass
class ProcessoConfig:
    """
    Configuration schema for the processo module.

    Override at instantiation with company-specific values:

        config = ProcessoConfig(
            strict_linkage_quantity=False,
            archive_on_loss=True,
        )
    """

    # Item statuses whose awarded value counts toward the awarded balance
    pending_fulfillment_statuses: tuple[ItemStatus, ...] = field(
        default_factory=lambda: DEFAULT_PENDING_FULFILLMENT_STATUSES,
    )

    # Linkages
    strict_linkage_quantity: bool = True

    # Lifecycle
    archive_on_loss: bool = False
    auto_close_on_payment: bool = True

    def __post_init__(self):
        self.pending_fulfillment_statuses = tuple(
            ItemStatus(s) for s in self.pending_fulfillment_statuses
        )
        logger.info(
            "processo_config_initialized",
            extra={
                "pending_fulfillment_statuses": [
                    s.value for s in self.pending_fulfillment_statuses
                ],
                "strict_linkage_quantity": self.strict_linkage_quantity,
                "archive_on_loss": self.archive_on_loss,
                "auto_close_on_payment": self.auto_close_on_payment,
            },
        )

    @property
    def pending_status_values(self) -> frozenset[str]:
        return frozenset(s.value for s in self.pending_fulfillment_statuses)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("processo_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from database/file)."""
        logger.info(
            "processo_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        if "pending_fulfillment_statuses" in data:
            data["pending_fulfillment_statuses"] = tuple(data["pending_fulfillment_statuses"])
        return cls(**data)
