"""
Typed Exception Hierarchy for the Licita Kernel.

===============================================================================
TYPED EXCEPTIONS
===============================================================================

Callers branch on exception TYPE and read structured attributes; they never
parse messages.  Every exception carries:
  1. A typed class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA (ids, statuses, quantities) as instance attributes

Example:
    try:
        lifecycle.mark_lost(empresa_id, processo_id)
    except StatusTransitionError as e:
        api_response(code=e.code, motivo=e.motivo)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LicitaKernelError:

    LicitaKernelError (base)
    |
    +-- NotFoundError
    |   +-- ProcessNotFoundError
    |   +-- ItemNotFoundError
    |   +-- LinkageNotFoundError
    |
    +-- DomainRuleError
    |   +-- StatusTransitionError
    |   |   +-- PaymentConfirmationError
    |   +-- ProcessNotInExecutionError
    |   +-- ProcessLockedError
    |
    +-- LinkageError
        +-- LinkageQuantityExceededError
        +-- LinkageOwnershipError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                           | When Raised
----------------|--------------------------------|---------------------------------------
Not found       | PROCESS_NOT_FOUND              | Unknown process or other company's
                | ITEM_NOT_FOUND                 | Unknown item or other company's
                | LINKAGE_NOT_FOUND              | Unknown linkage or other company's
----------------|--------------------------------|---------------------------------------
Domain rule     | STATUS_TRANSITION_REJECTED     | Transition table or policy refused
                | PAYMENT_CONFIRMATION_REJECTED  | Payment on a process not in execution
                | PROCESS_NOT_IN_EXECUTION       | Balance requested outside execution
                | PROCESS_LOCKED                 | Editing a process past participation
----------------|--------------------------------|---------------------------------------
Linkage         | LINKAGE_QUANTITY_EXCEEDED      | Linked quantity above item quantity
                | LINKAGE_OWNERSHIP_MISMATCH     | Item or instrument of another process

===============================================================================
HANDLING PATTERNS
===============================================================================

1. Not-found and rule errors abort the operation before any write.  The
   caller's ``session_scope`` rolls back whatever the session holds.

2. ``StatusTransitionError.motivo`` is the human-readable reason produced
   by the status policy; the exception message is that reason verbatim.
"""

from uuid import UUID


class LicitaKernelError(Exception):
    """
    Base exception for all licita kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LICITA_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(LicitaKernelError):
    """Base exception for lookups that found nothing visible to the caller."""

    code: str = "NOT_FOUND"


class ProcessNotFoundError(NotFoundError):
    """Process does not exist or belongs to another company."""

    code: str = "PROCESS_NOT_FOUND"

    def __init__(self, processo_id: UUID | str, empresa_id: UUID | str | None = None):
        self.processo_id = str(processo_id)
        self.empresa_id = str(empresa_id) if empresa_id is not None else None
        super().__init__(f"Process not found: {processo_id}")


class ItemNotFoundError(NotFoundError):
    """Process item does not exist or belongs to another company."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: UUID | str, empresa_id: UUID | str | None = None):
        self.item_id = str(item_id)
        self.empresa_id = str(empresa_id) if empresa_id is not None else None
        super().__init__(f"Process item not found: {item_id}")


class LinkageNotFoundError(NotFoundError):
    """Linkage does not exist or belongs to another company."""

    code: str = "LINKAGE_NOT_FOUND"

    def __init__(self, linkage_id: UUID | str):
        self.linkage_id = str(linkage_id)
        super().__init__(f"Linkage not found: {linkage_id}")


# Domain rule exceptions


class DomainRuleError(LicitaKernelError):
    """Base exception for business rule violations."""

    code: str = "DOMAIN_RULE_VIOLATION"


class StatusTransitionError(DomainRuleError):
    """
    A status change was refused.

    The message is the refusal reason verbatim so it can be shown to users
    as-is.
    """

    code: str = "STATUS_TRANSITION_REJECTED"

    def __init__(
        self,
        motivo: str,
        processo_id: UUID | str | None = None,
        from_status: str | None = None,
        to_status: str | None = None,
    ):
        self.motivo = motivo
        self.processo_id = str(processo_id) if processo_id is not None else None
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(motivo)


class PaymentConfirmationError(StatusTransitionError):
    """Payment confirmation attempted on a process that is not in execution."""

    code: str = "PAYMENT_CONFIRMATION_REJECTED"


class ProcessNotInExecutionError(DomainRuleError):
    """Operation is only available while the process is in execution."""

    code: str = "PROCESS_NOT_IN_EXECUTION"

    def __init__(self, processo_id: UUID | str, status: str):
        self.processo_id = str(processo_id)
        self.status = status
        super().__init__(
            f"Process {processo_id} is not in execution (status: {status})"
        )


class ProcessLockedError(DomainRuleError):
    """Descriptive fields can no longer be edited in the current status."""

    code: str = "PROCESS_LOCKED"

    def __init__(self, processo_id: UUID | str, status: str):
        self.processo_id = str(processo_id)
        self.status = status
        super().__init__(
            f"Process {processo_id} cannot be edited in status {status}"
        )


# Linkage exceptions


class LinkageError(LicitaKernelError):
    """Base exception for item-to-instrument linkage errors."""

    code: str = "LINKAGE_ERROR"


class LinkageQuantityExceededError(LinkageError):
    """Requested linkage quantity exceeds what is still available on the item."""

    code: str = "LINKAGE_QUANTITY_EXCEEDED"

    def __init__(
        self,
        item_id: UUID | str,
        kind: str,
        requested: str,
        available: str,
    ):
        self.item_id = str(item_id)
        self.kind = kind
        self.requested = requested
        self.available = available
        super().__init__(
            f"Quantity {requested} exceeds available {available} "
            f"for {kind} linkages of item {item_id}"
        )


class LinkageOwnershipError(LinkageError):
    """Item or instrument does not belong to the process being linked."""

    code: str = "LINKAGE_OWNERSHIP_MISMATCH"

    def __init__(self, processo_id: UUID | str, document: str, document_id: UUID | str):
        self.processo_id = str(processo_id)
        self.document = document
        self.document_id = str(document_id)
        super().__init__(
            f"{document} {document_id} does not belong to process {processo_id}"
        )
