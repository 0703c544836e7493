"""Custom exceptions for PawnMaster application."""


class PawnMasterError(Exception):
    """Base exception for all PawnMaster errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(PawnMasterError):
    """Raised when input is missing or out of range."""

    def __init__(self, message: str, field: str = None, value=None):
        details = {}
        if field:
            details['field'] = field
            details['value'] = value
        super().__init__(message, details)
        self.field = field


class InvalidStateTransitionError(PawnMasterError):
    """Raised when an operation needs a contract in a different status."""

    def __init__(self, contract_id: str, status: str, operation: str):
        details = {
            'contract_id': contract_id,
            'status': status,
            'operation': operation
        }
        message = f"Cannot {operation} contract '{contract_id}' (status: {status})"
        super().__init__(message, details)
        self.contract_id = contract_id
        self.status = status
        self.operation = operation


class NotFoundError(PawnMasterError):
    """Raised when a referenced record does not exist."""
    pass


class ContractNotFoundError(NotFoundError):
    """Raised when a contract cannot be found."""

    def __init__(self, contract_id: str):
        super().__init__(f"Contract '{contract_id}' not found",
                         {'contract_id': contract_id})


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer cannot be found."""

    def __init__(self, customer_id: str = None, name: str = None):
        details = {}
        if customer_id:
            details['customer_id'] = customer_id
        if name:
            details['name'] = name

        message = "Customer not found"
        if name:
            message = f"Customer '{name}' not found"
        elif customer_id:
            message = f"Customer with ID {customer_id} not found"

        super().__init__(message, details)


class DatabaseError(PawnMasterError):
    """Raised when a settings database operation fails."""
    pass


class TransactionError(DatabaseError):
    """Raised when a database transaction fails to complete."""
    pass
