"""Custom exceptions for the stock management application."""

class StockAppError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        return rv

class ValidationError(StockAppError):
    """Raised for malformed or empty requests."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)

class NotFoundError(StockAppError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InsufficientStockError(StockAppError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_id, product_name, available, requested):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        message = f'Insufficient stock for product: {product_name} (ID {product_id}). Remaining stock: {available}'
        payload = {'product_id': product_id, 'available': available, 'requested': requested}
        super().__init__(message, 400, payload)

class PersistenceError(StockAppError):
    """Raised when a write to the store fails partway; the unit of work is rolled back."""
    def __init__(self, message="Internal server error", details=None):
        self.details = details
        payload = {'details': details} if details else None
        super().__init__(message, 500, payload)

class UnauthorizedError(StockAppError):
    """Raised when no acting user can be resolved for a request."""
    def __init__(self, message="Authentication required"):
        super().__init__(message, 401)

class ForbiddenError(StockAppError):
    """Raised when the acting user lacks the role an action needs."""
    def __init__(self, message="Insufficient permissions"):
        super().__init__(message, 403)
