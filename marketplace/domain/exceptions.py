class DomainError(Exception):
    """Client-actionable error. Never retried."""
    pass


class NotFoundError(DomainError):
    pass


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str, message: str | None = None):
        self.product_id = product_id
        super().__init__(message or f"Product {product_id} not found")


class ProductNotApprovedError(ProductNotFoundError):
    def __init__(self, product_id: str, approval_status: str):
        self.approval_status = approval_status
        super().__init__(
            product_id,
            f"Product {product_id} is not approved (status: {approval_status})"
        )


class ForbiddenError(DomainError):
    pass


class ValidationError(DomainError):
    pass


class InvalidTransitionError(DomainError):
    def __init__(self, current, target, role):
        self.current = current
        self.target = target
        self.role = role
        super().__init__(
            f"Invalid status transition from {_value(current)} to {_value(target)} for {_value(role)}"
        )


class ConflictError(DomainError):
    def __init__(self, order_id: str, expected_status):
        self.order_id = order_id
        self.expected_status = expected_status
        super().__init__(
            f"Order {order_id} was modified concurrently, it is no longer {_value(expected_status)}"
        )


class InfrastructureError(Exception):
    """Persistence or network failure. Callers may retry."""
    pass


class CatalogServiceError(InfrastructureError):
    pass


class UserDirectoryError(InfrastructureError):
    pass


def _value(item) -> str:
    return getattr(item, "value", str(item))
