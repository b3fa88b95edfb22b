"""
Domain exceptions shared by the billing apps.

These exceptions represent business rule violations raised by the
services layer, separate from HTTP concerns. Every error carries enough
detail (field name, identifier, current/requested state) for a caller to
render a precise message; ``config.views.billing_exception_handler``
turns them into API responses.

Exception Hierarchy:
    BillingServiceError (base)
    ├── ValidationError
    │   ├── InvalidDiscountError
    │   ├── EmptyDocumentError
    │   ├── MissingRequiredFieldError
    │   ├── ConflictingFieldError
    │   └── DanglingReferenceError
    ├── IllegalTransitionError
    ├── DocumentNotEditableError
    ├── DocumentNotFoundError
    ├── PaymentNotFoundError
    ├── NumberCollisionError
    └── StorageUnavailableError

Usage:
    from apps.core.exceptions import IllegalTransitionError

    if requested not in allowed:
        raise IllegalTransitionError(current=current, requested=requested)
"""


class BillingServiceError(Exception):
    """
    Base exception for all billing service errors.

    Subclasses set ``status_code`` and ``code`` the same way DRF's
    APIException does, so views can translate them without a lookup table.
    """
    status_code = 400
    code = 'billing_error'
    default_message = 'Billing operation failed.'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = {key: value for key, value in details.items() if value is not None}
        super().__init__(self.message)

    def to_dict(self):
        """Serializable payload for API error responses."""
        payload = {'error': self.message, 'code': self.code}
        if self.details:
            payload['details'] = {key: str(value) for key, value in self.details.items()}
        return payload


class ValidationError(BillingServiceError):
    """Raised for malformed or out-of-range input."""
    code = 'validation_error'
    default_message = 'Invalid input.'

    def __init__(self, message=None, field=None, **details):
        self.field = field
        super().__init__(message, field=field, **details)


class InvalidDiscountError(ValidationError):
    """Raised when a discount value is negative or a percentage exceeds 100."""
    code = 'invalid_discount'
    default_message = 'Invalid discount.'


class EmptyDocumentError(ValidationError):
    """Raised when a document has no line items."""
    code = 'empty_document'
    default_message = 'A document needs at least one line item.'

    def __init__(self, message=None, **details):
        super().__init__(message, field='line_items', **details)


class MissingRequiredFieldError(ValidationError):
    """Raised when the field a payment category requires is absent."""
    code = 'missing_required_field'

    def __init__(self, field, category, message=None):
        self.category = category
        super().__init__(
            message or f"'{field}' is required for {category} payments",
            field=field,
            category=category,
        )


class ConflictingFieldError(ValidationError):
    """Raised when a field forbidden for a payment category is present."""
    code = 'conflicting_field'

    def __init__(self, field, category, message=None):
        self.category = category
        super().__init__(
            message or f"'{field}' cannot be set on {category} payments",
            field=field,
            category=category,
        )


class DanglingReferenceError(ValidationError):
    """Raised when a reference field points to a record that does not exist."""
    code = 'dangling_reference'

    def __init__(self, field, identifier, message=None):
        self.identifier = identifier
        super().__init__(
            message or f"'{field}' refers to {identifier}, which does not exist",
            field=field,
            identifier=identifier,
        )


class IllegalTransitionError(BillingServiceError):
    """Raised when a status change is not allowed by the lifecycle."""
    status_code = 409
    code = 'illegal_transition'

    def __init__(self, current, requested, document_type=None, message=None):
        self.current = current
        self.requested = requested
        label = document_type or 'document'
        super().__init__(
            message or f"Cannot move {label} from '{current}' to '{requested}'",
            document_type=document_type,
            current=current,
            requested=requested,
        )


class DocumentNotEditableError(BillingServiceError):
    """Raised when line items or totals change outside an editable status."""
    status_code = 409
    code = 'document_not_editable'

    def __init__(self, status, document_type=None, message=None):
        self.status = status
        super().__init__(
            message or f"{(document_type or 'document').capitalize()} in status '{status}' can no longer be edited",
            document_type=document_type,
            status=status,
        )


class DocumentNotFoundError(BillingServiceError):
    """Raised when a quotation or invoice does not exist."""
    status_code = 404
    code = 'document_not_found'
    default_message = 'Document not found.'


class PaymentNotFoundError(BillingServiceError):
    """Raised when an outgoing payment does not exist."""
    status_code = 404
    code = 'payment_not_found'
    default_message = 'Outgoing payment not found.'


class NumberCollisionError(BillingServiceError):
    """Raised when a unique number could not be issued within the retry budget."""
    status_code = 409
    code = 'number_collision'
    default_message = 'Could not issue a unique number. Please try again.'


class StorageUnavailableError(BillingServiceError):
    """Raised when the database cannot be reached."""
    status_code = 503
    code = 'storage_unavailable'
    default_message = 'Database connection unavailable. Please try again later.'
