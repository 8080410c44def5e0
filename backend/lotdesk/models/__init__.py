from .accounts import Admin, User
from .verification import (
    VerificationRequest,
    REQUEST_STATUSES,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_REJECTED,
)
from .catalog import Product, PRODUCT_GRADES

__all__ = [
    'Admin', 'User',
    'VerificationRequest',
    'REQUEST_STATUSES', 'REQUEST_STATUS_PENDING', 'REQUEST_STATUS_APPROVED', 'REQUEST_STATUS_REJECTED',
    'Product', 'PRODUCT_GRADES',
]
