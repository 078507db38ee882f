"""
Payment domain errors.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class PaymentError(APIException):
    """A payment could not be created, completed or refunded."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Payment could not be processed.'
    default_code = 'payment_error'
