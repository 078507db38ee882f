"""
Booking domain errors.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class BookingError(APIException):
    """A booking rule was violated (overlap, wrong status, stay rules...)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Booking request could not be processed.'
    default_code = 'booking_error'
