"""Error kinds raised by the academics services.

They are DRF `APIException`s so views can let them propagate and the
configured exception handler turns them into the matching status code.
Cross-tenant access is reported as `NotFoundError` so the existence of
another college's records is never revealed.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class ServiceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'service_error'


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflicting record already exists.'
    default_code = 'conflict'
