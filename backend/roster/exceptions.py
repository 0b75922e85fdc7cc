import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('academics')


def custom_exception_handler(exc, context):
    """DRF exception handler: flat `detail` string plus `status_code` in the body.

    Integrity errors that escape a single-entity operation (a unique
    constraint lost to a concurrent request) are answered as 409.
    """
    if isinstance(exc, IntegrityError):
        logger.warning('Integrity error in %s: %s', context.get('view').__class__.__name__, exc)
        return Response(
            {'detail': 'Conflicting record already exists', 'status_code': status.HTTP_409_CONFLICT},
            status=status.HTTP_409_CONFLICT,
        )

    response = exception_handler(exc, context)

    if response is None:
        return response

    if isinstance(exc, ValidationError):
        # keep the per-field errors next to the flat message
        errors = response.data
        response.data = {'detail': 'Invalid input.', 'errors': errors}
    elif isinstance(response.data, dict):
        response.data['detail'] = str(exc.detail) if hasattr(exc, 'detail') else str(exc)
    response.data['status_code'] = response.status_code

    return response
