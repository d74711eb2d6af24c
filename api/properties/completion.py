"""Listing completion endpoint."""

from vesta.services.completion_tracker import calculate_completion
from vesta.utils.errors import InvalidOperationError
from vesta.utils.http import json_body, run_handler
from vesta.utils.logging import setup_logging

setup_logging()


async def _completion(request: dict, account_id: int):
    record = json_body(request)
    if record is not None and not isinstance(record, dict):
        raise InvalidOperationError("Listing record must be a JSON object")

    return calculate_completion(record)


def handler(request):
    """
    Completion state of a listing.

    POST body is the flattened listing record (camelCase or snake_case keys,
    plus imageCount). An empty body returns the empty result.
    """
    return run_handler(request, "completion", _completion)
