import logging
from typing import List, Optional

from .backend import Backend
from .backends import get_backend
from .errors import RequestError
from .model import RequestDescriptor, Response


logger = logging.getLogger(__name__)


def perform(descriptor: RequestDescriptor, backend: Optional[Backend] = None) -> Response:
    """
    Run one transaction.

    There are no retries. A failure is logged and re-raised for the caller to
    report; see `describe_error`.

    @param backend
      The backend to use. Defaults to the configured one, see `ncurl.backends.get_backend`.
    """
    if backend is None:
        backend = get_backend()
    name, version = backend.identify()
    logger.info('Using backend {} {}'.format(name, version))

    try:
        response = backend.execute(descriptor)
    except RequestError as e:
        logger.info('Request failed: {}'.format(e))
        if e.hint is not None:
            logger.info(e.hint)
        raise

    logger.info('Request completed with status {}'.format(response.status_code))
    return response


def describe_error(error: RequestError) -> List[str]:
    """
    The lines a caller shows for a failed request: the message, then the hint if there is one.
    """
    lines = ['Request failed: {}'.format(error)]
    if error.hint is not None:
        lines.append(error.hint)
    return lines
