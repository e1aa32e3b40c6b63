"""
Backend selection.

Exactly one backend serves an invocation. Each backend module is imported only
when selected, so the reduced backend works where libcurl is unavailable.
"""

from importlib import import_module
import logging
from typing import Optional

from ..backend import Backend
from ..errors import ConfigurationError
from .. import settings


logger = logging.getLogger(__name__)


BACKENDS = {
    'curl': ('ncurl.backends.curl_backend', 'CurlBackend'),
    'requests': ('ncurl.backends.requests_backend', 'RequestsBackend'),
}


def get_backend(name: Optional[str] = None) -> Backend:
    """
    Instantiate the backend called `name`, defaulting to `settings.BACKEND`.

    @raise ConfigurationError
      If there is no backend of that name.
    """
    name = (name or settings.BACKEND).strip().lower()
    try:
        module_name, class_name = BACKENDS[name]
    except KeyError:
        raise ConfigurationError('unknown backend {!r}; choose one of {}'.format(name, ', '.join(sorted(BACKENDS))))
    logger.info('Selected the {} backend'.format(name))
    return getattr(import_module(module_name), class_name)()
