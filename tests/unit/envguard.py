from contextlib import contextmanager
import os
import threading
from unittest import mock

from ncurl import settings


# Every environment variable the engine reads. Tests that touch the process
# environment must hold the lock, since the environment is shared by all threads.
ENGINE_VARIABLES = (settings.USERNAME_ENV, settings.PASSWORD_ENV) + settings.PROXY_ENV + settings.NO_PROXY_ENV

_lock = threading.RLock()


@contextmanager
def patched_environ(**values):
    """
    Run the block with none of the engine's variables set, except `values`. The
    previous environment is restored afterwards.
    """
    with _lock:
        with mock.patch.dict(os.environ):
            for name in ENGINE_VARIABLES:
                os.environ.pop(name, None)
            os.environ.update(values)
            yield
