import logging
import os
from pathlib import Path
import tempfile
from typing import Union

from .errors import FileIOError


logger = logging.getLogger(__name__)


def write_atomically(path: Union[str, Path], data: bytes) -> None:
    """
    Replace the file at `path` with `data`.

    The data goes to a temporary file in the same directory first and is then
    moved into place, so `path` is either untouched or fully written.

    @raise FileIOError
      If the file could not be written.
    """
    path = Path(path)
    directory = path.parent if str(path.parent) else Path('.')
    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(mode='wb', dir=str(directory), prefix='.{}.'.format(path.name),
                                         delete=False) as f:
            temp_path = Path(f.name)
            f.write(data)
        logger.info('Moving temporary body file into {}'.format(path))
        os.replace(str(temp_path), str(path))
    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
        raise FileIOError('failed to write {}: {}'.format(path, e)) from e
