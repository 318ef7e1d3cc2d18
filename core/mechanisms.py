"""
Built-in storage mechanisms.

``cache`` keeps values in a dogpile.cache region (process memory by
default, shared by every instance so state survives reconnects).
``file`` keeps one JSON document per key in a directory.
"""

import hashlib
import json
import logging
import os
import tempfile

from dogpile.cache import make_region
from dogpile.cache.api import NO_VALUE

from core.storage import StorageMechanism
from error_handling import ConfigurationError, StorageError, retry_with_backoff
from utils.constants import (
    CACHE_MECHANISM,
    FILE_MECHANISM,
    DEFAULT_CACHE_BACKEND,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
)

# Backing dict for in-memory regions that don't bring their own
_shared_memory = {}


class CacheMechanism(StorageMechanism):
    """
    Storage on top of a dogpile.cache region.

    Credentials:
        backend: dogpile backend name (default ``dogpile.cache.memory``)
        arguments: backend arguments
        expiration_time: seconds before a value is treated as missing
        prefix: prepended to every key
    """

    def __init__(self, credentials=None):
        super().__init__(credentials)
        backend = self.credentials.get('backend', DEFAULT_CACHE_BACKEND)
        arguments = dict(self.credentials.get('arguments') or {})
        if backend == 'dogpile.cache.memory':
            arguments.setdefault('cache_dict', _shared_memory)
        prefix = self.credentials.get('prefix', 'eventpump:')

        try:
            self.region = make_region(key_mangler=lambda key: f"{prefix}{key}").configure(
                backend,
                expiration_time=self.credentials.get('expiration_time'),
                arguments=arguments,
            )
        except Exception as e:
            raise ConfigurationError(f"cache backend {backend}", original_error=e)
        logging.debug(f"Cache mechanism configured with {backend}")

    def get(self, key):
        value = self.region.get(key)
        return None if value is NO_VALUE else value

    def set(self, key, value):
        self.region.set(key, value)

    def delete(self, key):
        self.region.delete(key)


class FileMechanism(StorageMechanism):
    """
    One JSON file per key under ``credentials['path']``.

    File names are the SHA-1 of the key.
    """

    def __init__(self, credentials=None):
        super().__init__(credentials)
        path = self.credentials.get('path')
        if not path:
            raise ConfigurationError(
                "file mechanism requires a 'path'",
                "Pass {'path': '/some/writable/dir'} as credentials"
            )
        self.path = os.path.abspath(path)
        os.makedirs(self.path, exist_ok=True)

    def _filename(self, key):
        digest = hashlib.sha1(str(key).encode('utf-8')).hexdigest()
        return os.path.join(self.path, f"{digest}.json")

    def get(self, key):
        try:
            with open(self._filename(key), 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise StorageError("read", key, e)

    def set(self, key, value):
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError("serialize", key, e)

        @retry_with_backoff(max_attempts=DEFAULT_RETRY_ATTEMPTS, initial_delay=DEFAULT_RETRY_DELAY,
                            exceptions=(OSError,))
        def write():
            fd, tmp_path = tempfile.mkstemp(dir=self.path, suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(tmp_path, self._filename(key))
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

        try:
            write()
        except OSError as e:
            raise StorageError("write", key, e)

    def delete(self, key):
        try:
            os.remove(self._filename(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError("delete", key, e)


BUILTIN_MECHANISMS = {
    CACHE_MECHANISM: CacheMechanism,
    FILE_MECHANISM: FileMechanism,
}
