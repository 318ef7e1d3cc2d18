"""Tests for the built-in cache and file mechanisms."""

import os
import uuid

import pytest

from core.mechanisms import CacheMechanism, FileMechanism
from error_handling import ConfigurationError, StorageError


@pytest.fixture
def prefix():
    return f"test-{uuid.uuid4().hex}:"


class TestCacheMechanism:

    def test_get_set_delete(self, prefix):
        cache = CacheMechanism({'prefix': prefix})
        assert cache.get('missing') is None
        cache.set('k', {'a': 1})
        assert cache.get('k') == {'a': 1}
        cache.delete('k')
        assert cache.get('k') is None

    def test_memory_is_shared_between_instances(self, prefix):
        CacheMechanism({'prefix': prefix}).set('cursor', 12)
        assert CacheMechanism({'prefix': prefix}).get('cursor') == 12

    def test_prefixes_isolate_keys(self, prefix):
        CacheMechanism({'prefix': prefix}).set('k', 'mine')
        assert CacheMechanism({'prefix': prefix + 'other:'}).get('k') is None

    def test_private_cache_dict(self, prefix):
        backing = {}
        cache = CacheMechanism({'prefix': prefix, 'arguments': {'cache_dict': backing}})
        cache.set('k', 'v')
        assert len(backing) == 1
        assert CacheMechanism({'prefix': prefix}).get('k') is None

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            CacheMechanism({'backend': 'no.such.backend'})


class TestFileMechanism:

    def test_requires_path(self):
        with pytest.raises(ConfigurationError):
            FileMechanism({})

    def test_creates_directory(self, tmp_path):
        target = tmp_path / 'nested' / 'store'
        FileMechanism({'path': str(target)})
        assert target.is_dir()

    def test_get_set_delete(self, tmp_path):
        store = FileMechanism({'path': str(tmp_path)})
        assert store.get('k') is None
        store.set('k', {'seen': [1, 2]})
        assert store.get('k') == {'seen': [1, 2]}
        store.delete('k')
        assert store.get('k') is None
        store.delete('k')

    def test_values_survive_new_instances(self, tmp_path):
        FileMechanism({'path': str(tmp_path)}).set('cursor', 7)
        assert FileMechanism({'path': str(tmp_path)}).get('cursor') == 7

    def test_unsafe_keys_are_hashed(self, tmp_path):
        store = FileMechanism({'path': str(tmp_path)})
        store.set('../../etc/passwd', 'nope')
        files = os.listdir(tmp_path)
        assert len(files) == 1
        assert files[0].endswith('.json') and '/' not in files[0]
        assert store.get('../../etc/passwd') == 'nope'

    def test_no_temp_files_left_behind(self, tmp_path):
        store = FileMechanism({'path': str(tmp_path)})
        store.set('a', 1)
        store.set('a', 2)
        assert [name for name in os.listdir(tmp_path) if name.endswith('.tmp')] == []

    def test_unserializable_value(self, tmp_path):
        store = FileMechanism({'path': str(tmp_path)})
        with pytest.raises(StorageError):
            store.set('k', object())

    def test_corrupt_file(self, tmp_path):
        store = FileMechanism({'path': str(tmp_path)})
        with open(store._filename('k'), 'w', encoding='utf-8') as f:
            f.write('{not json')
        with pytest.raises(StorageError):
            store.get('k')
