import math

import pytest

from scopestore_lib.storage import create_storage
from scopestore_lib.storage.scopes import IS_NEW_KEY, TARGET_KEY, StorageScope, StorageTarget
from scopestore_lib.storage.service import parse_int, to_text

GLOBAL = StorageScope.GLOBAL
WORKSPACE = StorageScope.WORKSPACE
USER = StorageTarget.USER
MACHINE = StorageTarget.MACHINE


@pytest.fixture
def storage():
    return create_storage(backend='memory')


def test_get_returns_fallback_only_for_missing(storage):
    assert storage.get('missing', GLOBAL) is None
    assert storage.get('missing', GLOBAL, 'fb') == 'fb'

    storage.store2('empty', '', GLOBAL, USER)
    assert storage.get('empty', GLOBAL, 'fb') == ''


def test_string_round_trip(storage):
    storage.store2('name', 'hello world', WORKSPACE, USER)
    assert storage.get('name', WORKSPACE) == 'hello world'
    assert storage.get('name', GLOBAL) is None


def test_boolean_round_trip_and_exact_true(storage):
    storage.store2('flag', True, GLOBAL, MACHINE)
    assert storage.get('flag', GLOBAL) == 'true'
    assert storage.get_boolean('flag', GLOBAL, False) is True

    storage.store2('flag', False, GLOBAL, MACHINE)
    assert storage.get_boolean('flag', GLOBAL, True) is False

    # anything but the literal "true" is false
    storage.store2('other', 'True', GLOBAL, MACHINE)
    assert storage.get_boolean('other', GLOBAL, True) is False
    storage.store2('one', 1, GLOBAL, MACHINE)
    assert storage.get_boolean('one', GLOBAL, True) is False

    assert storage.get_boolean('missing', GLOBAL) is None
    assert storage.get_boolean('missing', GLOBAL, True) is True


def test_number_round_trip(storage):
    storage.store2('fontSize', 14, WORKSPACE, USER)
    assert storage.get_number('fontSize', WORKSPACE, 0) == 14
    assert storage.keys(WORKSPACE, USER) == ['fontSize']
    assert 'fontSize' not in storage.keys(WORKSPACE, MACHINE)

    storage.store2('negative', -3, WORKSPACE, USER)
    assert storage.get_number('negative', WORKSPACE) == -3

    # zero is present, the fallback does not apply
    storage.store2('zero', 0, WORKSPACE, USER)
    assert storage.get_number('zero', WORKSPACE, 99) == 0

    assert storage.get_number('missing', WORKSPACE) is None
    assert storage.get_number('missing', WORKSPACE, 7) == 7


def test_number_of_non_numeric_text_is_nan(storage):
    storage.store2('word', 'abc', GLOBAL, USER)
    result = storage.get_number('word', GLOBAL, 5)
    assert math.isnan(result)


def test_parse_int_follows_base_ten_prefix_rules():
    assert parse_int('42') == 42
    assert parse_int('  42') == 42
    assert parse_int('+7') == 7
    assert parse_int('-7px') == -7
    assert parse_int('3.9') == 3
    assert parse_int('0x10') == 0
    assert math.isnan(parse_int(''))
    assert math.isnan(parse_int('px12'))


def test_to_text_uses_natural_string_form():
    assert to_text(True) == 'true'
    assert to_text(False) == 'false'
    assert to_text(14) == '14'
    assert to_text(2.0) == '2'
    assert to_text(2.5) == '2.5'
    assert to_text('x') == 'x'


def test_store_none_removes(storage):
    storage.store2('k', 'v', GLOBAL, USER)
    storage.store2('k', None, GLOBAL, USER)
    assert storage.get('k', GLOBAL, 'gone') == 'gone'
    assert storage.keys(GLOBAL, USER) == []


def test_store_defaults_to_machine_target(storage):
    storage.store('legacy', 'v', GLOBAL)
    assert storage.keys(GLOBAL, MACHINE) == ['legacy']
    assert storage.keys(GLOBAL, USER) == []


def test_remove_clears_value_and_target(storage):
    storage.store2('flag', True, GLOBAL, MACHINE)
    assert storage.get_boolean('flag', GLOBAL, False) is True

    storage.remove('flag', GLOBAL)
    assert storage.get_boolean('flag', GLOBAL, False) is False
    assert 'flag' not in storage.keys(GLOBAL, MACHINE)
    assert 'flag' not in storage.keys(GLOBAL, USER)

    # removing again is harmless
    storage.remove('flag', GLOBAL)


def test_target_filtering_and_retargeting(storage):
    storage.store2('a', 'x', GLOBAL, USER)
    storage.store2('b', 'y', GLOBAL, MACHINE)
    storage.store2('c', 'z', GLOBAL, USER)

    assert storage.keys(GLOBAL, USER) == ['a', 'c']
    assert storage.keys(GLOBAL, MACHINE) == ['b']

    storage.store2('a', 'x', GLOBAL, MACHINE)
    assert storage.keys(GLOBAL, USER) == ['c']
    assert storage.keys(GLOBAL, MACHINE) == ['a', 'b']

    # scopes keep separate target maps
    assert storage.keys(WORKSPACE, USER) == []


def test_keys_are_in_insertion_order_not_sorted(storage):
    for key in ('zeta', 'alpha', 'mid'):
        storage.store2(key, 1, WORKSPACE, USER)
    assert storage.keys(WORKSPACE, USER) == ['zeta', 'alpha', 'mid']


def test_target_map_is_persisted_as_compact_json(storage):
    storage.store2('fontSize', 14, WORKSPACE, USER)
    storage.store2('flag', True, WORKSPACE, MACHINE)
    assert storage.get(TARGET_KEY, WORKSPACE) == '{"fontSize":0,"flag":1}'


def test_reserved_keys_cannot_be_written(storage):
    with pytest.raises(ValueError):
        storage.store2(TARGET_KEY, '{}', GLOBAL, USER)
    with pytest.raises(ValueError):
        storage.store(IS_NEW_KEY, True, GLOBAL)
    with pytest.raises(ValueError):
        storage.remove(TARGET_KEY, GLOBAL)


def test_invalid_target_is_rejected(storage):
    with pytest.raises(ValueError):
        storage.store2('k', 'v', GLOBAL, 5)


def test_is_new_reads_marker(storage):
    assert storage.is_new(GLOBAL) is False
    storage.backend.store(IS_NEW_KEY, 'true', GLOBAL)
    assert storage.is_new(GLOBAL) is True
    assert storage.is_new(WORKSPACE) is False
    storage.backend.store(IS_NEW_KEY, 'false', GLOBAL)
    assert storage.is_new(GLOBAL) is False


def test_service_and_backends_satisfy_protocols(storage, tmp_path):
    from scopestore_lib.storage.file_backend import FileStorageBackend
    from scopestore_lib.storage.interfaces import StorageBackendProtocol, StorageServiceProtocol

    assert isinstance(storage, StorageServiceProtocol)
    assert isinstance(storage.backend, StorageBackendProtocol)
    assert isinstance(FileStorageBackend(data_dir=tmp_path), StorageBackendProtocol)


def test_to_text_uses_exponent_form_outside_positional_range():
    assert to_text(1e21) == '1e+21'
    assert to_text(1.5e22) == '1.5e+22'
    assert to_text(1e-7) == '1e-7'
    assert to_text(-2.5e-8) == '-2.5e-8'
    assert to_text(1e20) == '100000000000000000000'
    assert to_text(0.00001) == '0.00001'
    assert to_text(0.000001) == '0.000001'
    assert to_text(-0.0) == '0'
    assert to_text(float('nan')) == 'NaN'
    assert to_text(float('-inf')) == '-Infinity'


def test_backend_protocol_requires_migration_capability():
    from scopestore_lib.storage.interfaces import StorageBackendProtocol

    class NoCapability:
        def get(self, key, scope): ...
        def store(self, key, value, scope): ...
        def remove(self, key, scope): ...
        async def flush(self): ...
        def items(self, scope): ...
        def describe(self, scope): ...
        async def migrate(self, to_workspace): ...
        async def close(self): ...

    assert not isinstance(NoCapability(), StorageBackendProtocol)
