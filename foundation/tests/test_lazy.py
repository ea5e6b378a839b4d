import pytest

from foundation.core.exceptions import ConfigurationMissingError
from foundation.core.lazy import Lazy


class Counter:
    def __init__(self, result=None, failures=0):
        self.calls = 0
        self.failures = failures
        self.result = result if result is not None else object()

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConfigurationMissingError(message="not yet", parameter="EXAMPLE")
        return self.result


def test_builder_runs_once():
    builder = Counter()
    slot = Lazy(builder, name="example")

    first = slot.get()
    second = slot.get()

    assert first is second is builder.result
    assert builder.calls == 1


def test_call_is_alias_for_get():
    builder = Counter()
    slot = Lazy(builder)

    assert slot() is slot.get()
    assert builder.calls == 1


def test_failure_is_not_cached():
    builder = Counter(failures=1)
    slot = Lazy(builder, name="example")

    with pytest.raises(ConfigurationMissingError):
        slot.get()
    assert not slot.is_initialized

    assert slot.get() is builder.result
    assert slot.is_initialized
    assert builder.calls == 2


def test_repeated_failures_rerun_builder():
    builder = Counter(failures=3)
    slot = Lazy(builder)

    for _ in range(3):
        with pytest.raises(ConfigurationMissingError):
            slot.get()

    assert builder.calls == 3
    assert slot.get() is builder.result


def test_none_result_is_returned_but_not_cached():
    results = [None, None, "ready"]
    calls = []

    def builder():
        calls.append(1)
        return results[len(calls) - 1]

    slot = Lazy(builder)

    assert slot.get() is None
    assert slot.get() is None
    assert slot.get() == "ready"
    assert slot.get() == "ready"
    assert len(calls) == 3


def test_peek_does_not_build():
    builder = Counter()
    slot = Lazy(builder)

    assert slot.peek() is None
    assert builder.calls == 0

    slot.get()
    assert slot.peek() is builder.result


def test_reset_forces_rebuild():
    builder = Counter()
    slot = Lazy(builder)

    slot.get()
    slot.reset()

    assert not slot.is_initialized
    slot.get()
    assert builder.calls == 2


def test_separate_slots_do_not_share_instances():
    def builder():
        return object()

    assert Lazy(builder).get() is not Lazy(builder).get()


def test_name_defaults_to_builder_name():
    def build_widget():
        return 1

    slot = Lazy(build_widget)
    assert slot.name == "build_widget"
    assert "uninitialized" in repr(slot)
