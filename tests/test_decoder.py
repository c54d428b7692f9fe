from datetime import datetime, timezone
from typing import Annotated, Dict, List, Optional, Union

import pytest
from pydantic import BaseModel, field_validator

from taskbricks.core.exceptions import (
    DecodeError,
    InvalidValueError,
    MissingFieldError,
    NullValueNotAllowedError,
    RequiredFieldMissingError,
    ValidationFailedError,
)
from taskbricks.core.logger import current_task_kind
from taskbricks.models.policy import CONFIG_POLICY
from taskbricks.models.task_kind import Config, ConfigDefault, FieldSpec, TaskKind, task_kind
from taskbricks.serde.decoder import TaskDecoder, decode_config, decode_task
from taskbricks.serde.record_store import RecordStore
from taskbricks.types.base import LONG, STRING


@task_kind(register=False)
class Foo:
    bar: Annotated[str, Config("bar")]
    baz: Annotated[int, Config("baz"), ConfigDefault("0")]


@task_kind(register=False)
class Ordered:
    a: Annotated[int, Config("a"), ConfigDefault("1")]
    b: Annotated[int, Config("b")]
    c: Annotated[int, Config("c"), ConfigDefault("3")]
    d: Annotated[int, Config("d"), ConfigDefault("4")]


@task_kind(register=False)
class Aliased:
    input_path: Annotated[str, Config("input-path")]
    created_at: Annotated[datetime, Config("created")]
    ratio: Annotated[float, Config("ratio"), ConfigDefault("0.5")]
    note: Annotated[Optional[str], Config("note"), ConfigDefault("null")]
    runtime_only: int


@task_kind(register=False)
class Retry:
    attempts: Annotated[int, Config("attempts"), ConfigDefault("3")]
    backoff: Annotated[float, Config("backoff"), ConfigDefault("1.5")]


@task_kind(register=False)
class Column:
    name: Annotated[str, Config("name")]
    type: Annotated[str, Config("type"), ConfigDefault('"string"')]


@task_kind(register=False)
class Job:
    name: Annotated[str, Config("name")]
    retry: Annotated[Retry, Config("retry"), ConfigDefault("{}")]
    columns: Annotated[List[Column], Config("columns"), ConfigDefault("[]")]
    labels: Annotated[Dict[str, str], Config("labels"), ConfigDefault("{}")]


@task_kind(register=False)
class Owner:
    email: Annotated[str, Config("email")]


@task_kind(register=False)
class Project:
    title: Annotated[str, Config("title")]
    owner: Annotated[Owner, Config("owner"), ConfigDefault("{}")]


class Window(BaseModel):
    start: int
    end: int

    @field_validator("end")
    @classmethod
    def _end_after_start(cls, v, info):
        if v < info.data.get("start", v):
            raise ValueError("end must not precede start")
        return v


@task_kind(register=False)
class Scan:
    window: Annotated[Window, Config("window")]


def _check_range(task) -> List[str]:
    if task.low > task.high:
        return [f"low ({task.low}) must not exceed high ({task.high})"]
    return []


@task_kind(register=False, validator=_check_range)
class Range:
    low: Annotated[int, Config("low")]
    high: Annotated[int, Config("high")]


@task_kind(register=False)
class Loose:
    v: Annotated[Optional[Union[int, str]], Config("v")]


# --- the Foo scenario --------------------------------------------------------


def test_required_field_present_and_default_applied():
    foo = decode_config(Foo, {"bar": "hello"})

    assert foo.bar == "hello"
    assert foo.baz == 0
    assert isinstance(foo, Foo)


def test_missing_required_field_names_the_wire_key():
    with pytest.raises(RequiredFieldMissingError) as exc:
        decode_config(Foo, {"baz": 5})

    assert exc.value.wire_key == "bar"
    assert exc.value.location == "$"
    assert str(exc.value) == "Field 'bar' is required but not set (at $)"


def test_explicit_null_fails_even_when_a_default_exists():
    with pytest.raises(NullValueNotAllowedError) as exc:
        decode_config(Foo, {"bar": "x", "baz": None})

    assert exc.value.wire_key == "baz"
    assert "Optional" in str(exc.value)


# --- ordering, unknown keys, input forms ------------------------------------


def test_snapshot_order_is_stream_order_then_defaults_in_schema_order():
    decoder = TaskDecoder(CONFIG_POLICY)

    store = decoder.decode(Ordered, {"c": 30, "b": 20})
    assert store.snapshot() == (("c", 30), ("b", 20), ("a", 1), ("d", 4))

    store = decoder.decode(Ordered, [("b", 20), ("d", 40)])
    assert store.snapshot() == (("b", 20), ("d", 40), ("a", 1), ("c", 3))


def test_unknown_keys_are_ignored_including_nested_content():
    decoder = TaskDecoder(CONFIG_POLICY)
    plain = decoder.decode(Foo, {"bar": "x", "baz": 2})
    noisy = decoder.decode(Foo, {"x": {"deep": [1, {"y": None}]}, "bar": "x", "zz": None, "baz": 2})

    assert noisy == plain
    assert noisy.snapshot() == plain.snapshot()


def test_repeated_key_keeps_first_position_and_last_value():
    store = TaskDecoder(CONFIG_POLICY).decode(Ordered, [("b", 1), ("c", 2), ("b", 3)])

    assert store.snapshot()[:2] == (("b", 3), ("c", 2))


def test_json_text_input_is_accepted():
    foo = decode_config(Foo, '{"baz": 7, "bar": "from-text"}')

    assert (foo.bar, foo.baz) == ("from-text", 7)


def test_non_object_input_is_an_invalid_value():
    with pytest.raises(InvalidValueError, match="valid object"):
        decode_config(Foo, 42)
    with pytest.raises(InvalidValueError):
        decode_config(Foo, "[1, 2]")


def test_decoded_store_is_sealed():
    store = TaskDecoder(CONFIG_POLICY).decode(Foo, {"bar": "x"})

    assert isinstance(store, RecordStore)
    assert store.sealed


# --- aliasing and policies ---------------------------------------------------


def test_config_policy_matches_aliases_and_stores_under_field_names():
    task = decode_config(
        Aliased,
        {"input-path": "/in", "created": "2024-05-01T10:00:00Z", "input_path": "ignored", "runtime_only": 3},
    )

    assert task.input_path == "/in"
    assert task.created_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert task.ratio == 0.5
    assert task.note is None
    with pytest.raises(MissingFieldError):
        task.runtime_only


def test_task_policy_requires_every_field_by_name_and_ignores_defaults():
    with pytest.raises(RequiredFieldMissingError, match="'ratio'"):
        decode_task(
            Aliased,
            {"input_path": "/in", "created_at": "2024-05-01T10:00:00Z", "runtime_only": 1},
        )


def test_option_fields_accept_explicit_null():
    task = decode_config(Aliased, {"input-path": "/in", "created": "2024-05-01T00:00:00", "note": None})

    assert task.note is None


def test_optional_union_fields_accept_null_and_each_member():
    assert decode_config(Loose, {"v": None}).v is None
    assert decode_config(Loose, {"v": 3}).v == 3
    assert decode_config(Loose, {"v": "three"}).v == "three"

    with pytest.raises(InvalidValueError):
        decode_config(Loose, {"v": 1.5})


def test_type_mismatch_reports_field_and_location():
    with pytest.raises(InvalidValueError) as exc:
        decode_config(Foo, {"bar": "x", "baz": "five"})

    assert exc.value.wire_key == "baz"
    assert exc.value.location == "$"
    assert "valid integer" in str(exc.value)


def test_explicit_field_specs_work_without_an_interface():
    kind = TaskKind(
        name="Plain",
        fields=(FieldSpec("count", LONG, wire_key="n", default="2"), FieldSpec("label", STRING, wire_key="l")),
    )

    store = TaskDecoder(CONFIG_POLICY).decode(kind, {"l": "x"})
    assert store.snapshot() == (("label", "x"), ("count", 2))
    assert store.dispatch().count == 2


# --- nesting -----------------------------------------------------------------


def test_nested_default_literals_apply_nested_defaults_recursively():
    job = decode_config(Job, {"name": "nightly"})

    assert job.retry.attempts == 3
    assert job.retry.backoff == 1.5
    assert job.columns == []
    assert job.labels == {}


def test_nested_kinds_in_sequences_get_their_own_defaults():
    job = decode_config(Job, {"name": "nightly", "columns": [{"name": "id", "extra": 1}, {"name": "ts"}]})

    assert [(c.name, c.type) for c in job.columns] == [("id", "string"), ("ts", "string")]
    assert isinstance(job.columns[0], Column)


def test_nested_required_field_missing_reports_nested_location():
    with pytest.raises(RequiredFieldMissingError) as exc:
        decode_config(Job, {"name": "nightly", "columns": [{"name": "id"}, {"type": "long"}]})

    assert exc.value.wire_key == "name"
    assert exc.value.location == "$.columns[1]"


def test_nested_default_literal_with_required_field_fails_at_decode_time():
    with pytest.raises(RequiredFieldMissingError) as exc:
        decode_config(Project, {"title": "t"})

    assert exc.value.wire_key == "email"
    assert exc.value.location == "$.owner"


def test_nested_null_and_type_errors_carry_the_nested_path():
    with pytest.raises(NullValueNotAllowedError) as exc:
        decode_config(Job, {"name": "n", "retry": {"attempts": None}})
    assert exc.value.location == "$.retry"

    with pytest.raises(InvalidValueError) as exc:
        decode_config(Job, {"name": "n", "retry": [1, 2]})
    assert exc.value.location == "$"
    assert exc.value.wire_key == "retry"


def test_nested_kind_fields_accept_only_objects():
    with pytest.raises(InvalidValueError, match="valid object, got str") as exc:
        decode_config(Job, {"name": "n", "retry": '{"attempts": 1}'})
    assert exc.value.wire_key == "retry"

    with pytest.raises(InvalidValueError, match="valid object, got list") as exc:
        decode_config(Job, {"name": "n", "retry": [["attempts", 1]]})
    assert exc.value.wire_key == "retry"

    with pytest.raises(InvalidValueError) as exc:
        decode_config(Job, {"name": "n", "columns": ["{\"name\": \"id\"}"]})
    assert exc.value.wire_key == "columns"


def test_pydantic_models_decode_through_the_general_path():
    scan = decode_config(Scan, {"window": {"start": 1, "end": 5}})
    assert scan.window == Window(start=1, end=5)

    with pytest.raises(InvalidValueError, match="end must not precede start"):
        decode_config(Scan, {"window": {"start": 5, "end": 1}})


# --- validator hooks ---------------------------------------------------------


def test_kind_validator_failure_raises_validation_failed():
    assert decode_config(Range, {"low": 1, "high": 2}).high == 2

    with pytest.raises(ValidationFailedError) as exc:
        decode_config(Range, {"low": 3, "high": 2})

    assert exc.value.details == ["low (3) must not exceed high (2)"]
    assert exc.value.kind_name == "Range"
    assert isinstance(exc.value, DecodeError)


def test_decoder_validator_runs_after_kind_validator_and_sees_the_view():
    seen = []

    def no_empty_bar(task):
        seen.append((type(task).__name__, current_task_kind()))
        if not task.bar:
            raise ValueError("bar must not be empty")

    decoder = TaskDecoder(CONFIG_POLICY, validator=no_empty_bar)
    decoder.decode(Foo, {"bar": "ok"})
    assert seen == [("FooTask", "Foo")]

    with pytest.raises(ValidationFailedError, match="bar must not be empty"):
        decoder.decode(Foo, {"bar": ""})


def test_validate_task_method_on_interface_is_the_kind_validator():
    @task_kind(register=False)
    class Positive:
        n: Annotated[int, Config("n")]

        def validate_task(self):
            assert self.n > 0, "n must be positive"

    with pytest.raises(ValidationFailedError, match="n must be positive"):
        decode_config(Positive, {"n": 0})


def test_truthy_non_iterable_validator_result_is_a_single_problem():
    decoder = TaskDecoder(CONFIG_POLICY, validator=lambda task: 1)

    with pytest.raises(ValidationFailedError) as exc:
        decoder.decode(Foo, {"bar": "ok"})

    assert exc.value.details == ["1"]


def test_validator_errors_other_than_value_and_assertion_propagate():
    def reads_runtime_field(task):
        return task.runtime_only > 0

    decoder = TaskDecoder(CONFIG_POLICY, validator=reads_runtime_field)

    with pytest.raises(MissingFieldError):
        decoder.decode(Aliased, {"input-path": "/in", "created": "2024-05-01T00:00:00"})
