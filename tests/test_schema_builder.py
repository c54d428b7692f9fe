from concurrent.futures import ThreadPoolExecutor
from typing import Annotated, List

import pytest

from taskbricks.core.exceptions import SchemaDefinitionError
from taskbricks.models.policy import CONFIG_POLICY, TASK_POLICY, SchemaPolicy, policy_named
from taskbricks.models.task_kind import Config, ConfigDefault, FieldSpec, TaskKind, task_kind
from taskbricks.schema.builder import FieldSchemaBuilder, build_schema, describe_schema
from taskbricks.types.base import LONG, STRING
from taskbricks.types.composite import SequenceType


@task_kind(register=False)
class S3Output:
    bucket: Annotated[str, Config("bucket")]
    prefix: Annotated[str, Config("path_prefix"), ConfigDefault('""')]
    retries: Annotated[int, Config("max_retries"), ConfigDefault("3")]
    tags: Annotated[List[str], Config("tags"), ConfigDefault("")]
    upload_id: str


def setup_function() -> None:
    FieldSchemaBuilder.clear()


def test_config_policy_uses_explicit_wire_keys_and_skips_unkeyed_fields():
    schema = build_schema(S3Output.__task_kind__, CONFIG_POLICY)

    assert schema.wire_keys == ("bucket", "path_prefix", "max_retries", "tags")
    assert schema.field_names == ("bucket", "prefix", "retries", "tags")
    assert schema.match("upload_id") is None
    assert schema.match("prefix") is None
    assert schema.match("path_prefix").field_name == "prefix"


def test_config_policy_defaults_make_fields_optional_but_empty_literal_does_not():
    schema = build_schema(S3Output.__task_kind__, CONFIG_POLICY)

    assert schema.match("bucket").required
    assert schema.match("path_prefix").default_literal == '""'
    assert schema.match("max_retries").default_literal == "3"
    assert schema.match("tags").required
    assert schema.match("tags").value_type == SequenceType(STRING)


def test_task_policy_keys_every_field_by_name_and_requires_all():
    schema = build_schema(S3Output.__task_kind__, TASK_POLICY)

    assert schema.wire_keys == ("bucket", "prefix", "retries", "tags", "upload_id")
    assert all(d.required for d in schema)


def test_mixed_policies_are_configuration_not_separate_code_paths():
    identity_with_defaults = SchemaPolicy(wire_key="identity", default="explicit")
    schema = build_schema(S3Output.__task_kind__, identity_with_defaults)

    assert schema.match("retries").default_literal == "3"
    assert schema.match("upload_id").required


def test_explicit_field_specs_accept_type_names():
    kind = TaskKind(
        name="Explicit",
        fields=(
            FieldSpec("count", "long", wire_key="n", default="1"),
            FieldSpec("label", str, wire_key="label"),
        ),
    )
    schema = build_schema(kind, CONFIG_POLICY)

    assert schema.match("n").value_type is LONG
    assert schema.match("label").value_type is STRING


def test_unknown_type_name_is_a_definition_error():
    kind = TaskKind(name="Broken", fields=(FieldSpec("x", "int64"),))

    with pytest.raises(SchemaDefinitionError, match="Unknown type name 'int64'"):
        build_schema(kind, TASK_POLICY)


def test_annotation_pydantic_cannot_handle_is_a_definition_error():
    class Opaque:
        pass

    kind = TaskKind(name="Unhandled", fields=(FieldSpec("x", Opaque),))

    with pytest.raises(SchemaDefinitionError, match="Unhandled.x"):
        build_schema(kind, TASK_POLICY)


def test_two_fields_on_one_wire_key_is_a_definition_error():
    kind = TaskKind(
        name="Clash",
        fields=(FieldSpec("a", str, wire_key="k"), FieldSpec("b", str, wire_key="k")),
    )

    with pytest.raises(SchemaDefinitionError, match="same wire key 'k'"):
        build_schema(kind, CONFIG_POLICY)
    # identity keys never clash
    assert build_schema(kind, TASK_POLICY).wire_keys == ("a", "b")


def test_invalid_default_literal_is_rejected_once_at_build_time():
    kind = TaskKind(name="BadDefault", fields=(FieldSpec("a", int, wire_key="a", default="zero"),))

    with pytest.raises(SchemaDefinitionError, match="not valid JSON"):
        build_schema(kind, CONFIG_POLICY)


def test_duplicate_and_private_field_names_are_rejected():
    with pytest.raises(SchemaDefinitionError, match="more than once"):
        TaskKind(name="Dup", fields=(FieldSpec("a", int), FieldSpec("a", str)))
    with pytest.raises(SchemaDefinitionError, match="public Python identifier"):
        FieldSpec("_hidden", int)
    with pytest.raises(SchemaDefinitionError, match="public Python identifier"):
        FieldSpec("class", int)


def test_class_level_values_are_rejected():
    with pytest.raises(SchemaDefinitionError, match="ConfigDefault"):

        @task_kind(register=False)
        class WithValue:
            a: int = 3


def test_builder_caches_per_kind_and_policy():
    first = FieldSchemaBuilder.build(S3Output, CONFIG_POLICY)

    assert FieldSchemaBuilder.build(S3Output.__task_kind__, CONFIG_POLICY) is first
    assert FieldSchemaBuilder.build(S3Output, TASK_POLICY) is not first

    FieldSchemaBuilder.clear()
    rebuilt = FieldSchemaBuilder.build(S3Output, CONFIG_POLICY)
    assert rebuilt is not first
    assert rebuilt.descriptors == first.descriptors


def test_concurrent_first_builds_share_one_schema():
    kind = TaskKind(
        name="Contended",
        fields=(FieldSpec("a", int, wire_key="a"), FieldSpec("b", List[str], wire_key="b", default="[]")),
    )

    with ThreadPoolExecutor(max_workers=8) as pool:
        schemas = list(pool.map(lambda _: FieldSchemaBuilder.build(kind, CONFIG_POLICY), range(32)))

    assert all(schema is schemas[0] for schema in schemas)
    assert schemas[0].wire_keys == ("a", "b")


def test_describe_schema_lists_wire_keys_in_order():
    described = describe_schema(S3Output, CONFIG_POLICY)

    assert list(described) == ["bucket", "path_prefix", "max_retries", "tags"]
    assert described["max_retries"] == {"field": "retries", "type": "long", "required": False, "default": "3"}


def test_policy_presets_by_name():
    assert policy_named("config") is CONFIG_POLICY
    assert policy_named("task") is TASK_POLICY
    with pytest.raises(SchemaDefinitionError, match="Supported policies are: config, task"):
        policy_named("loose")
