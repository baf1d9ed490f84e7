from __future__ import annotations

from types import SimpleNamespace

import pytest

from layerconf.dispatch import RegistryProvider
from layerconf.errors import ConfigError, ValidationError, format_error
from layerconf.io.yaml_backend import decode
from layerconf.pipeline import Pipeline, validate_api
from layerconf.reasons import (
    BadEnumValue,
    BadReference,
    ComponentValidationFailed,
    DuplicateComponent,
    DuplicateItem,
    MalformedDocument,
    OutOfRange,
    UnknownOption,
    UnsupportedComponent,
    WrongType,
)


def _fail(pipeline, text):
    with pytest.raises(ConfigError) as ei:
        pipeline.validate(decode(text))
    return ei.value.reason


def test_valid_document(pipeline):
    out = pipeline.validate(decode("http:\n  port: 8080\nlogger:\n  level: debug\n"))
    assert out == {
        "http": {"port": 8080, "mode": "safe"},
        "logger": {"level": "debug"},
    }


def test_component_without_options(pipeline):
    assert pipeline.validate(decode("logger:\n")) == {"logger": {"level": "info"}}


@pytest.mark.parametrize("text", ["", "# nothing\n"])
def test_empty_document_gives_empty_config(pipeline, text):
    assert pipeline.validate(decode(text)) == {}
    assert pipeline.load_bytes(text.encode("utf-8")) == {}


def test_duplicate_component(pipeline):
    reason = _fail(pipeline, "logger:\n  level: info\nhttp: {}\nlogger:\n  level: debug\n")
    assert reason == DuplicateComponent("logger")


def test_duplicate_component_named_foo():
    foo = SimpleNamespace(validator=lambda: (lambda v: v))
    pipeline = Pipeline(RegistryProvider({"foo_yaml": foo}))
    assert _fail(pipeline, "foo: 1\nfoo: 2\n") == DuplicateComponent("foo")


def test_unsupported_component_fails_before_any_validation(pipeline, http_unit):
    seen = []

    def recording_validator():
        def _v(value):
            seen.append(value)
            return value
        return _v

    http_unit.validator = recording_validator
    reason = _fail(pipeline, "http:\n  port: 80\nbar:\n  x: 1\n")
    assert reason == UnsupportedComponent("bar")
    assert seen == []


def test_root_must_be_mapping(pipeline):
    reason = _fail(pipeline, "- http\n- logger\n")
    assert isinstance(reason, WrongType)


def test_component_name_must_be_string(pipeline):
    reason = _fail(pipeline, "1: {}\n")
    assert reason == WrongType("component name", 1)


def test_bad_enum_value_is_enriched_with_suggestion(pipeline):
    reason = _fail(pipeline, "logger:\n  level: warnign\n")
    assert isinstance(reason, BadEnumValue)
    assert reason.got == "warnign"
    assert reason.suggestion == "warning"
    assert reason.ctx == ("logger", "level")
    msg = format_error(reason)
    assert msg.startswith("Invalid value of option logger->level: Unexpected value: warnign.")
    assert "Did you mean 'warning'?" in msg
    assert "Possible values are: debug, error, info, warning" in msg


def test_unknown_option_is_enriched_with_suggestion(pipeline):
    reason = _fail(pipeline, "http:\n  prot: 80\n")
    assert isinstance(reason, UnknownOption)
    assert reason.suggestion == "port"
    assert reason.ctx == ("http",)
    assert "Did you mean 'port'?" in format_error(reason)


def test_context_path_points_into_sequences(pipeline):
    reason = _fail(pipeline, "http:\n  listeners:\n    - port: 80\n    - port: 0\n")
    assert reason == OutOfRange(0, 1, None, ctx=("http", "listeners", 1, "port"))
    assert format_error(reason).startswith("Invalid value of option http->listeners[1]->port:")


def test_validator_exceptions_become_component_failures():
    def _validator():
        def _v(value):
            raise ValueError("listen address is taken")
        return _v

    pipeline = Pipeline(RegistryProvider({"net_yaml": SimpleNamespace(validator=_validator)}))
    reason = _fail(pipeline, "net:\n  addr: x\n")
    assert isinstance(reason, ComponentValidationFailed)
    assert reason.name == "net"
    msg = format_error(reason)
    assert "net" in msg
    assert "listen address is taken" in msg


def test_refs_are_resolved_before_validation(pipeline, write):
    write("http.yaml", "port: 8443\nmode: fast\n")
    main = write("main.yaml", "http:\n  $ref: http.yaml\nlogger: {}\n")
    ref, config = pipeline.load_file(str(main))
    assert ref.location == str(main.resolve())
    assert config == {"http": {"port": 8443, "mode": "fast"}, "logger": {"level": "info"}}


def test_ref_validation_failure_keeps_context(pipeline, write):
    write("http.yaml", "port: 8443\nmode: turbo\n")
    main = write("main.yaml", "http:\n  $ref: http.yaml\n")
    with pytest.raises(ValidationError) as ei:
        pipeline.load_file(main)
    assert ei.value.reason.ctx == ("http", "mode")


def test_ref_inclusion_failure_has_no_context(pipeline, write):
    main = write("main.yaml", "http:\n  listeners:\n    - $ref: missing.yaml\n")
    with pytest.raises(ConfigError) as ei:
        pipeline.load_file(main)
    reason = ei.value.reason
    assert isinstance(reason, BadReference)
    assert not hasattr(reason, "ctx")
    assert reason.ref.endswith("missing.yaml")


def test_spliced_duplicate_component_in_plain_dict(pipeline, write):
    extra = write("extra.yaml", "http:\n  port: 81\n")
    with pytest.raises(ValidationError) as ei:
        pipeline.validate({"http": {"port": 80}, "$ref": str(extra)})
    assert ei.value.reason == DuplicateComponent("http")


def test_spliced_duplicate_option_matches_decoded_document(pipeline, write):
    extra = write("extra.yaml", "port: 81\n")
    with pytest.raises(ValidationError) as from_dict:
        pipeline.validate({"http": {"port": 80, "$ref": str(extra)}})
    main = write("main.yaml", "http:\n  port: 80\n  $ref: extra.yaml\n")
    with pytest.raises(ValidationError) as from_file:
        pipeline.load_file(main)
    assert from_dict.value.reason == DuplicateItem("port", ctx=("http",))
    assert from_file.value.reason == from_dict.value.reason


def test_top_level_file_is_an_ancestor(pipeline, write):
    main = write("main.yaml", "http:\n  $ref: main.yaml\n")
    with pytest.raises(ConfigError) as ei:
        pipeline.load_file(main)
    assert ei.value.reason.kind == "circular_reference"


def test_missing_top_level_file(pipeline, tmp_path):
    with pytest.raises(ConfigError) as ei:
        pipeline.load_file(tmp_path / "nope.yaml")
    reason = ei.value.reason
    assert isinstance(reason, BadReference)
    assert "nope.yaml" in format_error(reason)


def test_malformed_top_level_document(pipeline):
    with pytest.raises(ConfigError) as ei:
        pipeline.load_bytes(b"http: [1, 2\n")
    assert isinstance(ei.value.reason, MalformedDocument)


def test_validation_is_idempotent(pipeline, write):
    write("http.yaml", "port: 8080\n")
    main = write("main.yaml", "http:\n  $ref: http.yaml\nlogger:\n  level: error\n")
    _, first = pipeline.load_file(main)
    _, second = pipeline.load_file(main)
    assert first == second
    assert first is not second


def test_validate_api_does_not_raise(pipeline):
    ok, reason, config = validate_api({"logger": {"level": "info"}}, pipeline)
    assert ok is True
    assert reason is None
    assert config == {"logger": {"level": "info"}}

    ok, reason, config = validate_api({"bar": {}}, pipeline)
    assert ok is False
    assert reason == UnsupportedComponent("bar")
    assert config is None
