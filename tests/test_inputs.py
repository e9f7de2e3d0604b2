"""Tests for input normalization."""

import pytest

from condbuild.config import get_default_config, DEFAULT_KEEP_REGEX
from condbuild.context import RunContext
from condbuild.exit_codes import ConfigError, ValidationError, CONFIG_ERROR, USAGE_ERROR
from condbuild.inputs import normalize_inputs, parse_triggers, parse_keep_versions


@pytest.fixture
def config():
    return get_default_config()


@pytest.fixture
def ctx():
    return RunContext(
        repository="Org/Platform",
        repository_name="Platform",
        default_branch="develop",
        event_number="42",
    )


class TestImagePath:
    def test_package_named_like_repo_uses_short_form(self, config):
        ctx = RunContext(repository="org/api", repository_name="api")
        inputs = normalize_inputs(ctx, config, package="api")
        assert inputs.image_path == "org/api"

    def test_other_package_is_namespaced(self, config):
        ctx = RunContext(repository="org/platform", repository_name="platform")
        inputs = normalize_inputs(ctx, config, package="worker")
        assert inputs.image_path == "org/platform/worker"

    def test_case_insensitive_match_and_lower_cased(self, config, ctx):
        inputs = normalize_inputs(ctx, config, package="PLATFORM")
        assert inputs.image_path == "org/platform"

    def test_repository_name_falls_back_to_slug(self, config):
        ctx = RunContext(repository="org/api")
        assert normalize_inputs(ctx, config, package="api").image_path == "org/api"


class TestDeprecatedTag:
    def test_tag_alone_is_rejected(self, config, ctx):
        with pytest.raises(ValidationError) as exc_info:
            normalize_inputs(ctx, config, package="worker", tag="pr1")
        assert exc_info.value.exit_code == USAGE_ERROR
        assert "deprecated" in str(exc_info.value)

    def test_tag_with_tags_is_rejected(self, config, ctx):
        with pytest.raises(ValidationError):
            normalize_inputs(ctx, config, package="worker", tags="pr1", tag="pr1")


class TestValidation:
    def test_package_required(self, config, ctx):
        with pytest.raises(ValidationError):
            normalize_inputs(ctx, config, package="  ")

    def test_context_repository_required(self, config):
        with pytest.raises(ValidationError):
            normalize_inputs(RunContext(), config, package="worker")

    def test_bad_keep_regex(self, config, ctx):
        with pytest.raises(ValidationError):
            normalize_inputs(ctx, config, package="worker", keep_regex="(")

    def test_bad_configured_keep_regex(self, config, ctx):
        config['retention']['keep_regex'] = "["
        with pytest.raises(ConfigError) as exc_info:
            normalize_inputs(ctx, config, package="worker")
        assert exc_info.value.exit_code == CONFIG_ERROR

    @pytest.mark.parametrize("value", ["-1", "ten", "1.5"])
    def test_bad_keep_versions(self, value):
        with pytest.raises(ValidationError):
            parse_keep_versions(value)

    @pytest.mark.parametrize("value,expected", [(None, None), ("", None), ("0", 0), ("5", 5), (3, 3)])
    def test_keep_versions(self, value, expected):
        assert parse_keep_versions(value) == expected


class TestDefaults:
    def test_defaults(self, config, ctx):
        inputs = normalize_inputs(ctx, config, package="worker")
        assert inputs.package.context_path == "worker"
        assert inputs.package.dockerfile_path == "worker/Dockerfile"
        assert inputs.registry == "ghcr.io"
        assert inputs.diff_branch == "develop"
        assert inputs.repository == "Org/Platform"
        assert inputs.repository_override is False
        assert inputs.keep_versions is None
        assert inputs.keep_regex == DEFAULT_KEEP_REGEX
        assert inputs.fallback_tag == ""
        assert inputs.sbom is True

    def test_tags_default_to_event_number(self, config, ctx):
        inputs = normalize_inputs(ctx, config, package="worker")
        assert inputs.tags.csv == "ghcr.io/org/platform/worker:42"

    def test_empty_tuple_uses_event_number(self, config, ctx):
        inputs = normalize_inputs(ctx, config, package="worker", tags=())
        assert inputs.tags.names == ["42"]

    def test_no_tags_and_no_event_gives_empty_set(self, config):
        ctx = RunContext(repository="org/platform", repository_name="platform")
        inputs = normalize_inputs(ctx, config, package="worker")
        assert len(inputs.tags) == 0

    def test_diff_branch_falls_back_to_config(self, config):
        ctx = RunContext(repository="org/platform", repository_name="platform")
        assert normalize_inputs(ctx, config, package="worker").diff_branch == "main"

    def test_explicit_values(self, config, ctx):
        inputs = normalize_inputs(
            ctx, config,
            package="worker",
            tags="pr42\n\ndemo",
            build_context=".",
            build_file="docker/worker.Dockerfile",
            tag_fallback=" prod ",
            triggers="('./worker/' './common/')",
            diff_branch="release",
            keep_versions="5",
            keep_regex="^prod$",
            repository="other/platform",
            sbom=False,
            build_args=["A=1", "B=2"],
            secrets="TOKEN=abc\nOTHER=def",
            registry="registry.example.com",
        )
        assert inputs.tags.csv == (
            "registry.example.com/org/platform/worker:pr42,"
            "registry.example.com/org/platform/worker:demo"
        )
        assert inputs.package.context_path == "."
        assert inputs.package.dockerfile_path == "docker/worker.Dockerfile"
        assert inputs.fallback_tag == "prod"
        assert inputs.fallback_ref == "registry.example.com/org/platform/worker:prod"
        assert inputs.triggers == ("worker/", "common/")
        assert inputs.diff_branch == "release"
        assert inputs.keep_versions == 5
        assert inputs.keep_regex == "^prod$"
        assert inputs.repository_override is True
        assert inputs.sbom is False
        assert inputs.build_args == ("A=1", "B=2")
        assert inputs.secrets == ("TOKEN=abc", "OTHER=def")


class TestParseTriggers:
    def test_shell_array_form(self):
        assert parse_triggers("('./backend/' './frontend/')") == ("backend/", "frontend/")

    def test_repeated_values(self):
        assert parse_triggers(["./backend/", "frontend/"]) == ("backend/", "frontend/")

    def test_space_separated(self):
        assert parse_triggers("backend/ frontend/") == ("backend/", "frontend/")

    def test_empty(self):
        assert parse_triggers(None) == ()
        assert parse_triggers("") == ()
        assert parse_triggers("()") == ()

    def test_unbalanced_quote(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_triggers("('./worker/)")
        assert exc_info.value.exit_code == USAGE_ERROR
