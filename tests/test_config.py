"""Tests for layered configuration."""

import pytest

from calexpr.infrastructure.config import (
    ConfigError,
    ConfigManager,
    ConfigProfile,
    ConfigSchema,
    ConfigSourceError,
    ConfigValidationError,
    ConfigValidator,
    EnvConfigSource,
    FileConfigSource,
    create_default_schema,
    get_config,
    load_config,
    reset_config,
    search_limits_from_config,
)
from calexpr.schedule import SearchLimits


# =============================================================================
# Source Tests
# =============================================================================


class TestEnvConfigSource:
    """Tests for EnvConfigSource."""

    def test_nested_keys(self):
        """Test that "__" separates nesting levels."""
        source = EnvConfigSource(
            environ={
                "CALEXPR_SCHEDULE__MAX_YEARS": "50",
                "CALEXPR_LOGGING__LEVEL": "DEBUG",
                "OTHER_SETTING": "ignored",
            }
        )
        assert source.load() == {
            "schedule": {"max_years": 50},
            "logging": {"level": "DEBUG"},
        }

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1", 1),
            ("-3", -3),
            ("1.5", 1.5),
            ("true", True),
            ("off", False),
            ("none", None),
            ("[1, 2]", [1, 2]),
            ("Europe/Paris", "Europe/Paris"),
            ("[not json", "[not json"),
        ],
    )
    def test_value_parsing(self, raw, expected):
        """Test conversion of environment strings."""
        source = EnvConfigSource(environ={"CALEXPR_VALUE": raw})
        assert source.load() == {"value": expected}

    def test_custom_prefix(self):
        """Test a custom variable prefix."""
        source = EnvConfigSource(prefix="APP", environ={"APP_SCHEDULE__TIMEZONE": "UTC"})
        assert source.load() == {"schedule": {"timezone": "UTC"}}


class TestFileConfigSource:
    """Tests for FileConfigSource."""

    def test_yaml(self, tmp_path):
        """Test loading a YAML file."""
        path = tmp_path / "calexpr.yaml"
        path.write_text("schedule:\n  timezone: Europe/Paris\n  max_years: 10\n")
        assert FileConfigSource(path).load() == {
            "schedule": {"timezone": "Europe/Paris", "max_years": 10}
        }

    def test_json(self, tmp_path):
        """Test loading a JSON file."""
        path = tmp_path / "calexpr.json"
        path.write_text('{"logging": {"format": "json"}}')
        assert FileConfigSource(path).load() == {"logging": {"format": "json"}}

    def test_toml(self, tmp_path):
        """Test loading a TOML file."""
        path = tmp_path / "calexpr.toml"
        path.write_text('[schedule]\ntimezone = "Asia/Tokyo"\n')
        assert FileConfigSource(path).load() == {"schedule": {"timezone": "Asia/Tokyo"}}

    def test_empty_yaml(self, tmp_path):
        """Test that an empty YAML file is an empty configuration."""
        path = tmp_path / "calexpr.yaml"
        path.write_text("")
        assert FileConfigSource(path).load() == {}

    def test_missing_optional_file(self, tmp_path):
        """Test that a missing optional file is ignored."""
        assert FileConfigSource(tmp_path / "missing.yaml").load() == {}

    def test_missing_required_file(self, tmp_path):
        """Test that a missing required file is an error."""
        with pytest.raises(ConfigSourceError):
            FileConfigSource(tmp_path / "missing.yaml", required=True).load()

    def test_unsupported_format(self, tmp_path):
        """Test that unknown extensions are rejected."""
        path = tmp_path / "calexpr.ini"
        path.write_text("[schedule]\n")
        with pytest.raises(ConfigSourceError, match="Unsupported"):
            FileConfigSource(path).load()

    def test_malformed_file(self, tmp_path):
        """Test that parse errors are reported as source errors."""
        path = tmp_path / "calexpr.yaml"
        path.write_text("schedule: [unclosed\n")
        with pytest.raises(ConfigSourceError):
            FileConfigSource(path).load()

    def test_root_must_be_mapping(self, tmp_path):
        """Test that a non-mapping root is rejected."""
        path = tmp_path / "calexpr.yaml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigSourceError, match="mapping"):
            FileConfigSource(path).load()

    def test_path_is_a_directory(self, tmp_path):
        """Test that an unreadable path is reported as a source error."""
        path = tmp_path / "calexpr.yaml"
        path.mkdir()
        with pytest.raises(ConfigSourceError, match="Failed to read"):
            FileConfigSource(path).load()

    def test_invalid_encoding(self, tmp_path):
        """Test that a file that is not UTF-8 is reported as a source error."""
        path = tmp_path / "calexpr.yaml"
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(ConfigSourceError, match="Failed to read"):
            FileConfigSource(path).load()


# =============================================================================
# Schema & Validation Tests
# =============================================================================


class TestValidation:
    """Tests for schema validation."""

    def test_defaults(self):
        """Test the nested default configuration."""
        assert create_default_schema().defaults() == {
            "schedule": {"timezone": "UTC", "max_years": 100, "max_steps": 100_000},
            "logging": {"level": "WARNING", "format": "console"},
        }

    def test_valid_defaults(self):
        """Test that the defaults validate."""
        schema = create_default_schema()
        assert ConfigValidator(schema).validate(schema.defaults()) == []

    def test_type_error(self):
        """Test that wrongly typed values are reported."""
        schema = ConfigSchema().add_field("schedule.max_years", int)
        errors = ConfigValidator(schema).validate({"schedule": {"max_years": "ten"}})
        assert errors == ["Field 'schedule.max_years' should be int, got str"]

    def test_bool_is_not_int(self):
        """Test that booleans are not accepted as integers."""
        schema = ConfigSchema().add_field("schedule.max_years", int)
        assert ConfigValidator(schema).validate({"schedule": {"max_years": True}})

    def test_bounds(self):
        """Test numeric bounds."""
        schema = ConfigSchema().add_field("n", int, min_value=1, max_value=10)
        validator = ConfigValidator(schema)
        assert validator.validate({"n": 0}) == ["Field 'n' must be >= 1"]
        assert validator.validate({"n": 11}) == ["Field 'n' must be <= 10"]
        assert validator.validate({"n": 5}) == []

    def test_choices(self):
        """Test enumerated values."""
        schema = ConfigSchema().add_field("fmt", str, choices=["a", "b"])
        assert ConfigValidator(schema).validate({"fmt": "c"})

    def test_required(self):
        """Test required fields."""
        schema = ConfigSchema().add_field("name", str, required=True)
        assert ConfigValidator(schema).validate({}) == ["Required field 'name' is missing"]


# =============================================================================
# Profile & Manager Tests
# =============================================================================


class TestConfigProfile:
    """Tests for ConfigProfile."""

    def test_typed_access(self):
        """Test the typed getters."""
        profile = ConfigProfile(
            {"schedule": {"max_years": "50", "timezone": "UTC"}, "flag": "yes"}
        )
        assert profile.get_int("schedule.max_years") == 50
        assert profile.get_str("schedule.timezone") == "UTC"
        assert profile.get_bool("flag") is True
        assert profile.get_dict("schedule")["timezone"] == "UTC"
        assert profile.get_int("missing", 7) == 7

    def test_item_access(self):
        """Test mapping-style access."""
        profile = ConfigProfile({"schedule": {"timezone": "UTC"}})
        assert "schedule.timezone" in profile
        assert profile["schedule.timezone"] == "UTC"
        with pytest.raises(KeyError):
            profile["schedule.missing"]

    def test_required_key(self):
        """Test that required lookups raise when missing."""
        with pytest.raises(ConfigError):
            ConfigProfile({}).get("schedule.timezone", required=True)

    def test_to_dict_is_a_copy(self):
        """Test that to_dict() does not expose internal state."""
        profile = ConfigProfile({"schedule": {"timezone": "UTC"}})
        profile.to_dict()["schedule"]["timezone"] = "Asia/Tokyo"
        assert profile.get_str("schedule.timezone") == "UTC"


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_priority_order(self, tmp_path):
        """Test that higher-priority sources override lower ones."""
        path = tmp_path / "calexpr.yaml"
        path.write_text("schedule:\n  timezone: Europe/Paris\n  max_years: 10\n")

        manager = ConfigManager(create_default_schema())
        manager.add_source(EnvConfigSource(environ={"CALEXPR_SCHEDULE__TIMEZONE": "Asia/Tokyo"}))
        manager.add_source(FileConfigSource(path))
        profile = manager.load()

        assert profile.get_str("schedule.timezone") == "Asia/Tokyo"
        assert profile.get_int("schedule.max_years") == 10
        assert profile.get_int("schedule.max_steps") == 100_000

    def test_validation_failure(self):
        """Test that invalid merged configuration raises."""
        manager = ConfigManager(create_default_schema())
        manager.add_source(EnvConfigSource(environ={"CALEXPR_SCHEDULE__MAX_YEARS": "0"}))
        with pytest.raises(ConfigValidationError) as exc_info:
            manager.load()
        assert exc_info.value.errors == ["Field 'schedule.max_years' must be >= 1"]

    def test_skip_validation(self):
        """Test loading without validation."""
        manager = ConfigManager(create_default_schema())
        manager.add_source(EnvConfigSource(environ={"CALEXPR_LOGGING__LEVEL": "verbose"}))
        assert manager.load(validate=False).get_str("logging.level") == "verbose"


# =============================================================================
# Global Configuration Tests
# =============================================================================


class TestGlobalConfig:
    """Tests for load_config() and get_config()."""

    def test_defaults(self):
        """Test loading with no file and no environment."""
        profile = load_config()
        assert profile.get_str("schedule.timezone") == "UTC"
        assert get_config() is profile

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        """Test that environment variables win over the file."""
        path = tmp_path / "calexpr.yaml"
        path.write_text("schedule:\n  timezone: Europe/Paris\n")
        monkeypatch.setenv("CALEXPR_SCHEDULE__TIMEZONE", "Asia/Tokyo")
        assert load_config(config_path=path).get_str("schedule.timezone") == "Asia/Tokyo"

    def test_explicit_file_must_exist(self, tmp_path):
        """Test that an explicitly named file is required."""
        with pytest.raises(ConfigSourceError):
            load_config(config_path=tmp_path / "missing.yaml")

    def test_invalid_environment(self, monkeypatch):
        """Test that invalid environment values fail validation."""
        monkeypatch.setenv("CALEXPR_LOGGING__FORMAT", "xml")
        with pytest.raises(ConfigValidationError):
            load_config()

    def test_reset(self):
        """Test that reset_config() forgets the global profile."""
        first = load_config()
        reset_config()
        assert get_config() is not first

    def test_search_limits(self):
        """Test building search limits from configuration."""
        profile = ConfigProfile({"schedule": {"max_years": 5, "max_steps": 500}})
        assert search_limits_from_config(profile) == SearchLimits(max_steps=500, max_years=5)
        assert search_limits_from_config(ConfigProfile({})) == SearchLimits()
