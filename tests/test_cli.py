"""
Tests for the CLI — get, set, clear, list and config commands

Each test runs main() against a temp project with isolated user config.
"""

import yaml

from typedprefs.cli import build_parser, main


def run(project, *argv):
    return main(["--project", str(project), *argv])


class TestParser:
    """Argument parsing."""

    def test_type_choices(self):
        """--type only accepts known converters."""
        args = build_parser().parse_args(["get", "k", "--type", "int"])
        assert args.type == "int"

    def test_no_command_prints_help(self, capsys):
        """No subcommand shows help."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()


class TestPreferenceCommands:
    """get / set / clear / list."""

    def test_set_and_get(self, isolated_config, capsys):
        """set stores a typed value that get prints."""
        assert run(isolated_config, "set", "network.retries", "5", "--type", "int") == 0
        assert run(isolated_config, "get", "network.retries", "--type", "int") == 0

        out = capsys.readouterr().out
        assert "Set network.retries = 5" in out
        assert "network.retries: 5" in out

        stored = yaml.safe_load((isolated_config / ".typedprefs" / "preferences.yaml").read_text())
        assert stored == {"network.retries": 5}

    def test_set_invalid_value(self, isolated_config, capsys):
        """A value that does not parse is rejected."""
        assert run(isolated_config, "set", "retries", "many", "--type", "int") == 1
        assert "not a valid int" in capsys.readouterr().out

    def test_get_missing(self, isolated_config, capsys):
        """Missing keys are reported with a non-zero exit."""
        assert run(isolated_config, "get", "missing") == 1
        assert "(not set)" in capsys.readouterr().out

    def test_get_unconvertible(self, isolated_config, capsys):
        """A stored value of the wrong type is an error."""
        run(isolated_config, "set", "name", "alice")
        assert run(isolated_config, "get", "name", "--type", "int") == 1
        assert "not a valid int" in capsys.readouterr().out

    def test_clear(self, isolated_config, capsys):
        """clear removes the key."""
        run(isolated_config, "set", "debug", "yes", "--type", "bool")
        assert run(isolated_config, "clear", "debug") == 0
        assert run(isolated_config, "get", "debug") == 1
        assert "Cleared debug" in capsys.readouterr().out

    def test_list(self, isolated_config, capsys):
        """list prints every key."""
        run(isolated_config, "set", "b", "2", "--type", "int")
        run(isolated_config, "set", "a", "x")
        capsys.readouterr()

        assert run(isolated_config, "list") == 0
        assert capsys.readouterr().out.splitlines() == ["a: x", "b: 2"]

    def test_list_empty(self, isolated_config, capsys):
        """Empty stores say so."""
        assert run(isolated_config, "list") == 0
        assert "No preferences set." in capsys.readouterr().out

    def test_yaml_display_format(self, isolated_config, capsys):
        """display.format=yaml prints YAML."""
        run(isolated_config, "config", "--set", "display.format=yaml")
        run(isolated_config, "set", "debug", "on", "--type", "bool")
        capsys.readouterr()

        run(isolated_config, "get", "debug", "--type", "bool")
        assert yaml.safe_load(capsys.readouterr().out) == {"debug": True}

    def test_malformed_store_reports_error(self, isolated_config, capsys):
        """Store errors become an error message and exit code 1."""
        path = isolated_config / ".typedprefs" / "preferences.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("a: [broken\n")

        assert run(isolated_config, "list") == 1
        assert "Error:" in capsys.readouterr().out


class TestConfigCommand:
    """config display and --set."""

    def test_show(self, isolated_config, capsys):
        """config prints the current configuration."""
        assert run(isolated_config, "config") == 0
        assert "Backend: yaml" in capsys.readouterr().out

    def test_set(self, isolated_config, capsys):
        """config --set changes the backend used by later commands."""
        assert run(isolated_config, "config", "--set", "store.backend=json") == 0
        run(isolated_config, "set", "a", "1")
        assert (isolated_config / ".typedprefs" / "preferences.json").exists()

    def test_set_bad_format(self, isolated_config, capsys):
        """KEY=VALUE is required."""
        assert run(isolated_config, "config", "--set", "store.backend") == 1
        assert "KEY=VALUE" in capsys.readouterr().out

    def test_set_invalid_value(self, isolated_config, capsys):
        """Validation errors are printed."""
        assert run(isolated_config, "config", "--set", "store.backend=sqlite") == 1
        assert "Unknown backend" in capsys.readouterr().out
