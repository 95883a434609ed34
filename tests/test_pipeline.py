"""Tests for the Scaffolder orchestrator and the CLI entry point.

Covers:
- Scaffolder.from_options locating the template and loading its descriptor
- Prompted scaffolding with command-line seeding
- Non-interactive scaffold_with_parameters
- Descriptor patterns and hooks flowing into the engine
- main() argument parsing and exit codes
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from treescaffold.config import ScaffoldOptions
from treescaffold.errors import ConfigError, ResolverError
from treescaffold.models import ArrayValue, IntegerValue, StringValue
from treescaffold.pipeline import Scaffolder, build_parser, main

pytestmark = pytest.mark.unit

DESCRIPTOR = """
[template]
exclude = ["./target"]
disable_templating = ["raw/*"]
notes = "Created {{ name }}"

[parameters.lang]
type = "select"
message = "Which language?"
values = ["rust", "go"]

[hooks]
pre = ["echo {{ name }}"]
"""

FILES = {
    "src/{{lang}}/main.txt": "hello {{name}}",
    "raw/{{name}}.txt": "{{ untouched }}",
    "target/build.log": "ignored",
}


@pytest.fixture
def template(make_template) -> Path:
    return make_template(FILES, descriptor=DESCRIPTOR)


def _options(template: Path, target: Path, **kwargs) -> ScaffoldOptions:
    return ScaffoldOptions(template_path=str(template), target_dir=target, **kwargs)


# ---------------------------------------------------------------------------
# Scaffolder
# ---------------------------------------------------------------------------


class TestScaffolder:
    def test_from_options_loads_descriptor(self, template, target_dir):
        scaffolder = Scaffolder.from_options(_options(template, target_dir, project_name="demo"))
        assert scaffolder.template_dir == template.resolve()
        assert list(scaffolder.description.parameters) == ["lang"]
        assert scaffolder.name == "demo"

    def test_scaffold_prompts_for_missing_values(
        self, template, target_dir, scripted_prompter, hook_runner
    ):
        prompter = scripted_prompter(1, "demo")
        scaffolder = Scaffolder.from_options(
            _options(template, target_dir), prompter=prompter, hook_runner=hook_runner
        )

        result = scaffolder.scaffold()

        assert prompter.asked == ["Which language?", "What is the name of your generated project?"]
        assert (target_dir / "src" / "go" / "main.txt").read_text() == "hello demo"
        assert (target_dir / "raw" / "demo.txt").read_text() == "{{ untouched }}"
        assert not (target_dir / "target").exists()
        assert hook_runner.commands == ["echo demo"]
        assert result.notes == "Created demo"

    def test_cli_parameters_skip_prompts(self, template, target_dir, scripted_prompter, hook_runner):
        prompter = scripted_prompter()
        options = _options(
            template, target_dir, project_name="demo", default_parameters=["lang=rust"]
        )

        Scaffolder.from_options(options, prompter=prompter, hook_runner=hook_runner).scaffold()

        assert prompter.calls == []
        assert (target_dir / "src" / "rust" / "main.txt").read_text() == "hello demo"

    def test_invalid_cli_parameter(self, template, target_dir, scripted_prompter):
        options = _options(template, target_dir, project_name="demo", default_parameters=["lang"])
        scaffolder = Scaffolder.from_options(options, prompter=scripted_prompter())
        with pytest.raises(ResolverError):
            scaffolder.scaffold()

    def test_scaffold_with_parameters(self, template, target_dir, hook_runner):
        options = _options(template, target_dir, project_name="demo")
        scaffolder = Scaffolder.from_options(options, hook_runner=hook_runner)

        result = scaffolder.scaffold_with_parameters({"lang": "go", "ports": [80, 443]})

        assert (target_dir / "src" / "go" / "main.txt").read_text() == "hello demo"
        assert result.parameters["name"] == StringValue(value="demo")
        assert result.parameters["ports"] == ArrayValue(
            items=[IntegerValue(value=80), IntegerValue(value=443)]
        )

    def test_scaffold_with_parameters_overrides_cli(self, template, target_dir, hook_runner):
        options = _options(
            template, target_dir, project_name="demo", default_parameters=["lang=rust"]
        )
        Scaffolder.from_options(options, hook_runner=hook_runner).scaffold_with_parameters(
            {"lang": "go"}
        )
        assert (target_dir / "src" / "go").is_dir()

    def test_scaffold_with_parameters_requires_name(self, template, target_dir):
        scaffolder = Scaffolder.from_options(_options(template, target_dir))
        with pytest.raises(ConfigError) as excinfo:
            scaffolder.scaffold_with_parameters({})
        assert excinfo.value.kind == ConfigError.MISSING_REQUIRED_FIELD

    def test_scaffold_with_unsupported_value(self, template, target_dir):
        scaffolder = Scaffolder.from_options(_options(template, target_dir, project_name="demo"))
        with pytest.raises(ConfigError):
            scaffolder.scaffold_with_parameters({"lang": None})


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestCli:
    def test_parser_flags(self):
        args = build_parser().parse_args(
            [
                "https://example.com/t.git",
                "-r", "service",
                "-t", "v1",
                "-n", "demo",
                "-d", "out",
                "-f",
                "-a",
                "--param", "a=1",
                "--param", "b=2",
            ]
        )
        assert args.template == "https://example.com/t.git"
        assert args.repository_template_path == "service"
        assert args.git_ref == "v1"
        assert args.project_name == "demo"
        assert args.target_dir == "out"
        assert args.force and args.append
        assert args.default_parameters == ["a=1", "b=2"]

    def test_main_success(self, make_template, target_dir):
        template = make_template({"{{name}}.txt": "{{ name }}"}, descriptor="")
        code = main([str(template), "-n", "demo", "-d", str(target_dir)])
        assert code == 0
        assert (target_dir / "demo.txt").read_text() == "demo"

    def test_main_existing_target_fails(self, make_template, target_dir):
        template = make_template({"a.txt": "a"}, descriptor="")
        target_dir.mkdir(parents=True)
        assert main([str(template), "-n", "demo", "-d", str(target_dir)]) == 1

    def test_main_append_and_force(self, make_template, target_dir):
        template = make_template({"a.txt": "a"}, descriptor="")
        target_dir.mkdir(parents=True)
        (target_dir / "a.txt").write_text("mine")

        assert main([str(template), "-n", "demo", "-d", str(target_dir), "-a"]) == 0
        assert (target_dir / "a.txt").read_text() == "mine"

        assert main([str(template), "-n", "demo", "-d", str(target_dir), "-f"]) == 0
        assert (target_dir / "a.txt").read_text() == "a"

    def test_main_missing_descriptor(self, tmp_path: Path):
        assert main([str(tmp_path), "-n", "demo"]) == 1

    def test_main_missing_template(self, tmp_path: Path):
        assert main([str(tmp_path / "nope"), "-n", "demo"]) == 1

    def test_main_keyboard_interrupt(self, make_template, target_dir):
        template = make_template({"a.txt": "a"}, descriptor="")
        with patch.object(Scaffolder, "scaffold", side_effect=KeyboardInterrupt):
            assert main([str(template), "-n", "demo", "-d", str(target_dir)]) == 130

    def test_main_reports_stage(self, tmp_path: Path):
        with patch("treescaffold.pipeline.print_error") as mock_error:
            main([str(tmp_path), "-n", "demo"])
        mock_error.assert_called_once()
        assert mock_error.call_args.args[0].startswith("Configuration failed:")
