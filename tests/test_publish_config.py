import io

import pytest
from pydantic import ValidationError

from crg.envfile import load_env_file
from crg.errors import ConfigurationError
from crg.publish import AzurePipelinesSink, DotenvSink, GithubOutputSink, MemorySink, make_sink, variable_name
from crg.run_config import RunConfig


def test_variable_name_is_stable():
    assert variable_name("demo", "db", 5432) == "project.demo.service.db.port.5432"
    assert variable_name("demo", "db", 5432) == variable_name("demo", "db", 5432)


def test_azure_sink_writes_logging_command():
    buf = io.StringIO()
    AzurePipelinesSink(buf).publish("project.demo.service.db.port.5432", "32769")
    assert buf.getvalue() == "##vso[task.setvariable variable=project.demo.service.db.port.5432]32769\n"


def test_dotenv_sink_appends(tmp_path):
    out = tmp_path / "ports.env"
    sink = DotenvSink(str(out))
    sink.publish("a", "1")
    sink.publish("b", "2")
    assert out.read_text() == "a=1\nb=2\n"


def test_github_sink_uses_github_output(tmp_path, monkeypatch):
    out = tmp_path / "gh_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(out))
    make_sink("github").publish("x", "9")
    assert out.read_text() == "x=9\n"


def test_github_sink_requires_target(monkeypatch):
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    with pytest.raises(ConfigurationError):
        GithubOutputSink()


def test_make_sink_unknown_kind():
    with pytest.raises(ConfigurationError, match="Unknown sink"):
        make_sink("slack")


def test_memory_sink_keeps_order():
    sink = make_sink("memory")
    assert isinstance(sink, MemorySink)
    sink.publish("b", "2")
    sink.publish("a", "1")
    assert sink.items == [("b", "2"), ("a", "1")]


def test_load_env_file_ignores_comments_and_blanks(tmp_path):
    p = tmp_path / ".env"
    p.write_text("# comment\n\nDB_USER=demo\nDB_PASSWORD='p@ss word'\nEMPTY=\n")
    assert load_env_file(str(p)) == {"DB_USER": "demo", "DB_PASSWORD": "p@ss word", "EMPTY": ""}


def test_run_config_defaults_are_valid():
    cfg = RunConfig(project_name="demo")
    assert cfg.max_tries >= 1
    assert cfg.interval_s >= 0.1


@pytest.mark.parametrize(
    "kw",
    [
        {"max_tries": 0},
        {"interval_s": 0.0},
        {"interval_s": -1},
        {"project_name": "Bad Name"},
        {"project_name": ""},
    ],
)
def test_run_config_rejects_invalid_values(kw):
    base = {"project_name": "demo"}
    base.update(kw)
    with pytest.raises(ValidationError):
        RunConfig(**base)
