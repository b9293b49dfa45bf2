"""Tests for the CLI commands."""

from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

from todoi import cli, config_commands, rule_commands
from todoi.backends import LogSeqBackend, ObsidianBackend, ZkBackend
from todoi.config import Config
from todoi.models import ImportRecord, ImportRun, ImportStatus, PersistenceRef, Task


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in a temporary working directory with an empty home."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("TODOIST_API_TOKEN", raising=False)
    monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def logseq_graph(tmp_path):
    """Create a LogSeq graph with a YouTube template."""
    graph = tmp_path / "graph"
    (graph / "journals").mkdir(parents=True)
    (graph / "templates").mkdir()
    (graph / "templates" / "youtube.md").write_text("- {{title}}\n  tags:: {{tags}}\n  url:: {{url}}\n")
    return graph


def test_get_backend_types(workdir, tmp_path):
    """Test backend construction from config."""
    config = Config()
    config.set("zk.root", str(tmp_path))
    config.set("zk.journal_dir", "daily")

    zk = cli.get_backend(config, "zk")
    assert isinstance(zk, ZkBackend)
    assert zk.journal_dir == tmp_path / "daily"

    assert isinstance(cli.get_backend(config, "logseq", root=tmp_path), LogSeqBackend)
    assert isinstance(cli.get_backend(config, "obsidian", root=tmp_path), ObsidianBackend)


def test_get_backend_defaults_to_logseq(workdir, tmp_path):
    """Test that LogSeq is used when no backend is configured."""
    config = Config()
    config.set("logseq.root", str(tmp_path))

    assert isinstance(cli.get_backend(config), LogSeqBackend)


def test_get_backend_requires_root(workdir):
    """Test that a missing root is reported with a hint."""
    with pytest.raises(ValueError, match="todoi config set zk.root"):
        cli.get_backend(Config(), "zk")


def test_get_backend_unknown(workdir, tmp_path):
    """Test that unknown backend names are rejected."""
    with pytest.raises(ValueError, match="Unknown backend"):
        cli.get_backend(Config(), "evernote", root=tmp_path)


def test_get_template_store_precedence(workdir, tmp_path):
    """Test template directory precedence."""
    config = Config()
    backend = LogSeqBackend(tmp_path)

    assert cli.get_template_store(config, backend).directory == tmp_path / "templates"
    config.set("templates.dir", str(tmp_path / "configured"))
    assert cli.get_template_store(config, backend).directory == tmp_path / "configured"
    assert cli.get_template_store(config, backend, tmp_path / "flag").directory == tmp_path / "flag"


def test_print_run(capsys):
    """Test the per-task report and summary."""
    tasks = [Task(id="1", title="Great video"), Task(id="2", title="Buy milk"), Task(id="3", title="Later")]
    run = ImportRun(
        records=[
            ImportRecord(
                task_id="1",
                status=ImportStatus.PERSISTED,
                ref=PersistenceRef(backend="logseq", path=Path("journals/2026_10_18.md"), block_index=2),
                completion_failed=True,
            ),
            ImportRecord(task_id="2", status=ImportStatus.SKIPPED, reason="not eligible"),
            ImportRecord(task_id="3", status=ImportStatus.UNPROCESSED, reason="run aborted"),
        ],
        aborted=True,
        abort_reason="disk full",
    )

    cli.print_run(run, tasks)

    out = capsys.readouterr().out
    assert "+ 1: Great video -> journals/2026_10_18.md#block-2 [completion marking failed]" in out
    assert "- 2: Buy milk (not eligible)" in out
    assert "persisted: 1" in out
    assert "Run aborted: disk full" in out


def test_import_tasks(workdir, logseq_graph, capsys):
    """Test the import command end to end with a mock Todoist source."""
    config = Config()
    config.set("logseq.root", str(logseq_graph))
    config.set("todoist.token", "secret")
    config.set("tag_rules", [{"keyword": "video", "tags": ["watch"]}])

    tasks = [Task(id="1", title="Great video", url="https://youtube.com/watch?v=abc")]
    with patch("todoi.cli.TodoistTaskSource") as mock_source_class:
        mock_source = mock_source_class.return_value
        mock_source.fetch_inbox_candidates.return_value = tasks
        mock_source.mark_complete.return_value = True

        cli.import_tasks(complete=True)

    mock_source_class.assert_called_once_with(token="secret")
    mock_source.mark_complete.assert_called_once_with("1")
    journal = logseq_graph / "journals" / date.today().strftime("%Y_%m_%d.md")
    assert journal.read_text() == "- Great video\n  tags:: watch\n  url:: https://youtube.com/watch?v=abc\n"
    assert "Found 1 task(s)" in capsys.readouterr().out


def test_import_tasks_token_from_environment(workdir, logseq_graph, monkeypatch):
    """Test that the token can come from the environment."""
    monkeypatch.setenv("TODOIST_API_TOKEN", "env-token")
    Config().set("logseq.root", str(logseq_graph))

    with patch("todoi.cli.TodoistTaskSource") as mock_source_class:
        mock_source_class.return_value.fetch_inbox_candidates.return_value = []
        cli.import_tasks()

    mock_source_class.assert_called_once_with(token="env-token")


def test_import_tasks_requires_token(workdir, logseq_graph):
    """Test that a missing token is reported."""
    Config().set("logseq.root", str(logseq_graph))

    with pytest.raises(ValueError, match="todoist.token"):
        cli.import_tasks()


def test_import_tasks_exits_on_abort(workdir, logseq_graph):
    """Test that an aborted run exits with an error status."""
    Config().set("logseq.root", str(logseq_graph))
    Config().set("todoist.token", "secret")

    with patch("todoi.cli.TodoistTaskSource") as mock_source_class:
        mock_source_class.return_value.fetch_inbox_candidates.return_value = []
        with patch("todoi.cli.ImportPipeline") as mock_pipeline_class:
            mock_pipeline_class.return_value.run.return_value = ImportRun(aborted=True, abort_reason="disk full")
            with pytest.raises(SystemExit) as exc_info:
                cli.import_tasks()

    assert exc_info.value.code == 1


def test_list_templates(workdir, logseq_graph, capsys):
    """Test listing templates."""
    Config().set("logseq.root", str(logseq_graph))
    (logseq_graph / "templates" / "article.md").write_text("{{url}}\n")

    cli.list_templates()

    out = capsys.readouterr().out
    assert "  article" in out
    assert "  youtube" in out


def test_relink(workdir, tmp_path, capsys):
    """Test linking a previously created zk note."""
    notebook = tmp_path / "notebook"
    (notebook / "journal" / "daily").mkdir(parents=True)
    note = notebook / "great-video-20261018093000.md"
    note.write_text("# Great video\n")
    Config().set("zk.root", str(notebook))

    cli.relink(note, title="Great video", day="2026-10-18")

    journal = (notebook / "journal" / "daily" / "2026-10-18.md").read_text()
    assert journal == "- [Great video](../../great-video-20261018093000.md)\n"
    assert "Linked ../../great-video-20261018093000.md" in capsys.readouterr().out


def test_tag_rule_commands(workdir, capsys):
    """Test adding, listing and removing tag rules."""
    rule_commands.add("squat", "fitness", "strength")
    rule_commands.add(r"\bml\b", "machine learning", regex=True)
    rule_commands.list_tags()

    out = capsys.readouterr().out
    assert "squat -> fitness, strength" in out
    assert r"\bml\b (regex) -> machine learning" in out

    rule_commands.remove("squat")
    rule_commands.remove("squat")
    out = capsys.readouterr().out
    assert "Removed tag rules for squat" in out
    assert "No tag rules for squat" in out


def test_tag_rule_add_requires_tags(workdir):
    """Test that a keyword without tags is rejected."""
    with pytest.raises(ValueError, match="At least one tag"):
        rule_commands.add("squat")


def test_source_rule_commands(workdir, capsys):
    """Test adding, listing and removing source rules."""
    rule_commands.add_source("strongerbyscience.com", "Stronger by Science")
    rule_commands.list_sources()
    assert "strongerbyscience.com -> Stronger by Science" in capsys.readouterr().out

    rule_commands.remove_source("strongerbyscience.com")
    rule_commands.list_sources()
    assert "No source rules" in capsys.readouterr().out


def test_config_commands(workdir, capsys):
    """Test the config commands, which hide rule lists."""
    config_commands.set("backend", "zk")
    rule_commands.add("squat", "fitness")
    config_commands.get("backend")
    config_commands.list_config()

    out = capsys.readouterr().out
    assert "backend = zk" in out
    assert "tag_rules" not in out

    config_commands.unset("backend")
    config_commands.get("backend")
    assert "backend is not set" in capsys.readouterr().out


def test_import_tasks_passes_youtube_key(workdir, logseq_graph):
    """Test that the YouTube API key reaches the enricher, and --no-lookup disables it."""
    config = Config()
    config.set("logseq.root", str(logseq_graph))
    config.set("todoist.token", "secret")
    config.set("youtube.api_key", "yt-key")

    with patch("todoi.cli.TodoistTaskSource") as mock_source_class, patch("todoi.cli.Enricher") as mock_enricher_class:
        mock_source_class.return_value.fetch_inbox_candidates.return_value = []
        cli.import_tasks()
        mock_enricher_class.assert_called_once_with(youtube_api_key="yt-key")

        mock_enricher_class.reset_mock()
        cli.import_tasks(lookup=False)
        mock_enricher_class.assert_not_called()


def test_channel_rule_commands(workdir, capsys):
    """Test adding, listing and removing channel rules."""
    rule_commands.add_channel("Greg Nuckols", "fitness", "strength")
    rule_commands.list_channels()
    assert "Greg Nuckols -> fitness, strength" in capsys.readouterr().out

    rule_commands.remove_channel("Greg Nuckols")
    rule_commands.list_channels()
    assert "No channel rules" in capsys.readouterr().out

    with pytest.raises(ValueError, match="At least one tag"):
        rule_commands.add_channel("Greg Nuckols")


def test_config_set_validates_backend(workdir):
    """Test that only known backends can be configured."""
    with pytest.raises(ValueError, match="Unknown backend: notes"):
        config_commands.set("backend", "notes")
    assert Config().get("backend") is None


def test_config_set_rejects_unknown_and_rule_keys(workdir):
    """Test that unknown keys and rule lists are refused."""
    with pytest.raises(ValueError, match="Unknown configuration key"):
        config_commands.set("zk.rot", "/notes")
    with pytest.raises(ValueError, match="todoi tags"):
        config_commands.set("tag_rules", "squat")


def test_config_set_stores_absolute_paths(workdir, capsys):
    """Test that directories are stored resolved, with a warning when missing."""
    (workdir / "graph").mkdir()
    config_commands.set("logseq.root", "graph")
    assert Config().get("logseq.root") == str((workdir / "graph").resolve())
    assert "Warning" not in capsys.readouterr().out

    config_commands.set("zk.root", "missing")
    assert "Warning:" in capsys.readouterr().out


def test_config_masks_secrets(workdir, capsys):
    """Test that tokens are not printed in full."""
    config_commands.set("todoist.token", "0123456789abcdef")
    config_commands.get("todoist.token")
    config_commands.list_config()

    out = capsys.readouterr().out
    assert "0123456789abcdef" not in out
    assert "todoist.token = ************cdef" in out


def test_config_keys(capsys):
    """Test listing the known keys."""
    config_commands.list_keys()
    out = capsys.readouterr().out
    assert "youtube.api_key" in out
    assert "tag_rules" not in out
