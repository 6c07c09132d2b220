"""Tests for the maintenance CLI."""

import json
import uuid
from datetime import timedelta

import pytest
from click.testing import CliRunner

from assessment_engine.core.clock import utcnow
from assessment_engine.jobs import run
from assessment_engine.models.session import SessionState
from assessment_engine.repositories import progress
from assessment_engine.services.engine import start_session
from tests.helpers.seed import create_test_exam

EXAM_DOC = {
    "code": "CLI-1",
    "name": "CLI Exam",
    "objectives": [
        {
            "code": "1.0",
            "name": "Only objective",
            "weight": 1.0,
            "questions": [{"stem": "Pick a.", "options": [{"id": "a", "is_correct": True}, {"id": "b"}]}],
        }
    ],
}


@pytest.fixture
def runner(monkeypatch, session_factory):
    levels = []
    monkeypatch.setattr(run, "SessionLocal", session_factory)
    monkeypatch.setattr(run, "setup_logging", levels.append)
    cli_runner = CliRunner()
    cli_runner.levels = levels
    return cli_runner


class TestCli:
    """Test job commands against a test database."""

    def test_import_exam(self, runner, db, tmp_path):
        path = tmp_path / "exam.json"
        path.write_text(json.dumps(EXAM_DOC), encoding="utf-8")

        result = runner.invoke(run.cli, ["--log-level", "debug", "import-exam", str(path)])

        assert result.exit_code == 0, result.output
        assert "Imported exam CLI-1" in result.output
        assert runner.levels == ["debug"]

    def test_import_invalid_exam_fails(self, runner, tmp_path):
        doc = dict(EXAM_DOC, objectives=[dict(EXAM_DOC["objectives"][0], weight=0.5)])
        path = tmp_path / "exam.json"
        path.write_text(json.dumps(doc), encoding="utf-8")

        result = runner.invoke(run.cli, ["import-exam", str(path)])

        assert result.exit_code == 1
        assert "Import failed" in result.output

    def test_sweep(self, runner, db):
        seeded = create_test_exam(db, {"O1": (1.0, [3])})
        session = start_session(db, uuid.uuid4(), seeded.exam.id, None, utcnow() - timedelta(hours=1), ttl_minutes=5)

        result = runner.invoke(run.cli, ["sweep"])

        assert result.exit_code == 0, result.output
        assert "'sessions_abandoned': 1" in result.output
        db.expire_all()
        assert progress.get_study_session(db, session.id).state == SessionState.ABANDONED

    def test_question_quality(self, runner, db):
        seeded = create_test_exam(db, {"O1": (1.0, [3, 3])})

        result = runner.invoke(run.cli, ["question-quality", str(seeded.exam.id)])

        assert result.exit_code == 0, result.output
        assert "'questions_updated': 2" in result.output

    def test_question_quality_unknown_exam(self, runner):
        result = runner.invoke(run.cli, ["question-quality", str(uuid.uuid4())])
        assert result.exit_code == 1

    def test_init_db(self, runner, monkeypatch):
        calls = []
        monkeypatch.setattr(run, "init_db", lambda: calls.append(1))

        result = runner.invoke(run.cli, ["init-db"])

        assert result.exit_code == 0
        assert calls == [1]
