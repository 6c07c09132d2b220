"""CLI entry point for engine maintenance jobs."""

import logging
import sys
from uuid import UUID

import click

from assessment_engine.core.clock import utcnow
from assessment_engine.core.errors import EngineError
from assessment_engine.core.logging import setup_logging
from assessment_engine.db.base import init_db
from assessment_engine.db.session import SessionLocal

logger = logging.getLogger(__name__)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this run.")
def cli(log_level: str | None):
    """Adaptive assessment engine jobs."""
    setup_logging(log_level)


@cli.command("init-db")
def init_db_command():
    """Create all tables."""
    init_db()
    click.echo("Database initialised")


@cli.command("import-exam")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_exam(path: str):
    """Import an exam definition from a JSON file."""
    from assessment_engine.services.content_import import load_exam_file

    db = SessionLocal()
    try:
        exam = load_exam_file(db, path)
        click.echo(f"Imported exam {exam.code}: {exam.id}")
    except EngineError as e:
        logger.error(f"Import failed: {e.message}", extra={"code": e.code, "details": e.details})
        click.echo(f"Import failed: {e.message}", err=True)
        sys.exit(1)
    finally:
        db.close()


@cli.command("sweep")
def sweep():
    """Settle expired study sessions and test attempts."""
    from assessment_engine.jobs.expiry_sweep import sweep_expired

    db = SessionLocal()
    try:
        result = sweep_expired(db, utcnow())
        click.echo(f"Sweep completed: {result.to_dict()}")
    finally:
        db.close()


@cli.command("question-quality")
@click.argument("exam_id", type=click.UUID)
def question_quality(exam_id: UUID):
    """Recompute attempt counts and discrimination indices for an exam."""
    from assessment_engine.jobs.question_quality import recompute_question_quality

    db = SessionLocal()
    try:
        summary = recompute_question_quality(db, exam_id)
        click.echo(f"Job completed: {summary}")
    except EngineError as e:
        logger.error(f"Question quality job failed: {e.message}", extra={"code": e.code})
        click.echo(f"Job failed: {e.message}", err=True)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
