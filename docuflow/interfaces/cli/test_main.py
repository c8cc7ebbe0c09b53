"""Tests for the CLI."""

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from docuflow import __version__
from docuflow.domains.evaluation import EvaluationReport, EvaluationTrigger
from docuflow.domains.session import DocumentSession
from docuflow.domains.transcription import (
    DocumentPayload,
    RenderProfile,
    TranscriptionPipeline,
)

from .main import app, load_document

runner = CliRunner()

PROFILE = RenderProfile(name="fake", scale=1.0, jpeg_quality=60)


class FakeSource:
    async def page_count(self, document: DocumentPayload) -> int:
        return 2

    async def render_page(
        self, document: DocumentPayload, page_number: int, profile: RenderProfile
    ) -> bytes:
        return str(page_number).encode()


class FakeExtractor:
    async def extract(self, image: bytes) -> str:
        return f"Page {image.decode()} text"


class FakeGrader:
    async def grade(
        self, primary: DocumentPayload, key: DocumentPayload
    ) -> EvaluationReport:
        return EvaluationReport(
            items=[],
            total_score=7,
            max_possible_score=10,
            summary="Solid attempt.",
            improvement_areas=["Show working"],
        )


@pytest.fixture
def fake_session() -> DocumentSession:
    pipeline = TranscriptionPipeline(FakeSource(), FakeExtractor(), PROFILE, PROFILE)
    return DocumentSession(pipeline, EvaluationTrigger(FakeGrader()))


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_transcribe_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["transcribe", str(tmp_path / "missing.pdf")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_load_document_guesses_media_type(tmp_path: Path) -> None:
    scan = tmp_path / "scan.png"
    scan.write_bytes(b"\x89PNG")
    unknown = tmp_path / "script"
    unknown.write_bytes(b"%PDF")

    assert load_document(scan).media_type == "image/png"
    assert load_document(scan).name == "scan.png"
    assert load_document(unknown).media_type == "application/pdf"


def test_transcribe_writes_transcript(tmp_path: Path, fake_session: DocumentSession) -> None:
    script = tmp_path / "script.pdf"
    script.write_bytes(b"%PDF")
    output = tmp_path / "out.md"

    with patch("docuflow.domains.session.create_session", return_value=fake_session):
        result = runner.invoke(app, ["transcribe", str(script), "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert output.read_text(encoding="utf-8") == "Page 1 text\n\nPage 2 text"


def test_transcribe_with_key_writes_report(
    tmp_path: Path, fake_session: DocumentSession
) -> None:
    script = tmp_path / "script.pdf"
    script.write_bytes(b"%PDF")
    key = tmp_path / "key.pdf"
    key.write_bytes(b"%PDF key")
    report = tmp_path / "report.json"

    with patch("docuflow.domains.session.create_session", return_value=fake_session):
        result = runner.invoke(
            app,
            ["transcribe", str(script), "-o", str(tmp_path / "t.md"), "-k", str(key), "-r", str(report)],
        )

    assert result.exit_code == 0, result.output
    assert '"totalScore": 7' in report.read_text()
    assert "Solid attempt." in result.output
