import json
from pathlib import Path

import pytest

import main

from conftest import FAQ_RECORDS


@pytest.fixture
def faq_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "faq.json"
    path.write_text(json.dumps(FAQ_RECORDS), encoding="utf-8")
    monkeypatch.setenv("FAQ_PATH", str(path))
    monkeypatch.setenv("GOOGLE_API_KEY", "")
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    return path


def test_ask_prints_answer(faq_file: Path, capsys: pytest.CaptureFixture) -> None:
    main.main(["ask", "How do I apply for residence?"])

    assert capsys.readouterr().out.strip().endswith("Use the Campus Housing portal.")


def test_ask_json_reports_decision(faq_file: Path, capsys: pytest.CaptureFixture) -> None:
    main.main(["ask", "what clubs exist", "--json"])

    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{"):])
    assert payload["source"] == "intelligent_response"
    assert payload["route"] == "static_fallback"
    assert payload["confidence"] == 0.0
