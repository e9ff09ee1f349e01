"""
Tests for the command line orchestrator.
"""

import sys
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from defect_analyzer import main as orchestrator
from defect_analyzer.settings import Config

REPORT = """
<html><body>
  <div class="test fail"><span class="test-name">Checkout total</span>
    <pre>AssertionError: expected 10 but was 12</pre></div>
  <div class="test pass"><span class="test-name">Search products</span></div>
</body></html>
"""


def test_parse_only_logs_extracted_records(tmp_path, monkeypatch, caplog):
    monkeypatch.setattr(Config, "LOG_FILE_NAME", str(tmp_path / "analyzer.log"))
    report = tmp_path / "run.html"
    report.write_text(REPORT, encoding='utf-8')

    with caplog.at_level(logging.INFO, logger="Orchestrator"):
        status = orchestrator.main([str(report), "--parse-only"])

    assert status == 0
    messages = [r.getMessage() for r in caplog.records if r.name == "Orchestrator"]
    assert any("Checkout total" in m and "(fail)" in m for m in messages)
    assert any("Search products" in m and "(pass)" in m for m in messages)
    assert any("AssertionError: expected 10 but was 12" in m for m in messages)


def test_missing_report_file_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "LOG_FILE_NAME", str(tmp_path / "analyzer.log"))
    assert orchestrator.main([str(tmp_path / "missing.html"), "--parse-only"]) == 1
