import json

import pytest

from helpers import e2e_bundle
from powerplatform_review import extract, list_rules, review
from powerplatform_review.app.config import load_config
from powerplatform_review.core.domain.exceptions import ArchiveError, ReviewCancelled
from powerplatform_review.core.ports import CancellationToken


@pytest.fixture
def bundle(tmp_path):
    path = tmp_path / "orders.zip"
    path.write_bytes(e2e_bundle())
    return path


def test_review_end_to_end(bundle):
    result = review(bundle, threshold=70)

    assert result.overall_score == 98.5
    assert result.passed
    assert result.score_for("canvas_app/contoso_orders").score == 100.0
    assert result.score_for("flow/OrderSync-1A2B3C4D").score == 97.0
    assert [f.rule_id for f in result.findings] == ["PP-FLOW-HARDCODED-URL"]


def test_review_writes_reports(bundle, tmp_path):
    out = tmp_path / "reports"
    result = review(bundle, output_dir=out, formats=["json"])
    doc = json.loads((out / "results.json").read_text(encoding="utf-8"))
    assert doc["overallScore"] == result.overall_score
    assert not (out / "results.sarif").exists()


def test_review_with_explicit_config(bundle, tmp_path):
    path = tmp_path / "rules.toml"
    path.write_text('[rules]\ndisabled = ["PP-FLOW-HARDCODED-URL"]\n', encoding="utf-8")
    result = review(bundle, config=load_config(path))
    assert result.overall_score == 100.0
    assert result.findings == ()


def test_review_cancelled_by_token(bundle):
    token = CancellationToken()
    token.cancel("caller gave up")
    with pytest.raises(ReviewCancelled):
        review(bundle, token=token)


def test_review_missing_bundle(tmp_path):
    with pytest.raises(ArchiveError):
        review(tmp_path / "missing.zip")


def test_extract(bundle, tmp_path):
    components = extract(bundle, tmp_path / "x")
    assert [c.id for c in components] == ["canvas_app/contoso_orders", "flow/OrderSync-1A2B3C4D"]
    assert (tmp_path / "x" / "components.json").exists()


def test_list_rules():
    infos = list_rules()
    assert infos
    assert all(i.active for i in infos)
