import json

from algolens.proxy.logging_utils import JsonlLogger


def test_jsonl_logger_rotates(tmp_path, monkeypatch):
    log_file = tmp_path / "logs" / "requests.jsonl"
    logger = JsonlLogger(str(log_file), max_bytes=5)

    # Deterministic timestamp for rotation target
    monkeypatch.setattr(
        "algolens.proxy.logging_utils.time.strftime",
        lambda *_: "19700101-000000",
    )

    logger.log({"status": 200})
    assert log_file.exists()

    logger.log({"status": 429, "outcome": "upstream_failure"})

    rotated = log_file.with_name(log_file.name + ".19700101-000000")
    assert rotated.exists(), "Rotated file missing"
    with open(log_file, encoding="utf-8") as fh:
        content = fh.read().strip()
    assert json.loads(content)["status"] == 429


def test_jsonl_logger_handles_missing_directory(tmp_path):
    log_file = tmp_path / "missing" / "requests.jsonl"
    logger = JsonlLogger(str(log_file), max_bytes=100)
    logger.log({"outcome": "ok"})
    assert log_file.exists()
