from app import main
from utils.export import read_run_csv, read_run_json


def test_cli_writes_results(tmp_path):
    out = tmp_path / "results"
    code = main(["--trials", "20", "--workers", "1", "--seed", "1", "--volatility", "low", "--output-dir", str(out)])

    assert code == 0
    for name in ("standard.csv", "taxable_first.csv", "standard.json", "monte_carlo_stats.csv", "monte_carlo_median_run.csv"):
        assert (out / name).exists(), name

    assert read_run_csv(out / "standard.csv").strategy == "standard"
    assert read_run_json(out / "taxable_first.json").strategy == "taxable_first"


def test_cli_reports_configuration_errors(caplog):
    assert main(["--trials", "0", "--spend", "-5000"]) == 2
    assert "annual spend goal" in caplog.text
