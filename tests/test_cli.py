"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
import yaml

from ledger_scan.runner.main import create_cli, load_directory, load_ledger, load_rules, main


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Path to a config file that does not exist (defaults apply)."""
    return tmp_path / "config.yaml"


@pytest.fixture
def ledger_file(tmp_path: Path) -> Path:
    path = tmp_path / "ledger.json"
    path.write_text(
        json.dumps(
            {
                "transactions": [
                    {
                        "id": "tx_2",
                        "timestamp": 1706779800000,
                        "amount": -5.40,
                        "descriptionRaw": "STARBUCKS STORE 1234",
                        "categoryId": "cat_1",
                        "status": "PENDING",
                    }
                ]
            }
        )
    )
    return path


class TestCLICommandRegistry:
    """Tests for CLI command registration."""

    def test_all_commands_registered(self):
        parser = create_cli()

        assert parser.parse_args(["scan", "a.pdf"]).command == "scan"
        assert parser.parse_args(["categorize", "UBER"]).command == "categorize"
        assert parser.parse_args(["init-config"]).command == "init-config"

    def test_scan_options(self):
        args = create_cli().parse_args(
            ["scan", "a.pdf", "--ledger", "l.json", "--rules", "r.yaml", "--password", "pw", "--json"]
        )

        assert args.file == Path("a.pdf")
        assert args.ledger == Path("l.json")
        assert args.rules == Path("r.yaml")
        assert args.password == "pw"
        assert args.json is True
        assert args.categories is None

    def test_default_config_path(self):
        assert create_cli().parse_args(["init-config"]).config == Path("config.yaml")

    def test_no_command(self):
        assert main([]) == 1


class TestDataFiles:
    """Tests for ledger, rule and category file loading."""

    def test_load_ledger(self, ledger_file):
        ledger = load_ledger(ledger_file)

        assert len(ledger) == 1
        assert ledger[0].id == "tx_2"
        assert ledger[0].description == "STARBUCKS STORE 1234"
        assert ledger[0].category_id == "cat_1"
        assert ledger[0].date.year == 2024

    def test_load_ledger_list(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps([{"id": "t", "date": "2024-02-01", "amount": "-1.00"}]))
        assert load_ledger(path)[0].id == "t"

    def test_no_ledger(self):
        assert load_ledger(None) == []

    def test_load_rules(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump({"rules": [{"pattern": "DELI", "category": "Dining"}]}))

        rules = load_rules(path)

        assert rules[0].pattern == "DELI"
        assert rules[0].category == "Dining"

    def test_no_rules_keeps_defaults(self):
        assert load_rules(None) is None

    def test_load_directory(self, tmp_path):
        path = tmp_path / "categories.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "categories": [{"id": "c_1", "name": "Eating Out"}],
                    "synonyms": {"restaurant": "Eating Out"},
                }
            )
        )

        directory = load_directory(path)

        assert directory.resolve("eating out") == "c_1"
        assert directory.resolve("Restaurant") == "c_1"


class TestCommands:
    """End-to-end command tests."""

    def test_init_config(self, config_path):
        assert main(["-c", str(config_path), "init-config"]) == 0
        assert config_path.exists()
        assert main(["-c", str(config_path), "init-config"]) == 1

    def test_invalid_config(self, config_path):
        config_path.write_text(yaml.safe_dump({"matching": {"weights": {"amount": 0.9}}}))
        assert main(["-c", str(config_path), "categorize", "UBER"]) == 1

    def test_categorize(self, config_path, capsys):
        assert main(["-c", str(config_path), "categorize", "UBER TRIP 8291"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["category_id"] == "cat_2"
        assert output["method"] == "RULE"

    def test_categorize_from_history(self, config_path, ledger_file, tmp_path, capsys):
        rules = tmp_path / "rules.yaml"
        rules.write_text("[]\n")

        code = main(
            [
                "-c",
                str(config_path),
                "categorize",
                "STARBUCKS STORE 2301",
                "--rules",
                str(rules),
                "--ledger",
                str(ledger_file),
            ]
        )

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["method"] == "HISTORY"
        assert output["confidence"] == 0.85

    def test_categorize_no_match(self, config_path):
        assert main(["-c", str(config_path), "categorize", "ZXQ IMPORTS"]) == 1

    def test_scan_missing_file(self, config_path, tmp_path):
        assert main(["-c", str(config_path), "scan", str(tmp_path / "nope.pdf")]) == 1

    def test_categorize_missing_rules_file(self, config_path, tmp_path, capsys):
        code = main(
            ["-c", str(config_path), "categorize", "UBER", "--rules", str(tmp_path / "nope.yaml")]
        )

        assert code == 1
        assert "Failed to load input data" in capsys.readouterr().out

    def test_categorize_malformed_ledger(self, config_path, tmp_path):
        ledger = tmp_path / "ledger.json"
        ledger.write_text("{not json")

        assert main(["-c", str(config_path), "categorize", "UBER", "--ledger", str(ledger)]) == 1

    def test_categorize_malformed_rules_yaml(self, config_path, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("rules: [unclosed\n")

        assert main(["-c", str(config_path), "categorize", "UBER", "--rules", str(rules)]) == 1

    @pytest.mark.parametrize(
        "entry",
        [
            {"id": "tx_1", "date": "not a date", "amount": -5.40},
            {"id": "tx_1", "date": "2024-02-01T08:30:00", "amount": "five"},
        ],
    )
    def test_scan_invalid_ledger_entry(self, config_path, tmp_path, capsys, entry):
        image = tmp_path / "receipt.jpg"
        image.write_bytes(b"\xff\xd8\xff")
        ledger = tmp_path / "ledger.json"
        ledger.write_text(json.dumps([entry]))

        code = main(["-c", str(config_path), "scan", str(image), "--ledger", str(ledger)])

        assert code == 1
        assert "Failed to load input data" in capsys.readouterr().out

    def test_scan_missing_ledger_file(self, config_path, tmp_path):
        image = tmp_path / "receipt.jpg"
        image.write_bytes(b"\xff\xd8\xff")

        code = main(
            ["-c", str(config_path), "scan", str(image), "--ledger", str(tmp_path / "nope.json")]
        )

        assert code == 1

    def test_scan_image_placeholder(self, config_path, tmp_path, capsys):
        image = tmp_path / "receipt.jpg"
        image.write_bytes(b"\xff\xd8\xff")

        code = main(["-c", str(config_path), "scan", str(image), "--json", "--account", "acc_1"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["review_state"] == "MANUAL"
        assert output["candidates"][0]["merchant_name"] == "receipt"
        assert output["decisions"][0]["action"] == "CREATE"
        assert output["decisions"][0]["new_transaction"]["account_id"] == "acc_1"

    def test_scan_pdf(self, config_path, ledger_file, tmp_path, capsys):
        canvas = pytest.importorskip("reportlab.pdfgen.canvas")
        path = tmp_path / "coffee.pdf"
        pdf = canvas.Canvas(str(path))
        pdf.drawString(50, 750, "STARBUCKS")
        pdf.drawString(50, 730, "01/02/2024 09:00")
        pdf.drawString(50, 710, "TOTAL 5.40")
        pdf.save()

        code = main(["-c", str(config_path), "scan", str(path), "--ledger", str(ledger_file), "--json"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["candidates"][0]["amount"] == "-5.40"
        assert output["match"]["transaction_id"] == "tx_2"
        assert output["decisions"][0]["action"] == "LINK"

    def test_scan_encrypted_pdf(self, config_path, tmp_path):
        canvas = pytest.importorskip("reportlab.pdfgen.canvas")
        path = tmp_path / "locked.pdf"
        pdf = canvas.Canvas(str(path), encrypt="secret")
        pdf.drawString(50, 750, "STARBUCKS TOTAL 5.40")
        pdf.save()

        assert main(["-c", str(config_path), "scan", str(path)]) == 2
        assert main(["-c", str(config_path), "scan", str(path), "--password", "wrong"]) == 2
        assert main(["-c", str(config_path), "scan", str(path), "--password", "secret"]) == 0
