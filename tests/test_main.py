"""Tests for the command line front end."""

import json

import pytest

from orderprint.config.settings import get_settings
from orderprint.main import build_parser, load_order, main


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ORDERPRINT_ENGINE__PREFERENCE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def order_file(tmp_path):
    path = tmp_path / "order.json"
    path.write_text(json.dumps({
        "data": {
            "order_id": "555",
            "dishes_array": [{"dishes_name": "Mapo Tofu", "amount": 1, "price": "18.99"}],
            "sub_total": "18.99",
            "total": "18.99",
        }
    }), encoding="utf-8")
    return path


class TestLoadOrder:
    def test_envelope(self, order_file):
        """API envelopes are unwrapped."""
        assert load_order(str(order_file)).order_id == "555"

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            load_order(str(path))


class TestCommands:
    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_preview(self, order_file, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--mock", "preview", str(order_file), "--width", "58"])
        assert info.value.code == 0
        out = capsys.readouterr().out
        assert "#555" in out
        assert "+" + "-" * 24 + "+" in out

    def test_layout(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["layout", "--width", "80"])
        assert info.value.code == 0
        params = json.loads(capsys.readouterr().out)
        assert params["total_columns"] == 34

    def test_print_with_mock(self, order_file, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--mock", "print", str(order_file)])
        assert info.value.code == 0
        assert "1/1 printers succeeded" in capsys.readouterr().out

    def test_print_to_named_printers(self, order_file, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--mock", "print", str(order_file),
                  "--printer", "POS-80 Receipt", "--printer", "POS-58 Receipt"])
        assert info.value.code == 0
        assert "2/2 printers succeeded" in capsys.readouterr().out

    def test_printers(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--mock", "printers"])
        assert info.value.code == 0
        out = capsys.readouterr().out
        assert "Engine: mock" in out
        assert "POS-58 Receipt" in out

    def test_test_print(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--mock", "test-print", "POS-80 Receipt"])
        assert info.value.code == 0
        assert "via mock" in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as info:
            main(["--mock", "preview", str(tmp_path / "missing.json")])
        assert info.value.code == 1
