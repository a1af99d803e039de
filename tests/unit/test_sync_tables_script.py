"""
Tests unitarios para el script CLI scripts/sync_tables.py.

El script no es un paquete importable; se carga desde su ruta.
"""
from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

from tablesync.shared.exceptions.sync import SyncConfigError

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "sync_tables.py"


@pytest.fixture(scope="module")
def cli():
    """Carga el módulo del script una vez por módulo de tests."""
    spec = importlib.util.spec_from_file_location("sync_tables", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestArgumentParsing:
    """Tests para el parseo de argumentos del script."""

    def test_parse_mapping_pairs(self, cli) -> None:
        """Verifica que los pares SRC=DST se convierten en dict (con strip)."""
        assert cli._parse_mapping(["key=ext_key", " Name = FullName "]) == {"key": "ext_key", "Name": "FullName"}

    def test_no_pairs_means_inference(self, cli) -> None:
        """Verifica que sin --map el mapeo queda en None."""
        assert cli._parse_mapping(None) is None

    def test_invalid_pair_is_config_error(self, cli) -> None:
        """Verifica que un par sin '=' es un error de configuración."""
        with pytest.raises(SyncConfigError):
            cli._parse_mapping(["no-separator"])

    def test_json_filter_is_parsed_and_text_kept(self, cli) -> None:
        """Verifica que un filtro JSON se parsea y cualquier otro texto se conserva."""
        assert cli._parse_filter('{"operator": "and"}') == {"operator": "and"}
        assert cli._parse_filter("{Status} = 'x'") == "{Status} = 'x'"


class TestMain:
    """Tests para los códigos de salida de main()."""

    def test_missing_token_exits_with_error(self, cli, monkeypatch, tmp_path) -> None:
        """Verifica que sin TEABLE_API_TOKEN el script retorna 1."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TEABLE_API_TOKEN", "")

        assert cli.main(["tblS", "tblT", "--key-field", "key"]) == 1

    def test_bidirectional_without_since_exits_with_error(self, cli, monkeypatch, tmp_path) -> None:
        """Verifica que --bidirectional sin --since retorna 1."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TEABLE_API_TOKEN", "tok")

        assert cli.main(["tblS", "tblT", "--key-field", "key", "--bidirectional"]) == 1
