import importlib.util
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _load_script():
    path = ROOT / "scripts" / "generate_config_docs.py"
    spec = importlib.util.spec_from_file_location("generate_config_docs", path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def test_generated_config_docs_cover_all_sections():
    doc = _load_script().generate()
    for cls in (
        "AdapterConfig",
        "DefinitionsConfig",
        "LoggingConfig",
        "MetricsConfig",
    ):
        assert f"## {cls}" in doc
    assert "| entry | str | stack |" in doc
    assert "| export | str | module |" in doc
