"""
OpenAPI contract stays in sync with the routes the app actually serves.
"""
from pathlib import Path

import yaml

from authbroker.web import main


REPO_ROOT = Path(__file__).resolve().parents[2]


def _load_contract() -> dict:
    return yaml.safe_load((REPO_ROOT / "api" / "openapi.yml").read_text(encoding="utf-8"))


def test_contract_paths_match_app_routes():
    contract = _load_contract()
    documented = {
        (path, method.upper())
        for path, ops in contract["paths"].items()
        for method in ops
        if method in {"get", "post", "put", "patch", "delete"}
    }
    served = {
        (path, method.upper())
        for path, ops in main.app.openapi()["paths"].items()
        for method in ops
        if method in {"get", "post", "put", "patch", "delete"}
    }
    assert ("/callback/validate", "POST") in served
    assert documented == served


def test_exchange_responses_documented():
    contract = _load_contract()
    validate = contract["paths"]["/callback/validate"]["post"]["responses"]
    direct = contract["paths"]["/auth"]["post"]["responses"]
    assert {"200", "400", "401"} <= {str(k) for k in validate}
    assert {"200", "400", "401"} <= {str(k) for k in direct}
    branding = contract["components"]["schemas"]["SiteBranding"]["properties"]
    assert "github_repo" not in branding
