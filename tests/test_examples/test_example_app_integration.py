"""Integration tests that exercise the example Django app entrypoint."""

import os
import subprocess
import sys
from pathlib import Path

EXAMPLES_DIR = Path(__file__).resolve().parents[2] / "examples"
REPO_ROOT = EXAMPLES_DIR.parent


def _run_example_manage(*args: str) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["DJANGO_SETTINGS_MODULE"] = "settings"
    env["PYTHONPATH"] = os.pathsep.join([str(REPO_ROOT / "src"), str(REPO_ROOT)])
    return subprocess.run(
        [sys.executable, "manage.py", *args],
        cwd=EXAMPLES_DIR,
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )


def test_example_app_django_check_passes() -> None:
    result = _run_example_manage("check")
    assert result.returncode == 0, result.stderr


def test_example_events_config_validates() -> None:
    result = _run_example_manage("bootstrap_events", "--config", str(REPO_ROOT / "events.example.toml"), "--dry-run")

    assert result.returncode == 0, result.stderr
    assert "Event 'congresso-2026' (open): 1+ @ 89000, 5+ @ 79000, 20+ @ 69000" in result.stdout


def test_example_api_routes_resolve() -> None:
    result = _run_example_manage(
        "shell",
        "-c",
        "from django.urls import reverse; print(reverse('checkout:voucher-validate', args=['ABCD1234']))",
    )
    assert result.returncode == 0, result.stderr
    assert "/api/voucher/ABCD1234/validate/" in result.stdout
