from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from django_checkout.events.models import Event

CONFIG = """
[[events]]
id = "congresso-2026"
name = "Congresso 2026"
max_participants = 300

[[events.price_breakpoints]]
min_quantity = 1
price_in_cents = 50000

[[events.price_breakpoints]]
min_quantity = 10
price_in_cents = 45000

[[events]]
id = "oficina-2026"

[[events.price_breakpoints]]
min_quantity = 1
price_in_cents = 0
"""


def _write_config(path, contents=CONFIG):
    path.write_text(contents)
    return str(path)


def test_bootstrap_wraps_loader_errors_as_command_error(tmp_path):
    config_path = _write_config(tmp_path / "bad.toml", '[[events]]\nid = "bad_id"\nprice_breakpoints = []\n')

    with pytest.raises(CommandError, match=r"events\[0\]\.id"):
        call_command("bootstrap_events", config=config_path)


def test_bootstrap_missing_file(tmp_path):
    with pytest.raises(CommandError):
        call_command("bootstrap_events", config=str(tmp_path / "missing.toml"))


@pytest.mark.django_db
def test_bootstrap_creates_events_and_breakpoints(tmp_path):
    out = StringIO()

    call_command("bootstrap_events", config=_write_config(tmp_path / "events.toml"), stdout=out)

    congress = Event.objects.get(pk="congresso-2026")
    assert congress.name == "Congresso 2026"
    assert congress.max_participants == 300
    assert congress.status == Event.Status.OPEN
    assert [(bp.min_quantity, bp.price_in_cents) for bp in congress.price_breakpoints.all()] == [
        (1, 50000),
        (10, 45000),
    ]
    workshop = Event.objects.get(pk="oficina-2026")
    assert workshop.max_participants == 0
    assert "2 created, 0 updated" in out.getvalue()


@pytest.mark.django_db
def test_bootstrap_refuses_duplicates_without_update(tmp_path):
    config_path = _write_config(tmp_path / "events.toml")
    call_command("bootstrap_events", config=config_path, stdout=StringIO())

    with pytest.raises(CommandError, match="already exists"):
        call_command("bootstrap_events", config=config_path, stdout=StringIO())


@pytest.mark.django_db
def test_bootstrap_update_replaces_breakpoints(tmp_path):
    call_command("bootstrap_events", config=_write_config(tmp_path / "events.toml"), stdout=StringIO())
    updated = _write_config(
        tmp_path / "updated.toml",
        """
[[events]]
id = "congresso-2026"
name = "Congresso Nacional 2026"
status = "closed"

[[events.price_breakpoints]]
min_quantity = 1
price_in_cents = 55000
""",
    )
    out = StringIO()

    call_command("bootstrap_events", config=updated, update=True, stdout=out)

    congress = Event.objects.get(pk="congresso-2026")
    assert congress.name == "Congresso Nacional 2026"
    assert congress.status == Event.Status.CLOSED
    assert [(bp.min_quantity, bp.price_in_cents) for bp in congress.price_breakpoints.all()] == [(1, 55000)]
    assert "0 created, 1 updated" in out.getvalue()


@pytest.mark.django_db
def test_bootstrap_dry_run_saves_nothing(tmp_path):
    out = StringIO()

    call_command("bootstrap_events", config=_write_config(tmp_path / "events.toml"), dry_run=True, stdout=out)

    assert not Event.objects.exists()
    output = out.getvalue()
    assert "Dry run" in output
    assert "Event 'congresso-2026' (open): 1+ @ 50000, 10+ @ 45000" in output
