import pytest

from db import init_db
from db.models import Contract, Shipment
from main import EXIT_FAILED, EXIT_INTERRUPTED, EXIT_OK, main
from services.shipment_service import ShipmentService


def test_dry_run_exits_zero(two_files, capsys):
    contracts, shipments = two_files
    code = main(["--contracts-file", str(contracts), "--shipments-file", str(shipments),
                 "--dry-run", "--db-url", "sqlite://"])
    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "DRY RUN PREVIEW" in out
    assert "DRY RUN COMPLETE" in out


def test_live_import_prints_statistics(two_files, capsys, count_rows):
    contracts, shipments = two_files
    code = main(["--contracts-file", str(contracts), "--shipments-file", str(shipments),
                 "--db-url", "sqlite://"])
    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "IMPORT COMPLETE" in out
    assert "Shipments created: 2" in out
    assert count_rows(Contract) == 2
    assert count_rows(Shipment) == 2


def test_missing_file_reports_on_stderr(tmp_path, capsys):
    code = main(["--file", str(tmp_path / "missing.csv"), "--db-url", "sqlite://"])
    assert code == EXIT_FAILED
    err = capsys.readouterr().err
    assert "ERROR: cannot read" in err
    assert "Traceback" not in err


def test_file_without_header_reports_on_stderr(tmp_path, capsys):
    path = tmp_path / "junk.csv"
    path.write_text("hello;world\n", encoding="utf-8")
    assert main(["--file", str(path), "--db-url", "sqlite://"]) == EXIT_FAILED
    assert "header row not found" in capsys.readouterr().err


def test_failed_import_exits_nonzero(two_files, capsys, monkeypatch, count_rows):
    def broken(*args, **kwargs):
        raise RuntimeError("constraint blew up")

    monkeypatch.setattr(ShipmentService, "insert", staticmethod(broken))
    contracts, shipments = two_files
    code = main(["--contracts-file", str(contracts), "--shipments-file", str(shipments),
                 "--db-url", "sqlite://"])
    assert code == EXIT_FAILED
    captured = capsys.readouterr()
    assert "BL-1" in captured.err
    assert "✗ BL-1: constraint blew up" in captured.out
    assert count_rows(Contract) == 0


def test_interrupt_exits_130(two_files, monkeypatch, capsys):
    def interrupted(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(ShipmentService, "insert", staticmethod(interrupted))
    contracts, shipments = two_files
    code = main(["--contracts-file", str(contracts), "--shipments-file", str(shipments),
                 "--db-url", "sqlite://"])
    assert code == EXIT_INTERRUPTED
    assert "rolled back" in capsys.readouterr().err


@pytest.mark.parametrize("argv", [
    [],
    ["--contracts-file", "c.csv"],
    ["--file", "a.csv", "--shipments-file", "s.csv"],
    ["--file", "a.csv", "--preview-limit", "0"],
])
def test_bad_arguments_exit_with_usage(argv):
    with pytest.raises(SystemExit) as info:
        main(argv)
    assert info.value.code == 2


def test_dry_run_does_not_create_a_missing_database(two_files, tmp_path, capsys):
    db_path = tmp_path / "prod.sqlite"
    contracts, shipments = two_files
    code = main(["--contracts-file", str(contracts), "--shipments-file", str(shipments),
                 "--dry-run", "--db-url", f"sqlite:///{db_path}"])
    assert code == EXIT_OK
    assert not db_path.exists()
    assert "DRY RUN COMPLETE" in capsys.readouterr().out


def test_dry_run_leaves_existing_database_untouched(two_files, tmp_path, count_rows):
    url = f"sqlite:///{tmp_path / 'main.sqlite'}"
    contracts, shipments = two_files
    files = ["--contracts-file", str(contracts), "--shipments-file", str(shipments)]
    assert main(files + ["--db-url", url]) == EXIT_OK

    assert main(files + ["--dry-run", "--db-url", url]) == EXIT_OK

    init_db(url)
    assert count_rows(Contract) == 2
    assert count_rows(Shipment) == 2
