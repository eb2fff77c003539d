"""Tests for the totp-engine command line."""
from __future__ import annotations

import pytest

from totp_core import totp_cli

RFC_SECRET_HEX = "3132333435363738393031323334353637383930"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.mark.parametrize(
    "secret_args",
    [
        ["--secret", RFC_SECRET_HEX, "--hex"],
        ["--secret", RFC_SECRET_B32, "--base32"],
        ["--secret", RFC_SECRET_B32.lower(), "--base32"],
    ],
)
def test_hotp_prints_rfc4226_code(capsys, secret_args):
    status = totp_cli.main(["hotp", *secret_args, "--counter", "0"])

    assert status == totp_cli.EXIT_OK
    assert capsys.readouterr().out.strip() == "HOTP(counter=0): 755224"


def test_generate_at_fixed_instant(capsys):
    status = totp_cli.main(
        ["generate", "--secret", RFC_SECRET_HEX, "--hex", "--step", "30", "--at", "1970-01-01T00:00:59Z"]
    )

    assert status == totp_cli.EXIT_OK
    assert capsys.readouterr().out.strip() == "TOTP: 287082  (valid ~1s)"


def test_validate_accepts_code_with_leading_zero(capsys):
    status = totp_cli.main(
        [
            "validate", "--secret", RFC_SECRET_HEX, "--hex",
            "--step", "30", "--at", "2005-03-18T01:58:29Z", "--code", "081804",
        ]
    )

    assert status == totp_cli.EXIT_OK
    assert "VALID" in capsys.readouterr().out


def test_validate_reports_invalid_code(capsys):
    status = totp_cli.main(
        [
            "validate", "--secret", RFC_SECRET_HEX, "--hex",
            "--step", "30", "--window", "0", "--at", "1970-01-01T00:00:59Z", "--code", "755224",
        ]
    )

    assert status == totp_cli.EXIT_INVALID_CODE
    assert "INVALID" in capsys.readouterr().out


def test_text_secret_round_trips_through_generate_and_validate(capsys):
    at = ["--at", "2024-01-01T00:01:30+00:00"]
    totp_cli.main(["generate", "--secret", "s3cret", "--modifier", "login", *at])
    code = capsys.readouterr().out.split()[1]

    status = totp_cli.main(["validate", "--secret", "s3cret", "--modifier", "login", "--code", code, *at])

    assert status == totp_cli.EXIT_OK


@pytest.mark.parametrize(
    "argv, message",
    [
        (["generate", "--secret", "zz", "--hex"], "Invalid hex secret"),
        (["generate", "--secret", "not base32!", "--base32"], "Invalid Base32 secret"),
        (["generate", "--secret", "abc", "--step", "0"], "time_step must be positive"),
        (["generate", "--secret", "abc", "--step", "inf"], "time_step out of range"),
        (["generate", "--secret", "abc", "--step", "1e20"], "time_step out of range"),
    ],
)
def test_bad_input_exits_with_usage_status(capsys, argv, message):
    status = totp_cli.main(argv)

    assert status == totp_cli.EXIT_USAGE
    assert message in capsys.readouterr().err


def test_no_subcommand_prints_help(capsys):
    assert totp_cli.main([]) == totp_cli.EXIT_USAGE
    assert "usage:" in capsys.readouterr().out


def test_bad_instant_is_an_argparse_error():
    with pytest.raises(SystemExit) as excinfo:
        totp_cli.main(["generate", "--secret", "abc", "--at", "yesterday"])

    assert excinfo.value.code == 2


def test_watch_stops_on_keyboard_interrupt(capsys, monkeypatch):
    def interrupt(_seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(totp_cli.time, "sleep", interrupt)

    status = totp_cli.main(
        ["watch", "--secret", RFC_SECRET_HEX, "--hex", "--step", "30", "--at", "1970-01-01T00:00:59Z"]
    )

    out = capsys.readouterr().out
    assert status == totp_cli.EXIT_OK
    assert "TOTP: 287082" in out
    assert "Bye." in out
