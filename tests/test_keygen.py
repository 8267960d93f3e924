from keygen import main
from license_codec import decode

SECRET = "cli-secret"


def _generated_code(capsys, *args):
    assert main(["--secret", SECRET, "generate", *args]) == 0
    out = capsys.readouterr().out.splitlines()
    return out[0], out[1]


def test_generate_prints_code_and_payload(capsys):
    code, payload_line = _generated_code(capsys, "--email", "test@example.com", "--issued-at", "1760000000")
    assert code.startswith("FENCE-")
    assert payload_line == 'Payload: {"e":"test@example.com","t":"std","c":1760000000}'
    assert decode(code, SECRET).issued_at == 1760000000


def test_verify_round_trip(capsys):
    code, _ = _generated_code(capsys, "--email", "a.b@example.edu", "--type", "stu")
    assert main(["--secret", SECRET, "verify", code]) == 0
    assert "email=a.b@example.edu type=stu" in capsys.readouterr().out


def test_verify_reports_error_kind(capsys):
    code, _ = _generated_code(capsys, "--email", "test@example.com")
    assert main(["--secret", "wrong", "verify", code]) == 1
    assert "invalid_signature" in capsys.readouterr().err
