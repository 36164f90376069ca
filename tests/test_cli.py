# Storefront Tests - Operator CLI

import json

import pytest

from cli.main import main
from core.auth.passwords import hash_password


def test_hash_password(capsys):
    main(["hash-password", "s3cret"])

    assert capsys.readouterr().out.strip() == hash_password("s3cret")


def test_init_db_writes_seeded_document(tmp_path, capsys):
    data_file = tmp_path / "db.json"

    main(["--data-file", str(data_file), "init-db"])

    document = json.loads(data_file.read_text(encoding="utf-8"))
    assert len(document["users"]) == 1
    assert "users=1" in capsys.readouterr().out


@pytest.mark.uploads
def test_check_and_cleanup_images(tmp_path, capsys):
    data_file = tmp_path / "db.json"
    uploads_dir = tmp_path / "uploads"
    uploads_dir.mkdir()
    (uploads_dir / "orphan.png").write_bytes(b"x")
    common = ["--data-file", str(data_file), "--uploads-dir", str(uploads_dir)]

    main(common + ["check-images"])
    assert "orphan: orphan.png" in capsys.readouterr().out
    assert (uploads_dir / "orphan.png").exists()

    main(common + ["cleanup-images"])
    report = json.loads(capsys.readouterr().out)
    assert report["deletedFiles"] == ["orphan.png"]
    assert not (uploads_dir / "orphan.png").exists()


@pytest.mark.uploads
def test_cleanup_refuses_unreadable_document(tmp_path, capsys):
    data_file = tmp_path / "db.json"
    data_file.write_text("{ truncated", encoding="utf-8")
    uploads_dir = tmp_path / "uploads"
    uploads_dir.mkdir()
    (uploads_dir / "cap.png").write_bytes(b"x")

    with pytest.raises(SystemExit) as exc_info:
        main(["--data-file", str(data_file), "--uploads-dir", str(uploads_dir), "cleanup-images"])

    assert exc_info.value.code == 1
    assert "unreadable" in capsys.readouterr().err
    assert (uploads_dir / "cap.png").exists()
