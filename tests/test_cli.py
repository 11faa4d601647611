"""End-to-end tests for the referral-flow CLI against file storage."""
from __future__ import annotations

import pytest

import cli
from referral_flow.config import load_settings
from referral_flow.contacts import ContactCodec, generate_key
from referral_flow.storage import FileStorage


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    for name in ("RF_STORAGE_KEY", "RF_ENCRYPTION_KEY", "RF_PERSIST_EMPTY", "RF_FORCE_MEMORY", "RF_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RF_STORAGE_DIR", str(tmp_path))
    monkeypatch.setattr(cli, "load_settings", lambda: load_settings(use_dotenv=False))
    return tmp_path


def _stored(store_dir, key=None):
    blob = FileStorage(store_dir).get("referralflow-contacts")
    return ContactCodec(key).decode(blob)


def _add(name, company, *extra):
    return cli.main(["add", "--name", name, "--company", company, *extra])


class TestAdd:
    def test_add_persists_contact(self, store_dir, capsys):
        assert _add("Asha", "Acme", "--tag", "hiring manager", "--stage", "Accepted") == 0

        assert "Contact added successfully." in capsys.readouterr().out
        (contact,) = _stored(store_dir)
        assert contact.name == "Asha"
        assert contact.stage.value == "Accepted"
        assert contact.tags == ("Hiring Manager",)

    def test_add_rejects_blank_name(self, store_dir, capsys):
        assert _add("  ", "Acme") == 1

        assert "name and company" in capsys.readouterr().err
        assert FileStorage(store_dir).get("referralflow-contacts") is None

    def test_unknown_tag_is_usage_error(self, store_dir):
        with pytest.raises(SystemExit) as excinfo:
            _add("Asha", "Acme", "--tag", "Recruiter")
        assert excinfo.value.code == 2


class TestList:
    def test_empty_store_message(self, store_dir, capsys):
        assert cli.main(["list"]) == 0

        assert "No contacts added yet." in capsys.readouterr().out

    def test_no_matches_message(self, store_dir, capsys):
        _add("Asha", "Acme")
        capsys.readouterr()

        assert cli.main(["list", "--company", "globex"]) == 0

        assert "No contacts match the current filters." in capsys.readouterr().out

    def test_filtered_rows_show_full_list_positions(self, store_dir, capsys):
        _add("Asha", "Acme")
        _add("Ben", "Globex")
        _add("Chen", "Acme Labs", "--tag", "Tech Lead")
        capsys.readouterr()

        assert cli.main(["list", "--company", "ACM", "--tag", "tech lead"]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("# | Name")
        assert out[1].startswith("3 | Chen | Acme Labs")
        assert len(out) == 2


class TestEditRemove:
    def test_edit_updates_fields_and_toggles_tags(self, store_dir, capsys):
        _add("Asha", "Acme", "--tag", "SJSU Alum")

        assert cli.main([
            "edit", "1", "--status", "Will Refer", "--toggle-tag", "SJSU Alum", "--toggle-tag", "Tech Lead",
        ]) == 0

        assert "Contact updated successfully." in capsys.readouterr().out
        (contact,) = _stored(store_dir)
        assert contact.referral_status.value == "Will Refer"
        assert contact.tags == ("Tech Lead",)
        assert contact.name == "Asha"

    def test_edit_missing_position(self, store_dir, capsys):
        assert cli.main(["edit", "4", "--name", "X"]) == 1

        assert "No contact at position 4." in capsys.readouterr().err

    def test_edit_to_blank_company_rejected(self, store_dir, capsys):
        _add("Asha", "Acme")

        assert cli.main(["edit", "1", "--company", ""]) == 1

        assert _stored(store_dir)[0].company == "Acme"

    def test_remove(self, store_dir, capsys):
        _add("Asha", "Acme")
        _add("Ben", "Globex")

        assert cli.main(["remove", "1"]) == 0

        assert "Removed Asha (Acme)." in capsys.readouterr().out
        assert [c.name for c in _stored(store_dir)] == ["Ben"]

    def test_position_zero_is_usage_error(self, store_dir):
        with pytest.raises(SystemExit):
            cli.main(["remove", "0"])


class TestShowAndOptions:
    def test_show_prints_message(self, store_dir, capsys):
        _add("Asha", "Acme", "--message", "Hello [Name]\nThanks")
        capsys.readouterr()

        assert cli.main(["show", "1"]) == 0

        out = capsys.readouterr().out
        assert "Company: Acme" in out
        assert "Hello [Name]\nThanks" in out

    def test_options(self, capsys):
        assert cli.main(["options"]) == 0

        out = capsys.readouterr().out
        assert "Connection Sent, Accepted, Referral Asked" in out
        assert "Won't Refer" in out

    def test_generate_key(self, capsys):
        assert cli.main(["generate-key"]) == 0

        key = capsys.readouterr().out.strip()
        ContactCodec(key)


class TestEncryptionAndConfig:
    def test_encrypted_storage(self, store_dir, monkeypatch):
        key = generate_key()
        monkeypatch.setenv("RF_ENCRYPTION_KEY", key)

        _add("Asha", "Acme")

        blob = FileStorage(store_dir).get("referralflow-contacts")
        assert "Asha" not in blob
        assert _stored(store_dir, key)[0].name == "Asha"

    def test_bad_key_is_config_error(self, store_dir, monkeypatch, capsys):
        monkeypatch.setenv("RF_ENCRYPTION_KEY", "nope")

        assert cli.main(["list"]) == 1

        assert "Configuration error" in capsys.readouterr().err

    def test_corrupt_storage_starts_empty(self, store_dir, capsys):
        FileStorage(store_dir).set("referralflow-contacts", "garbage")

        assert cli.main(["list"]) == 0

        assert "No contacts added yet." in capsys.readouterr().out

    def test_unwritable_storage_is_reported(self, store_dir, monkeypatch, capsys):
        blocker = store_dir / "not-a-directory"
        blocker.write_text("x", encoding="utf-8")
        monkeypatch.setenv("RF_STORAGE_DIR", str(blocker))

        assert _add("Asha", "Acme") == 1

        assert "Storage error:" in capsys.readouterr().err
