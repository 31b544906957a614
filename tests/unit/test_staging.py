"""Unit tests for per-request staged inputs."""
import os
import stat

import pytest
import yaml

from reconforge.toolkit.staging import StagingArea


class TestStagingArea:

    def test_file_name_embeds_request_id(self, tmp_path):
        staging = StagingArea("httpx", "ab12cd34", tmp_path)
        path = staging.write_lines("httpx-hosts", ["a.example.com", "b.example.com"])

        assert path == tmp_path / "httpx-hosts-ab12cd34.txt"
        assert path.read_text() == "a.example.com\nb.example.com"
        staging.cleanup()

    def test_cleanup_removes_everything(self, tmp_path):
        staging = StagingArea("katana", "r1", tmp_path)
        staging.write_lines("katana-urls", ["https://a.example.com"])
        staging.write_yaml("katana-form-config", {"fields": ["user"]})
        staging.write_secret("katana-token", "s3cret", suffix=".txt")

        staging.cleanup()

        assert os.listdir(tmp_path) == []
        assert staging.staged == []

    def test_context_manager_cleans_up_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with StagingArea("uro", "r1", tmp_path) as staging:
                staging.write_lines("uro-input", ["https://a.example.com/?a=1"])
                raise RuntimeError("tool failed")
        assert os.listdir(tmp_path) == []

    def test_secret_is_owner_only(self, tmp_path):
        with StagingArea("steampipe", "r1", tmp_path) as staging:
            path = staging.write_secret("steampipe-config", 'access_key = "x"', suffix=".hcl")
            assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_yaml_round_trips(self, tmp_path):
        data = [{"provider": "aws", "id": "src-1", "aws_access_key": "AKIA"}]
        with StagingArea("cloudlist", "r1", tmp_path) as staging:
            path = staging.write_yaml("cloudlist-config", data)
            assert yaml.safe_load(path.read_text()) == data

    def test_distinct_ids_never_share_files(self, tmp_path):
        first = StagingArea("httpx", "id-one", tmp_path)
        second = StagingArea("httpx", "id-two", tmp_path)
        a = first.write_lines("httpx-hosts", ["a.example.com"])
        b = second.write_lines("httpx-hosts", ["a.example.com"])

        assert a != b
        assert set(first.staged).isdisjoint(second.staged)
        first.cleanup()
        assert b.exists()
        second.cleanup()

    def test_reused_id_fails_loudly(self, tmp_path):
        first = StagingArea("httpx", "same", tmp_path)
        first.write_lines("httpx-hosts", ["a"])
        with pytest.raises(FileExistsError):
            StagingArea("httpx", "same", tmp_path).write_lines("httpx-hosts", ["b"])
        first.cleanup()

    def test_tracked_files_are_removed(self, tmp_path):
        produced = tmp_path / "gowitness-r1.jsonl"
        with StagingArea("gowitness", "r1", tmp_path) as staging:
            staging.track(produced)
            produced.write_text("{}\n")
        assert not produced.exists()

    def test_tracked_file_never_created_is_fine(self, tmp_path):
        with StagingArea("gowitness", "r1", tmp_path) as staging:
            staging.track(tmp_path / "never-written.jsonl")

    def test_temp_dir_is_created(self, tmp_path):
        target = tmp_path / "nested" / "staging"
        with StagingArea("httpx", "r1", target) as staging:
            staging.write_lines("httpx-hosts", ["a"])
            assert target.is_dir()
