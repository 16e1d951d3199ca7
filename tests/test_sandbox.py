"""Tests for the file access sandbox."""

import os
import tempfile

import pytest

from mcp_browser_guard.errors import AccessDeniedError, FileSizeExceededError
from mcp_browser_guard.sandbox import AccessPolicy, PathSandbox, is_path_under, resolve_path


def sandbox(**policy):
    return PathSandbox(AccessPolicy(**policy))


class TestIsPathUnder:

    def test_directory_boundary(self):
        assert is_path_under("/home/user/project/a.txt", "/home/user/project")
        assert is_path_under("/home/user/project", "/home/user/project")
        assert not is_path_under("/home/user/project2/a.txt", "/home/user/project")
        assert not is_path_under("/var/foobar", "/var/foo")

    def test_trailing_separator_on_base(self):
        assert is_path_under("/var/foo/x", "/var/foo/")

    def test_root_base(self):
        assert is_path_under("/etc/passwd", "/")


class TestResolvePath:

    def test_nonexistent_path_resolves(self, tmp_path):
        target = tmp_path / "missing" / "file.txt"
        assert resolve_path(str(target)) == os.path.join(os.path.realpath(tmp_path), "missing", "file.txt")

    def test_dot_segments_are_cleaned(self, tmp_path):
        assert resolve_path(str(tmp_path / "a" / ".." / "b.txt")) == os.path.join(os.path.realpath(tmp_path), "b.txt")


class TestPathSandbox:

    def test_traversal_out_of_allowed_dir_denied(self, tmp_path):
        project = tmp_path / "project"
        project.mkdir()
        sb = sandbox(allowed_paths=(str(project),))
        with pytest.raises(AccessDeniedError) as exc:
            sb.validate_path(str(project / ".." / ".." / ".." / "etc" / "passwd"), "read")
        assert "not in allowed paths" in exc.value.reason
        assert exc.value.operation == "read"

    def test_dot_dot_to_etc_passwd(self):
        sb = sandbox(allowed_paths=("/home/user/project",))
        with pytest.raises(AccessDeniedError) as exc:
            sb.validate_path("/home/user/project/../../etc/passwd", "read")
        assert exc.value.path == os.path.realpath("/etc/passwd")

    def test_sibling_with_common_prefix_denied(self, tmp_path):
        (tmp_path / "project").mkdir()
        (tmp_path / "project2").mkdir()
        sb = sandbox(allowed_paths=(str(tmp_path / "project"),))
        assert sb.validate_path(str(tmp_path / "project" / "a.txt"), "write")
        with pytest.raises(AccessDeniedError):
            sb.validate_path(str(tmp_path / "project2" / "a.txt"), "write")

    def test_deny_wins_over_allow(self, tmp_path):
        secrets = tmp_path / "secrets"
        secrets.mkdir()
        sb = sandbox(allowed_paths=(str(tmp_path),), denied_paths=(str(secrets),))
        assert sb.validate_path(str(tmp_path / "notes.txt"), "read")
        with pytest.raises(AccessDeniedError) as exc:
            sb.validate_path(str(secrets / "key.pem"), "read")
        assert "deny list" in exc.value.reason

    def test_nonexistent_file_in_allowed_dir(self, tmp_path):
        sb = sandbox(allowed_paths=(str(tmp_path),))
        real = sb.validate_path(str(tmp_path / "new" / "file.html"), "write")
        assert real == os.path.join(os.path.realpath(tmp_path), "new", "file.html")

    def test_symlink_into_denied_area(self, tmp_path):
        allowed = tmp_path / "allowed"
        denied = tmp_path / "denied"
        allowed.mkdir()
        denied.mkdir()
        (denied / "secret.txt").write_text("x")
        link = allowed / "link"
        try:
            link.symlink_to(denied, target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        sb = sandbox(allowed_paths=(str(allowed),), denied_paths=(str(denied),))
        with pytest.raises(AccessDeniedError):
            sb.validate_path(str(link / "secret.txt"), "read")
        # Not-yet-existing file behind the same link is judged by its destination too.
        with pytest.raises(AccessDeniedError):
            sb.validate_path(str(link / "new.txt"), "write")

    def test_symlink_out_of_allowed_area(self, tmp_path):
        allowed = tmp_path / "allowed"
        outside = tmp_path / "outside"
        allowed.mkdir()
        outside.mkdir()
        link = allowed / "escape"
        try:
            link.symlink_to(outside, target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        sb = sandbox(allowed_paths=(str(allowed),))
        with pytest.raises(AccessDeniedError):
            sb.validate_path(str(link / "file.txt"), "read")

    def test_empty_path(self):
        with pytest.raises(AccessDeniedError) as exc:
            sandbox().validate_path("", "read")
        assert exc.value.reason == "path cannot be empty"

    def test_nul_byte(self, tmp_path):
        with pytest.raises(AccessDeniedError):
            sandbox(allowed_paths=(str(tmp_path),)).validate_path(str(tmp_path) + "/a\x00b", "read")

    def test_no_rules_allows_everything(self, tmp_path):
        assert sandbox().validate_path(str(tmp_path / "x"), "read")

    def test_temp_flag(self, tmp_path):
        sb = sandbox(allowed_paths=(str(tmp_path / "only"),), allow_temp_files=True)
        assert sb.validate_path(os.path.join(tempfile.gettempdir(), "scratch.txt"), "write")

    def test_temp_flag_alone_is_a_restriction(self):
        sb = sandbox(allow_temp_files=True)
        assert sb.validate_path(os.path.join(tempfile.gettempdir(), "a.txt"), "write")
        outside = os.path.join(os.path.abspath(os.sep), "definitely-not-tmp", "a.txt")
        if is_path_under(resolve_path(outside), resolve_path(tempfile.gettempdir())):
            pytest.skip("temp dir is the filesystem root")
        with pytest.raises(AccessDeniedError):
            sb.validate_path(outside, "write")

    def test_restrict_to_working_dir(self, tmp_path):
        inside = tmp_path / "work"
        inside.mkdir()
        sb = PathSandbox(
            AccessPolicy(allowed_paths=(str(tmp_path),), restrict_to_working_dir=True),
            getcwd=lambda: str(inside),
        )
        assert sb.validate_path(str(inside / "a.txt"), "write")
        with pytest.raises(AccessDeniedError):
            sb.validate_path(str(tmp_path / "b.txt"), "write")

    def test_restrict_to_working_dir_fails_closed(self, tmp_path):
        def broken_getcwd():
            raise OSError("cwd was removed")

        sb = PathSandbox(AccessPolicy(restrict_to_working_dir=True), getcwd=broken_getcwd)
        with pytest.raises(AccessDeniedError):
            sb.validate_path(str(tmp_path / "a.txt"), "read")
        assert sb.allowed_roots() == []

    def test_relative_paths_resolve_against_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        sb = PathSandbox(AccessPolicy.default())
        assert sb.validate_path("page.html", "write") == os.path.join(os.path.realpath(tmp_path), "page.html")
        with pytest.raises(AccessDeniedError):
            sb.validate_path("../elsewhere.html", "write")

    def test_size_limit(self, tmp_path):
        sb = sandbox(allowed_paths=(str(tmp_path),), max_file_size=10)
        sb.validate_size(10)
        with pytest.raises(FileSizeExceededError) as exc:
            sb.validate_write(str(tmp_path / "big.bin"), 11)
        assert (exc.value.size, exc.value.limit) == (11, 10)

    def test_zero_size_limit_means_unlimited(self):
        sandbox(max_file_size=0).validate_size(10 ** 12)

    def test_write_checks_path_before_size(self, tmp_path):
        sb = sandbox(allowed_paths=(str(tmp_path / "a"),), max_file_size=1)
        with pytest.raises(AccessDeniedError):
            sb.validate_write(str(tmp_path / "b" / "x"), 100)


class TestAccessPolicy:

    def test_default_policy(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        policy = AccessPolicy.default()
        assert policy.restrict_to_working_dir is True
        assert policy.allow_temp_files is False
        assert policy.max_file_size == 10 * 1024 * 1024
        assert policy.allowed_paths == (os.getcwd(),)

    def test_from_config_and_to_dict(self):
        policy = AccessPolicy.from_config({
            "allowed_paths": ["/srv/data", ""],
            "denied_paths": ["/srv/data/private"],
            "allow_temp_files": True,
            "max_file_size": 1024,
        })
        assert policy.to_dict() == {
            "allowed_paths": ["/srv/data"],
            "denied_paths": ["/srv/data/private"],
            "restrict_to_working_dir": False,
            "allow_temp_files": True,
            "max_file_size": 1024,
        }

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            AccessPolicy(max_file_size=-1)
