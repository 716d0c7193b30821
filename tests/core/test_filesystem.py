"""
Unit tests for archive extraction and safe deletion.
"""

import io
import os
import tarfile
import zipfile

import pytest

from zircon.core.exceptions import (
    ArchiveError,
    UnsafeArchiveEntryError,
    UnsupportedArchiveFormat,
)
from zircon.core.filesystem import (
    FilesystemError,
    archive_suffix,
    extract_archive,
    safe_rmtree,
    strip_archive_suffix,
    validate_archive_member,
)
from tests.fixtures.toolchains import (
    make_tar_archive,
    make_zip_archive,
    toolchain_entries,
)


def _tar_with_member(path, name, data=b"x", **attrs):
    """Write a tar.gz holding a single hand-built member."""
    with tarfile.open(path, "w:gz") as tar:
        info = tarfile.TarInfo(name)
        for key, value in attrs.items():
            setattr(info, key, value)
        if info.isreg():
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
        else:
            tar.addfile(info)
    return path


@pytest.mark.unit
class TestArchiveSuffix:
    @pytest.mark.parametrize(
        "name,suffix",
        [
            ("zrc-linux-x64.tar.gz", ".tar.gz"),
            ("toolchain.TGZ", ".tgz"),
            ("toolchain.tar", ".tar"),
            ("toolchain.tar.xz", ".tar.xz"),
            ("toolchain.zip", ".zip"),
            ("toolchain.rar", None),
        ],
    )
    def test_detection(self, name, suffix):
        assert archive_suffix(name) == suffix

    def test_strip(self):
        assert strip_archive_suffix("/tmp/v0.1.0.tar.gz") == "v0.1.0"
        assert strip_archive_suffix("README") == "README"


@pytest.mark.unit
class TestValidateMember:
    @pytest.mark.parametrize(
        "name", ["/etc/passwd", "C:\\Windows\\evil", "C:evil", "\\\\server\\share\\x"]
    )
    def test_absolute_rejected(self, name):
        with pytest.raises(UnsafeArchiveEntryError, match="absolute"):
            validate_archive_member(name)

    @pytest.mark.parametrize("name", ["../evil", "bin/../../evil", "a\\..\\..\\evil"])
    def test_traversal_rejected(self, name):
        with pytest.raises(UnsafeArchiveEntryError, match="traversal"):
            validate_archive_member(name)

    def test_normalizes(self):
        assert str(validate_archive_member("./bin//zrc")) == "bin/zrc"


@pytest.mark.unit
class TestExtractArchive:
    def test_tar_gz_preserves_modes(self, tmp_path):
        archive = make_tar_archive(tmp_path / "tc.tar.gz", toolchain_entries())
        dest = tmp_path / "out"

        extract_archive(archive, dest)

        assert (dest / "bin" / "zrc").is_file()
        assert (dest / "include" / "zrc.zh").is_file()
        if os.name != "nt":
            assert os.stat(dest / "bin" / "zrc").st_mode & 0o777 == 0o755

    def test_plain_tar(self, tmp_path):
        archive = make_tar_archive(tmp_path / "tc.tar", toolchain_entries(), mode="w")
        extract_archive(archive, tmp_path / "out")
        assert (tmp_path / "out" / "bin" / "zircop").is_file()

    def test_zip_preserves_modes(self, tmp_path):
        archive = make_zip_archive(tmp_path / "tc.zip", toolchain_entries("wrap"))
        dest = tmp_path / "out"

        extract_archive(archive, dest)

        assert (dest / "wrap" / "bin" / "zrc").is_file()
        if os.name != "nt":
            assert os.stat(dest / "wrap" / "bin" / "zrc").st_mode & 0o777 == 0o755

    def test_progress_callback(self, tmp_path):
        archive = make_tar_archive(tmp_path / "tc.tar.gz", toolchain_entries())
        calls = []

        extract_archive(archive, tmp_path / "out", lambda cur, total: calls.append((cur, total)))

        assert calls
        assert calls[-1][0] == calls[-1][1]

    def test_traversal_writes_nothing(self, tmp_path):
        """A bad member later in the archive blocks the whole extraction."""
        entries = toolchain_entries()
        entries["../escape.txt"] = (b"pwned", 0o644)
        archive = make_tar_archive(tmp_path / "evil.tar.gz", entries)
        dest = tmp_path / "out"

        with pytest.raises(UnsafeArchiveEntryError):
            extract_archive(archive, dest)

        assert not (tmp_path / "escape.txt").exists()
        assert list(dest.iterdir()) == []

    def test_zip_traversal_rejected(self, tmp_path):
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.txt", "pwned")

        with pytest.raises(UnsafeArchiveEntryError):
            extract_archive(archive, tmp_path / "out")
        assert not (tmp_path / "escape.txt").exists()

    def test_absolute_symlink_rejected(self, tmp_path):
        archive = _tar_with_member(
            tmp_path / "link.tar.gz", "bin/zrc", type=tarfile.SYMTYPE, linkname="/bin/sh"
        )
        with pytest.raises(UnsafeArchiveEntryError, match="absolute"):
            extract_archive(archive, tmp_path / "out")

    def test_device_rejected(self, tmp_path):
        archive = _tar_with_member(tmp_path / "dev.tar.gz", "bin/zrc", type=tarfile.CHRTYPE)
        with pytest.raises(UnsafeArchiveEntryError, match="device"):
            extract_archive(archive, tmp_path / "out")

    def test_unsupported_format(self, tmp_path):
        archive = tmp_path / "tc.rar"
        archive.write_bytes(b"Rar!")
        with pytest.raises(UnsupportedArchiveFormat):
            extract_archive(archive, tmp_path / "out")

    def test_missing_archive(self, tmp_path):
        with pytest.raises(ArchiveError, match="not found"):
            extract_archive(tmp_path / "missing.tar.gz", tmp_path / "out")

    def test_corrupt_archive(self, tmp_path):
        archive = tmp_path / "broken.tar.gz"
        archive.write_bytes(b"definitely not gzip")
        with pytest.raises(ArchiveError):
            extract_archive(archive, tmp_path / "out")


@pytest.mark.unit
class TestSafeRmtree:
    def test_removes_under_prefix(self, tmp_path):
        target = tmp_path / "toolchains" / "v0.1.0"
        (target / "bin").mkdir(parents=True)
        (target / "bin" / "zrc").write_text("x")

        safe_rmtree(target, require_prefix=tmp_path / "toolchains")

        assert not target.exists()
        assert (tmp_path / "toolchains").is_dir()

    def test_refuses_outside_prefix(self, tmp_path):
        outside = tmp_path / "elsewhere"
        outside.mkdir()
        with pytest.raises(ValueError):
            safe_rmtree(outside, require_prefix=tmp_path / "toolchains")
        assert outside.exists()

    def test_refuses_prefix_itself(self, tmp_path):
        with pytest.raises(ValueError):
            safe_rmtree(tmp_path, require_prefix=tmp_path)

    def test_missing_is_noop(self, tmp_path):
        safe_rmtree(tmp_path / "gone")

    @pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
    def test_refuses_symlink(self, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        (real / "keep").write_text("x")
        link = tmp_path / "link"
        link.symlink_to(real, target_is_directory=True)

        with pytest.raises(FilesystemError):
            safe_rmtree(link)

        assert (real / "keep").exists()
