"""Tests for ScanPolicy volume selection and the progress estimate."""

from collections import namedtuple
from pathlib import Path

import pytest

from entroscan.collectors import volumes
from entroscan.collectors.volumes import BYTES_PER_TB, ScanPolicy, drive_letter
from entroscan.core.errors import VolumeEnumerationError
from entroscan.models.config import ScanConfig
from entroscan.models.scan import ScanTarget

Partition = namedtuple("Partition", ["device", "mountpoint", "fstype", "opts"])
Usage = namedtuple("Usage", ["total", "used", "free", "percent"])


@pytest.fixture
def mounted(tmp_path: Path, monkeypatch):
    """Fake psutil volume listing backed by real directories."""
    roots = {name: tmp_path / name for name in ("sys", "data", "share")}
    for root in roots.values():
        root.mkdir()

    partitions = [
        Partition("/dev/sda1", str(roots["sys"]), "ext4", "rw"),
        Partition("/dev/sdb1", str(roots["data"]), "xfs", "rw"),
        Partition("nas:/share", str(roots["share"]), "nfs", "rw"),
        Partition("/dev/sdc1", "D:\\", "NTFS", "rw,fixed"),
    ]

    monkeypatch.setattr(volumes.psutil, "disk_partitions", lambda all=False: partitions)
    monkeypatch.setattr(
        volumes.psutil, "disk_usage", lambda path: Usage(2 * BYTES_PER_TB, BYTES_PER_TB, BYTES_PER_TB, 50.0)
    )
    return roots


def test_drive_letter():
    assert drive_letter("C:\\") == "C"
    assert drive_letter("e:") == "E"
    assert drive_letter("/mnt/data") is None
    assert drive_letter("\\\\corp\\dfs") is None


@pytest.mark.parametrize("spelling", ["D", "d", "D:", "D:\\"])
def test_excluded_drive_letter_spellings(spelling):
    policy = ScanPolicy(ScanConfig(excluded_drive_letters=[spelling]))
    assert policy.is_excluded("D:\\")
    assert policy.is_excluded("d:")
    assert not policy.is_excluded("C:\\")


def test_excluded_root_paths_match_exactly():
    policy = ScanPolicy(ScanConfig(excluded_root_paths=["\\\\corp\\DFS\\", "/mnt/share"]))
    assert policy.is_excluded("\\\\corp\\dfs")
    assert policy.is_excluded("/mnt/share/")
    assert not policy.is_excluded("/mnt/share2")
    assert not policy.is_excluded("/mnt")


def test_enumerates_mounted_volumes_in_order(mounted):
    policy = ScanPolicy(ScanConfig(excluded_drive_letters=["D"]))
    targets = policy.enumerate_targets()

    assert [t.root_path for t in targets] == [
        str(mounted["sys"]),
        str(mounted["data"]),
        str(mounted["share"]),
        "D:\\",
    ]
    assert [t.is_excluded for t in targets] == [False, False, False, True]
    assert targets[0].used_bytes == BYTES_PER_TB
    assert targets[0].fstype == "ext4"


def test_resolve_drops_excluded_roots(mounted):
    policy = ScanPolicy(
        ScanConfig(excluded_drive_letters=["D"], excluded_root_paths=[str(mounted["share"])])
    )
    assert [t.root_path for t in policy.resolve()] == [str(mounted["sys"]), str(mounted["data"])]


def test_unqueryable_volume_is_dropped(mounted, monkeypatch):
    def flaky_usage(path):
        if path == str(mounted["data"]):
            raise PermissionError("denied")
        return Usage(1, 1, 0, 100.0)

    monkeypatch.setattr(volumes.psutil, "disk_usage", flaky_usage)
    roots = [t.root_path for t in ScanPolicy(ScanConfig(excluded_drive_letters=["D"])).resolve()]
    assert str(mounted["data"]) not in roots
    assert str(mounted["sys"]) in roots


def test_listing_failure_raises(monkeypatch):
    def broken(all=False):
        raise OSError("no mount table")

    monkeypatch.setattr(volumes.psutil, "disk_partitions", broken)
    with pytest.raises(VolumeEnumerationError):
        ScanPolicy(ScanConfig()).resolve()


def test_explicit_roots_bypass_enumeration(tmp_path, monkeypatch):
    def unexpected(all=False):
        raise AssertionError("volumes should not be enumerated")

    monkeypatch.setattr(volumes.psutil, "disk_partitions", unexpected)
    root = tmp_path / "evidence"
    root.mkdir()
    missing = tmp_path / "missing"

    policy = ScanPolicy(ScanConfig(root_paths=[str(root), str(missing)]))
    assert [t.root_path for t in policy.resolve()] == [str(root)]


def test_estimate_total_files():
    policy = ScanPolicy(ScanConfig(files_per_tb=1_000_000))
    targets = [
        ScanTarget(root_path="/a", used_bytes=BYTES_PER_TB),
        ScanTarget(root_path="/b", used_bytes=BYTES_PER_TB // 2),
        ScanTarget(root_path="/c", used_bytes=10 * BYTES_PER_TB, is_excluded=True),
    ]
    assert policy.estimate_total_files(targets) == 1_500_000
    assert policy.estimate_total_files([]) == 1


def test_skip_roots_cover_other_targets_and_exclusions():
    policy = ScanPolicy(ScanConfig(excluded_root_paths=["/srv/evidence/"]))
    targets = [
        ScanTarget(root_path="/"),
        ScanTarget(root_path="/home"),
        ScanTarget(root_path="/boot", is_excluded=True),
    ]
    assert policy.skip_roots(targets, "/") == {"/home", "/boot", "/srv/evidence"}
    assert policy.skip_roots(targets, "/home/") == {"/", "/boot", "/srv/evidence"}
