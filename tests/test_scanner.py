import os
import sys

import pytest

from importer.errors import ScanError
from importer.scanner import MINIMUM_CLIP_SIZE, is_clip_path, scan

from conftest import MIB, stream_dir, write_clip


def test_small_stub_files_are_excluded(tmp_path):
    stream = stream_dir(tmp_path / "CARD")
    write_clip(stream / "00000.MTS", 20 * MIB, mtime=1000)
    write_clip(stream / "00001.MTS", 30 * MIB, mtime=2000)
    write_clip(stream / "00002.MTS", 2 * MIB, mtime=3000)

    clips = scan([tmp_path / "CARD"])

    assert [c.name for c in clips] == ["00000.MTS", "00001.MTS"]
    assert [c.size for c in clips] == [20 * MIB, 30 * MIB]


def test_size_threshold_is_inclusive(tmp_path):
    stream = stream_dir(tmp_path)
    write_clip(stream / "exact.MTS", MINIMUM_CLIP_SIZE)
    write_clip(stream / "short.MTS", MINIMUM_CLIP_SIZE - 1)

    assert [c.name for c in scan([tmp_path])] == ["exact.MTS"]


def test_markers_and_extension_ignore_case(tmp_path):
    write_clip(tmp_path / "x" / "avchd" / "Bdmv" / "stream" / "clip.mts")

    assert [c.name for c in scan([tmp_path])] == ["clip.mts"]


@pytest.mark.parametrize("relative", [
    "AVCHD/STREAM/00000.MTS",             # BDMV missing
    "BDMV/AVCHD/STREAM/00000.MTS",        # wrong order
    "AVCHD/BDMV/CLIPINF/00000.MTS",       # wrong leaf folder
    "AVCHD/BDMV/STREAM/00000.M2TS",       # wrong extension
    "AVCHD/BDMV/STREAM/00000.MTS.bak",
])
def test_files_outside_the_stream_chain_are_ignored(tmp_path, relative):
    write_clip(tmp_path / relative)

    assert scan([tmp_path]) == []


def test_is_clip_path():
    assert is_clip_path("/media/SD/PRIVATE/AVCHD/BDMV/STREAM/00000.MTS")
    assert not is_clip_path("/media/SD/PRIVATE/AVCHD/BDMV/00000.MTS")
    assert not is_clip_path("/media/SD/PRIVATE/AVCHD/BDMV/STREAM/00000.MP4")


def test_hidden_entries_are_skipped(tmp_path):
    write_clip(stream_dir(tmp_path / ".Trashes") / "00000.MTS")
    write_clip(stream_dir(tmp_path / "CARD") / ".00001.MTS")
    write_clip(stream_dir(tmp_path / "CARD") / "00002.MTS")

    assert [c.name for c in scan([tmp_path])] == ["00002.MTS"]


def test_package_directories_are_not_descended(tmp_path):
    write_clip(stream_dir(tmp_path / "Backup.photoslibrary") / "00000.MTS")

    assert scan([tmp_path]) == []


def test_order_is_by_mtime_then_case_insensitive_name(tmp_path):
    stream = stream_dir(tmp_path)
    write_clip(stream / "c.MTS", mtime=500)
    write_clip(stream / "b.MTS", mtime=1000)
    write_clip(stream / "A.mts", mtime=1000)

    assert [c.name for c in scan([tmp_path])] == ["c.MTS", "A.mts", "b.MTS"]


def test_root_order_does_not_change_result(tmp_path):
    write_clip(stream_dir(tmp_path / "one") / "00000.MTS", mtime=3000)
    write_clip(stream_dir(tmp_path / "two") / "00000.MTS", mtime=1000)
    write_clip(stream_dir(tmp_path / "two") / "00001.MTS", mtime=2000)

    forward = scan([tmp_path / "one", tmp_path / "two"])
    backward = scan([tmp_path / "two", tmp_path / "one"])

    assert forward == backward
    assert [c.modified for c in forward] == [1000, 2000, 3000]


def test_clip_reachable_from_two_roots_is_reported_once(card):
    stream = stream_dir(card)

    clips = scan([card, stream, stream / "00001.MTS", card])

    paths = [c.path for c in clips]
    assert len(paths) == len(set(paths)) == 3


@pytest.mark.skipif(sys.platform == "win32", reason="needs symlinks")
def test_symlinked_clip_is_deduplicated(tmp_path, card):
    target = stream_dir(card) / "00000.MTS"
    other = stream_dir(tmp_path / "OTHER")
    other.mkdir(parents=True)
    os.symlink(target, other / "link.MTS")

    clips = scan([card, tmp_path / "OTHER"])

    assert len(clips) == 3
    assert clips[0].path == target.resolve()


def test_single_file_root_is_evaluated_directly(card):
    clip = stream_dir(card) / "00002.MTS"

    clips = scan([clip])

    assert len(clips) == 1
    assert clips[0].path == clip.resolve()
    assert clips[0].size == 20 * MIB


def test_directory_without_clips_is_an_empty_result(tmp_path):
    (tmp_path / "empty").mkdir()

    assert scan([tmp_path / "empty"]) == []


def test_missing_root_alone_raises(tmp_path):
    with pytest.raises(ScanError) as info:
        scan([tmp_path / "nope"])
    assert info.value.root == tmp_path / "nope"


def test_missing_root_does_not_spoil_the_others(tmp_path, card):
    clips = scan([tmp_path / "nope", card])

    assert len(clips) == 3


def test_no_roots_raises():
    with pytest.raises(ScanError):
        scan([])


@pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0,
                    reason="needs POSIX permissions enforced for this user")
def test_unreadable_subdirectory_is_skipped(tmp_path):
    write_clip(stream_dir(tmp_path / "CARD") / "00000.MTS")
    locked = tmp_path / "locked"
    write_clip(stream_dir(locked) / "00001.MTS")
    locked.chmod(0o000)

    try:
        clips = scan([tmp_path])
    finally:
        locked.chmod(0o755)

    assert [c.name for c in clips] == ["00000.MTS"]


@pytest.mark.skipif(sys.platform == "win32", reason="needs symlinks")
def test_dangling_clip_entry_is_skipped(tmp_path):
    stream = stream_dir(tmp_path)
    write_clip(stream / "00000.MTS")
    os.symlink(tmp_path / "gone.MTS", stream / "00001.MTS")

    assert [c.name for c in scan([tmp_path])] == ["00000.MTS"]
