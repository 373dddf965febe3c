from importer.access import ScopedAccess


def test_access_is_released_on_exit(tmp_path):
    with ScopedAccess(tmp_path, write=True) as access:
        assert access.is_open
        assert access.granted

    assert not access.is_open


def test_missing_path_is_not_granted(tmp_path):
    access = ScopedAccess(tmp_path / "gone")

    with access:
        assert not access.granted

    access.release()
    assert not access.is_open
