from datetime import datetime

import pytest

from importer import orchestrator as orchestrator_module
from importer.errors import OutputError, OutputErrorKind
from importer.models import ImportPhase
from importer.orchestrator import ImportOrchestrator
from importer.output import IMPORTS_FOLDER_NAME
from importer.summary import (
    NO_CLIPS_MESSAGE,
    NO_OUTPUT_SELECTED_MESSAGE,
    NO_READABLE_DROP_MESSAGE,
)

from conftest import BlockingTranscoder, FakeTranscoder, stream_dir, write_clip

DAY = datetime(2025, 12, 23, 9, 30)


def _make(transcoder, default_base, **kwargs):
    return ImportOrchestrator(
        transcoder, default_base=default_base, clock=lambda: DAY, **kwargs
    )


def _run(qtbot, orch, roots):
    states = []
    orch.state_changed.connect(states.append)
    assert orch.start(roots)
    qtbot.waitUntil(lambda: not orch.state.is_busy, timeout=10_000)
    return states


@pytest.fixture
def pictures(tmp_path):
    folder = tmp_path / "Pictures"
    folder.mkdir()
    return folder


def test_every_clip_is_converted_in_order(qtbot, card, pictures, fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)
    finished = []
    orch.batch_finished.connect(finished.append)

    _run(qtbot, orch, [card])

    state = orch.state
    out = pictures / IMPORTS_FOLDER_NAME / "2025-12-23"
    assert state.phase is ImportPhase.COMPLETED
    assert state.output_folder == out
    assert (state.processed_count, state.success_count, state.errors) == (3, 3, ())
    assert [d.name for _, d in fake_transcoder.calls] == ["00000.mp4", "00001.mp4", "00002.mp4"]
    assert sorted(p.name for p in out.iterdir()) == ["00000.mp4", "00001.mp4", "00002.mp4"]
    assert len(finished) == 1


def test_failed_clip_is_recorded_and_batch_continues(qtbot, card, pictures):
    transcoder = FakeTranscoder(failing={"00001.MTS"})
    orch = _make(transcoder, lambda: pictures)

    _run(qtbot, orch, [card])

    state = orch.state
    assert state.phase is ImportPhase.COMPLETED
    assert state.processed_count == 3
    assert state.success_count == 2
    assert [str(e) for e in state.errors] == [
        "00001.MTS: Invalid data found when processing input"
    ]
    assert state.success_count + len(state.errors) == state.total_count


def test_progress_only_moves_forward(qtbot, card, pictures, fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)

    states = _run(qtbot, orch, [card])

    converting = [s for s in states if s.phase is ImportPhase.CONVERTING]
    assert converting
    assert all(s.total_count == 3 for s in converting)
    processed = [s.processed_count for s in converting]
    assert processed == sorted(processed)
    assert all(0.0 <= s.clip_progress <= 1.0 for s in converting)
    overall = [s.overall_progress for s in converting]
    assert all(0.0 <= p <= 1.0 for p in overall)
    assert overall == sorted(overall)
    assert fake_transcoder.progress["00001.MTS"] == [0.0, 0.25, 0.5, 1.0]


def test_same_clip_names_on_two_cards_get_distinct_outputs(qtbot, tmp_path, pictures,
                                                           fake_transcoder):
    write_clip(stream_dir(tmp_path / "A") / "00000.MTS", mtime=1000)
    write_clip(stream_dir(tmp_path / "B") / "00000.MTS", mtime=2000)
    orch = _make(fake_transcoder, lambda: pictures)

    _run(qtbot, orch, [tmp_path / "A", tmp_path / "B"])

    assert [d.name for _, d in fake_transcoder.calls] == ["00000.mp4", "00000-1.mp4"]


def test_nothing_found_has_its_own_message(qtbot, tmp_path, pictures, fake_transcoder):
    (tmp_path / "empty").mkdir()
    orch = _make(fake_transcoder, lambda: pictures)

    _run(qtbot, orch, [tmp_path / "empty"])

    assert orch.state.phase is ImportPhase.FAILED
    assert orch.state.message == NO_CLIPS_MESSAGE
    assert fake_transcoder.calls == []


def test_unreadable_root_is_a_scan_failure(qtbot, tmp_path, pictures, fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)

    _run(qtbot, orch, [tmp_path / "missing"])

    assert orch.state.phase is ImportPhase.FAILED
    assert orch.state.message.startswith("Import failed:")
    assert orch.state.message != NO_CLIPS_MESSAGE


def test_alternate_base_is_used_when_default_is_unusable(qtbot, tmp_path, card,
                                                         fake_transcoder):
    alternate = tmp_path / "External"
    alternate.mkdir()
    asked = []

    def choose():
        asked.append(True)
        return alternate

    orch = _make(fake_transcoder, lambda: None, choose_folder=choose)

    _run(qtbot, orch, [card])

    assert asked == [True]
    assert orch.state.phase is ImportPhase.COMPLETED
    assert orch.state.output_folder == alternate / IMPORTS_FOLDER_NAME / "2025-12-23"
    assert all(d.parent == orch.state.output_folder for _, d in fake_transcoder.calls)


def test_declined_folder_choice_fails_the_batch(qtbot, card, fake_transcoder):
    orch = _make(fake_transcoder, lambda: None, choose_folder=lambda: None)

    _run(qtbot, orch, [card])

    assert orch.state.phase is ImportPhase.FAILED
    assert orch.state.message == NO_OUTPUT_SELECTED_MESSAGE


def test_alternate_base_is_tried_only_once(qtbot, card, tmp_path, fake_transcoder, monkeypatch):
    attempts = []

    def always_denied(base=None, as_of=None, default_base=None):
        attempts.append(base)
        raise OutputError("Permission denied", kind=OutputErrorKind.PERMISSION_DENIED)

    monkeypatch.setattr(orchestrator_module, "ensure_output_directory", always_denied)
    orch = _make(fake_transcoder, lambda: None, choose_folder=lambda: tmp_path)

    _run(qtbot, orch, [card])

    assert attempts == [None, tmp_path]
    assert orch.state.phase is ImportPhase.FAILED
    assert orch.state.message == "Unable to create output folder: Permission denied"


def test_other_output_errors_do_not_prompt(qtbot, card, fake_transcoder, monkeypatch):
    def disk_full(*args, **kwargs):
        raise OutputError("No space left on device", kind=OutputErrorKind.OTHER)

    monkeypatch.setattr(orchestrator_module, "ensure_output_directory", disk_full)
    asked = []
    orch = _make(fake_transcoder, lambda: None, choose_folder=lambda: asked.append(1))

    _run(qtbot, orch, [card])

    assert asked == []
    assert orch.state.phase is ImportPhase.FAILED
    assert orch.state.message == "Unable to create output folder: No space left on device"


def test_output_base_setting_is_tried_first(qtbot, tmp_path, card, fake_transcoder):
    orch = _make(fake_transcoder, lambda: None, output_base=tmp_path / "Archive")

    _run(qtbot, orch, [card])

    assert orch.state.output_folder == tmp_path / "Archive" / IMPORTS_FOLDER_NAME / "2025-12-23"


def test_second_start_is_rejected_while_busy(qtbot, card, pictures, fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)

    assert orch.start([card])
    assert orch.state.phase is ImportPhase.SCANNING
    assert not orch.start([card])
    assert not orch.reset()
    qtbot.waitUntil(lambda: not orch.state.is_busy, timeout=10_000)

    assert orch.state.phase is ImportPhase.COMPLETED
    assert len(fake_transcoder.calls) == 3


def test_reset_clears_the_batch(qtbot, card, pictures, fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)
    _run(qtbot, orch, [card])

    assert orch.reset()

    state = orch.state
    assert state.phase is ImportPhase.IDLE
    assert (state.total_count, state.processed_count, state.errors) == (0, 0, ())
    assert state.output_folder is None


def test_empty_root_list_is_ignored(pictures, fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)

    assert not orch.start([])
    assert orch.state.phase is ImportPhase.IDLE


def test_cancelled_clip_is_a_failure_and_batch_goes_on(qtbot, card, pictures):
    transcoder = BlockingTranscoder()
    orch = _make(transcoder, lambda: pictures)

    assert orch.start([card])
    qtbot.waitUntil(lambda: orch.state.current_clip is not None, timeout=10_000)
    assert orch.cancel_current()
    qtbot.waitUntil(lambda: not orch.state.is_busy, timeout=10_000)

    state = orch.state
    assert state.phase is ImportPhase.COMPLETED
    assert [str(e) for e in state.errors] == ["00000.MTS: The export was cancelled."]
    assert state.success_count == 2
    assert transcoder.converted == ["00000.MTS", "00001.MTS", "00002.MTS"]


def test_drop_without_local_paths_fails_with_its_own_message(pictures, fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)
    states = []
    orch.state_changed.connect(states.append)

    assert orch.reject_drop()

    assert [s.phase for s in states] == [ImportPhase.FAILED]
    assert orch.state.message == NO_READABLE_DROP_MESSAGE
    assert orch.reset()
    assert orch.state.phase is ImportPhase.IDLE


def test_drop_without_local_paths_is_ignored_while_busy(qtbot, card, pictures,
                                                        fake_transcoder):
    orch = _make(fake_transcoder, lambda: pictures)

    assert orch.start([card])
    assert not orch.reject_drop()
    assert orch.state.phase is ImportPhase.SCANNING
    qtbot.waitUntil(lambda: not orch.state.is_busy, timeout=10_000)

    assert orch.state.phase is ImportPhase.COMPLETED
