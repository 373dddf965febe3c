from argparse import Namespace
from pathlib import Path

from importer.config import ENV_FFMPEG, ENV_OUTPUT, load_settings
from importer.paths import FFPROBE_BIN


def test_command_line_wins_over_environment():
    args = Namespace(paths=["/media/SD"], output="/srv/videos", no_gui=True,
                     ffmpeg=None, ffprobe=None, log_file=None, verbose=False)

    settings = load_settings(args, {ENV_OUTPUT: "/elsewhere", ENV_FFMPEG: "/opt/ffmpeg"})

    assert settings.inputs == [Path("/media/SD")]
    assert settings.output_base == Path("/srv/videos")
    assert settings.ffmpeg == Path("/opt/ffmpeg")
    assert settings.ffprobe == FFPROBE_BIN
    assert settings.headless


def test_defaults_without_arguments():
    settings = load_settings(None, {})

    assert settings.inputs == []
    assert settings.output_base is None
    assert settings.log_file is None
    assert not settings.headless
