import itertools

import pytest

from stereoalign.fsm import AlignmentFSM
from stereoalign.models import ProcessingOptions

START_TABLE = [
    # (tilt, zoom, framing) -> stage after start
    ((False, False, False), "rotate"),
    ((False, True, False), "rotate"),
    ((True, False, False), "scale"),
    ((True, True, False), "crop"),
] + [((tilt, zoom, True), "result") for tilt, zoom in itertools.product([False, True], repeat=2)]


@pytest.mark.parametrize("flags, expected", START_TABLE)
def test_start_destination(flags, expected):
    tilt, zoom, framing = flags
    fsm = AlignmentFSM(options=ProcessingOptions(tilt, zoom, framing))
    assert fsm.state == "upload"
    fsm.start()
    assert fsm.state == expected


@pytest.mark.parametrize("zoom, expected", [(True, "crop"), (False, "scale")])
def test_rotation_done_destination(zoom, expected):
    fsm = AlignmentFSM(options=ProcessingOptions(assume_equal_zoom=zoom))
    fsm.start()
    fsm.rotation_done()
    assert fsm.state == expected


def test_conditions_follow_live_options():
    options = ProcessingOptions()
    fsm = AlignmentFSM(options=options)
    options.assume_equal_framing = True
    fsm.start()
    assert fsm.state == "result"


def test_reset_from_any_stage():
    fsm = AlignmentFSM(options=ProcessingOptions(assume_equal_tilt=True))
    fsm.start()
    fsm.scale_done()
    fsm.reset()
    assert fsm.state == "upload"


def test_point_limits_loaded_from_yaml():
    fsm = AlignmentFSM()
    assert fsm.max_points("rotate") == 2
    assert fsm.max_points("scale") == 2
    assert fsm.max_points("crop") == 1
    assert fsm.max_points("result") == 0
    assert fsm.max_points() == 0


def test_entry_callbacks_are_invoked():
    entered = []
    fsm = AlignmentFSM(
        callbacks={
            "on_enter_rotate": lambda: entered.append("rotate"),
            "on_exit_upload": lambda: entered.append("left upload"),
        }
    )
    fsm.start()
    assert entered == ["left upload", "rotate"]


@pytest.mark.parametrize(
    "callbacks",
    [
        {"on_enter_rotate": "not callable"},
        {"enter_rotate": lambda: None},
        {"on_enter_nowhere": lambda: None},
    ],
)
def test_invalid_callbacks_are_rejected(callbacks):
    with pytest.raises(ValueError):
        AlignmentFSM(callbacks=callbacks)


def test_custom_config_path(tmp_path):
    config = tmp_path / "states.yaml"
    config.write_text(
        "initial: upload\n"
        "states: [upload, result]\n"
        "transitions:\n"
        "  - {trigger: start, source: upload, dest: result}\n"
        "point_limits: {upload: 0}\n"
    )
    fsm = AlignmentFSM(config_path=str(config))
    fsm.start()
    assert fsm.state == "result"
