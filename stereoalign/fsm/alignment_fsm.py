import logging
from pathlib import Path

import yaml
from transitions import Machine

from stereoalign.models import ProcessingOptions


class AlignmentFSM:
    """
    Finite State Machine that sequences the alignment stages.
    Loads its structure from states.yaml for easy modification.
    """

    def __init__(self, config_path=None, callbacks=None, options: ProcessingOptions = None):
        """
        :param config_path: Optional path to the YAML FSM definition.
        :param callbacks: Optional dict of callbacks for state entry/exit actions.
                          Example: {"on_enter_result": some_function}
        :param options: Processing options read by the transition conditions.
        """
        self.log = logging.getLogger("AlignmentFSM")
        self.config_path = Path(config_path) if config_path else Path(__file__).parent / "states.yaml"
        self.callbacks = callbacks or {}
        self.options = options or ProcessingOptions()

        with open(self.config_path, "r") as f:
            fsm_config = yaml.safe_load(f)

        states = fsm_config.get("states", [])
        transitions = fsm_config.get("transitions", [])
        initial = fsm_config.get("initial", "upload")
        self.point_limits = {str(k): int(v) for k, v in (fsm_config.get("point_limits") or {}).items()}

        self.machine = Machine(
            model=self,
            states=states,
            transitions=transitions,
            initial=initial,
            auto_transitions=False,
        )

        # Register and validate callbacks
        for name, func in self.callbacks.items():
            if not callable(func):
                raise ValueError(f"Callback '{name}' must be callable, got {type(func)}")
            if not (name.startswith("on_enter_") or name.startswith("on_exit_")):
                raise ValueError(f"Callback name '{name}' should look like 'on_enter_<state>' or 'on_exit_<state>'")
            state_name = name.split("_", 2)[2]
            if state_name not in self.machine.states:
                raise ValueError(f"Callback '{name}' refers to unknown state '{state_name}'")
            getattr(self.machine, name)(func)

    # -------------------- Condition Methods --------------------
    # These methods are referenced in states.yaml as conditions for transitions

    def assume_equal_framing(self):
        return self.options.assume_equal_framing

    def assume_equal_tilt(self):
        return self.options.assume_equal_tilt

    def assume_equal_zoom(self):
        return self.options.assume_equal_zoom

    # -------------------- Helper Methods --------------------

    def max_points(self, state=None) -> int:
        """Maximum (and required) points per side for ``state`` (default: current)."""
        state = getattr(state, "value", state) or self.state
        return self.point_limits.get(state, 0)

    def debug_state(self):
        self.log.debug(f"Current state → {self.state}")
