"""Scenario presets and loading helpers."""

from .presets import (
    ADD_GRAVITY_WELL,
    ADD_PARTICLE_BURST,
    SCENARIO_PRESETS,
    ScenarioPreset,
    SetupAction,
    create_custom_scenario,
    get_scenario_preset,
    load_scenario,
    scenario_names,
)

__all__ = [
    "ADD_GRAVITY_WELL",
    "ADD_PARTICLE_BURST",
    "SCENARIO_PRESETS",
    "ScenarioPreset",
    "SetupAction",
    "create_custom_scenario",
    "get_scenario_preset",
    "load_scenario",
    "scenario_names",
]
