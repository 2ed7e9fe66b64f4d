"""Counter reducer and action builders shared by the test suite."""

from __future__ import annotations

from typing import Any

INITIAL_COUNTER = {"name": "Counter", "count": 0}


def counter_reducer(state: dict[str, Any] | None, action: dict[str, Any]) -> dict[str, Any]:
    if state is None:
        state = INITIAL_COUNTER
    action_type = action.get("type")
    payload = action.get("payload")
    if action_type == "counter/increment":
        return {**state, "count": state["count"] + (payload or 1)}
    if action_type == "counter/decrement":
        return {**state, "count": state["count"] - (payload or 1)}
    if action_type == "counter/start":
        return {**state, "count": payload if payload is not None else state["count"]}
    if action_type == "counter/change-name":
        return {**state, "name": payload}
    return state


def inc(payload: int | None = None) -> dict[str, Any]:
    if payload is None:
        return {"type": "counter/increment"}
    return {"type": "counter/increment", "payload": payload}


def dec(payload: int | None = None) -> dict[str, Any]:
    if payload is None:
        return {"type": "counter/decrement"}
    return {"type": "counter/decrement", "payload": payload}


def rename(name: str) -> dict[str, Any]:
    return {"type": "counter/change-name", "payload": name}


def run(reducer, *actions, state=None):
    """Initialise (when *state* is None) and fold *actions* through *reducer*."""
    if state is None:
        state = reducer(None, {"type": "@@test/init"})
    for action in actions:
        state = reducer(state, action)
    return state


def entries(state) -> list[tuple[dict[str, Any], bool]]:
    """``(action, skipped)`` pairs of the recorded history."""
    return [(dict(a.action), a.skipped) for a in state.history.actions]
