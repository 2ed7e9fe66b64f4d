"""Undoable counter demo.

Wires a counter reducer through the undoable reducer and the persistence
middleware with a file store, performs edits with undo/redo, then restarts
the store and reloads the saved history.

Run:
    python scripts/demo_counter.py
    python scripts/demo_counter.py --steps 20 --format msgpack --verbose
"""

from __future__ import annotations

import argparse
import asyncio
import random
import shutil
from pathlib import Path
from typing import Any

from undoable.core.store import Store, combine_reducers
from undoable.history.actions import ActionCreators
from undoable.history.config import get_config
from undoable.persistence.config import Persistence
from undoable.persistence.middleware import PersistenceMiddleware, persisted_undoable_actions
from undoable.persistence.storage import FileStorage
from undoable.utils.logging import setup_logging

# ---------------------------------------------------------------------------
# Counter reducer
# ---------------------------------------------------------------------------

INITIAL = {"name": "Counter", "count": 0}


def counter_reducer(state: dict[str, Any] | None, action: dict[str, Any]) -> dict[str, Any]:
    if state is None:
        state = INITIAL
    kind = action.get("type")
    if kind == "counter/increment":
        return {**state, "count": state["count"] + action.get("payload", 1)}
    if kind == "counter/decrement":
        return {**state, "count": state["count"] - action.get("payload", 1)}
    if kind == "counter/rename":
        return {**state, "name": action["payload"]}
    return state


def build_store(directory: Path, fmt: str) -> tuple[Store, PersistenceMiddleware]:
    config = get_config(
        tracked_action_types=["counter/increment", "counter/decrement"],
        track_after_action_type="counter/start",
    )
    persisted = persisted_undoable_actions(
        counter_reducer,
        config,
        persistence=Persistence(
            reducer_key="counter",
            get_storage_key=lambda get_state: "demo-counter",
            storage=FileStorage(directory, fmt=fmt),
            dispatch_after_maybe_loading="counter/loaded",
            dispatch_after_delay=0.0,
        ),
    )
    store = Store(
        combine_reducers({"counter": persisted.reducer}),
        middleware=[persisted.middleware],
    )
    return store, persisted.middleware


def describe(store: Store) -> str:
    state = store.get_state()["counter"]
    undone = sum(1 for a in state.history.actions if a.skipped)
    return (
        f"count={state.present['count']:4d}  name={state.present['name']:<8s}  "
        f"entries={len(state.history.actions):3d}  undone={undone:3d}  "
        f"can_undo={state.can_undo!s:5s}  can_redo={state.can_redo!s:5s}"
    )


# ---------------------------------------------------------------------------
# Demo stages
# ---------------------------------------------------------------------------

DIVIDER = "=" * 60


async def stage_edit(store: Store, ac: ActionCreators, steps: int, seed: int, verbose: bool):
    """Stage 1: Start tracking and apply random edits, undos and redos."""
    print(f"\n{DIVIDER}")
    print(f"STAGE 1: EDITING  ({steps} steps, seed={seed})")
    print(DIVIDER)

    rng = random.Random(seed)
    await store.dispatch({"type": "counter/start"})
    for i in range(steps):
        roll = rng.random()
        if roll < 0.45:
            action = {"type": "counter/increment", "payload": rng.randint(1, 5)}
        elif roll < 0.65:
            action = {"type": "counter/decrement", "payload": rng.randint(1, 3)}
        elif roll < 0.85:
            action = ac.undo()
        else:
            action = ac.redo()
        await store.dispatch(action)
        if verbose:
            print(f"  [{i + 1:3d}] {action['type']:<28s} {describe(store)}")

    # Untracked, so it is neither stored nor undoable
    await store.dispatch({"type": "counter/rename", "payload": "Tally"})
    print(f"\n  After editing:  {describe(store)}")


async def stage_undo_all(store: Store, ac: ActionCreators):
    """Stage 2: Undo everything, then redo it all again."""
    print(f"\n{DIVIDER}")
    print("STAGE 2: UNDO / REDO")
    print(DIVIDER)

    undos = 0
    while store.get_state()["counter"].can_undo:
        await store.dispatch(ac.undo())
        undos += 1
    print(f"  Undid {undos} entries:  {describe(store)}")

    redos = 0
    while store.get_state()["counter"].can_redo:
        await store.dispatch(ac.redo())
        redos += 1
    print(f"  Redid {redos} entries:  {describe(store)}")


async def stage_reload(directory: Path, fmt: str, before: Store):
    """Stage 3: Restart with a fresh store and load the saved history."""
    print(f"\n{DIVIDER}")
    print("STAGE 3: RELOAD")
    print(DIVIDER)

    store, middleware = build_store(directory, fmt)
    path = middleware.storage.path_for("demo-counter")
    print(f"  File: {path}")
    print(f"  Size: {path.stat().st_size if path.exists() else 0} bytes")

    await store.dispatch({"type": "counter/start"})
    await middleware.drain()
    print(f"  Before restart: {describe(before)}")
    print(f"  After reload:   {describe(store)}")

    same = store.get_state()["counter"].present["count"] == before.get_state()["counter"].present["count"]
    print(f"  Counts match:   {same}")
    return store


async def stage_reset(store: Store, ac: ActionCreators, directory: Path, fmt: str):
    """Stage 4: Reset clears the history and removes the stored file."""
    print(f"\n{DIVIDER}")
    print("STAGE 4: RESET")
    print(DIVIDER)

    await store.dispatch(ac.reset())
    path = FileStorage(directory, fmt=fmt).path_for("demo-counter")
    print(f"  After reset:    {describe(store)}")
    print(f"  File removed:   {not path.exists()}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


async def run(args: argparse.Namespace) -> None:
    directory = Path(args.directory)
    if directory.exists():
        shutil.rmtree(directory)

    ac = ActionCreators()
    store, _ = build_store(directory, args.format)
    await stage_edit(store, ac, args.steps, args.seed, args.verbose)
    await stage_undo_all(store, ac)
    reloaded = await stage_reload(directory, args.format, store)
    await stage_reset(reloaded, ac, directory, args.format)


def main():
    parser = argparse.ArgumentParser(description="Undoable counter demo")
    parser.add_argument("--steps", type=int, default=12, help="Random edit steps")
    parser.add_argument("--seed", type=int, default=7, help="Random seed")
    parser.add_argument("--format", choices=["json", "msgpack"], default="json", help="Storage format")
    parser.add_argument("--directory", default="data/demo_history", help="Storage directory")
    parser.add_argument("--log-level", default="WARNING", help="Log level")
    parser.add_argument("--verbose", action="store_true", help="Print every step")
    args = parser.parse_args()

    setup_logging(args.log_level)

    print(DIVIDER)
    print("Undoable Actions - Counter Demo")
    print(DIVIDER)
    print(f"  Steps:     {args.steps}")
    print(f"  Seed:      {args.seed}")
    print(f"  Format:    {args.format}")
    print(f"  Directory: {args.directory}")

    asyncio.run(run(args))

    print(f"\n{DIVIDER}")
    print("DEMO COMPLETE")
    print(DIVIDER)


if __name__ == "__main__":
    main()
