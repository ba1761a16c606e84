from __future__ import annotations

import time
from collections.abc import Callable

ProgressCallback = Callable[[dict[str, object]], None]


def _emit_progress(progress: ProgressCallback | None, step: str, **fields: object) -> None:
    """
    Emits a progress update by invoking the provided callback with a payload
    containing the current step, timestamp, and any additional fields.

    Parameters
    ----------
    progress : callable or None
        A callback accepting the payload dictionary. If None, nothing happens.
    step : str
        The stage being reported, e.g. ``"analysis_progress"``.
    **fields : object
        Additional entries merged into the payload.

    Examples
    --------
    >>> _emit_progress(print, "analysis_progress", games_analyzed=3)
    {'step': 'analysis_progress', 'timestamp': 1700000000.0, 'games_analyzed': 3}
    """
    if progress is None:
        return
    payload: dict[str, object] = {"step": step, "timestamp": time.time()}
    payload.update(fields)
    progress(payload)
